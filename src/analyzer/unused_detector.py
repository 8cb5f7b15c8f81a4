"""Unused binding detection on top of scope references and usage flags."""
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .linter import LintResult
from .nodes import FUNCTION_NODES, Node, ParameterProperty
from .scope import Variable

PROTECTION_REASON = "TypeScript annotation usage"


@dataclass
class UnusedBinding:
    """A declaration nothing reads."""
    name: str
    kind: str
    file_path: str
    line: int
    column: int
    protected_by: str = ""


@dataclass
class FileReport:
    file_path: str
    unused: List[UnusedBinding] = field(default_factory=list)
    protected: List[UnusedBinding] = field(default_factory=list)


class UnusedBindingDetector:
    """Classify every declared binding of a linted file.

    A binding is:
      - used, if any value-position reference resolves to it;
      - protected, if it has no references but a usage rule flagged it;
      - unused otherwise.
    Exported bindings, names matching the ignore pattern and (by default)
    parameters are never reported.
    """

    def __init__(self, ignore_pattern: Optional[str] = r'^_', report_parameters: bool = False):
        """Initialize detector.

        Args:
            ignore_pattern: Regex for names that are never reported (None or '' disables)
            report_parameters: Also report unused function parameters

        Raises:
            ValueError: If ignore_pattern is not a valid regular expression
        """
        try:
            self.ignore_pattern = re.compile(ignore_pattern) if ignore_pattern else None
        except re.error as e:
            raise ValueError(f"Invalid ignore pattern {ignore_pattern!r}: {e}") from e
        self.report_parameters = report_parameters

    def detect(self, result: LintResult) -> FileReport:
        """Build the report for one linted file."""
        report = FileReport(file_path=result.file_path)

        for variable in result.scope_manager.iter_variables():
            if self._is_skipped(variable) or variable.references:
                continue

            binding = self._binding(variable, result.file_path)
            if variable.used:
                binding.protected_by = PROTECTION_REASON
                report.protected.append(binding)
            else:
                report.unused.append(binding)

        report.unused.sort(key=lambda b: (b.line, b.column))
        report.protected.sort(key=lambda b: (b.line, b.column))
        return report

    def _is_skipped(self, variable: Variable) -> bool:
        if variable.exported or variable.kind == 'FunctionExpressionName':
            return True
        if self.ignore_pattern is not None and self.ignore_pattern.search(variable.name):
            return True
        if variable.kind == 'Parameter':
            if variable.name == 'this':
                return True
            # constructor(private svc: Service) declares a class member
            if any(self._in_parameter_property(node) for node in variable.defs):
                return True
            return not self.report_parameters
        return False

    @staticmethod
    def _in_parameter_property(node: Node) -> bool:
        current = node.parent
        while current is not None and not isinstance(current, FUNCTION_NODES):
            if isinstance(current, ParameterProperty):
                return True
            current = current.parent
        return False

    @staticmethod
    def _binding(variable: Variable, file_path: str) -> UnusedBinding:
        node = variable.defs[0]
        return UnusedBinding(
            name=variable.name,
            kind=variable.kind,
            file_path=file_path,
            line=node.line,
            column=node.column,
        )
