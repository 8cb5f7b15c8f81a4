"""Rule host: parse, build scopes, then run usage rules over the node tree."""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .converter import TreeConverter
from .nodes import Node, Program, iter_child_nodes
from .parser import LanguageParser
from .scope import Scope, ScopeManager
from .ts_usage import TypeScriptUsageRule

RULES = {
    'typescript/no-unused-vars': TypeScriptUsageRule,
}


class RuleContext:
    """What a rule sees of the file being linted.

    The traversal keeps ``_stack`` as root-first ancestors plus the node whose
    handlers are currently running.
    """

    def __init__(self, scope_manager: ScopeManager, file_path: str = '<input>'):
        self.scope_manager = scope_manager
        self.file_path = file_path
        self._stack: List[Node] = []

    def get_ancestors(self) -> List[Node]:
        """Ancestors of the current node, root first, current node excluded."""
        return list(self._stack[:-1])

    def get_scope(self) -> Scope:
        """Scope of the current node.

        Walks the current node and then its ancestors and returns the first
        scope one of them opened. Top-level positions therefore get the
        synthetic global scope rather than the module scope.
        """
        for node in reversed(self._stack):
            scope = self.scope_manager.acquire(node)
            if scope is not None:
                return scope
        return self.scope_manager.global_scope

    def _enter(self, node: Node):
        self._stack.append(node)

    def _leave(self):
        self._stack.pop()


@dataclass
class LintResult:
    """Everything a consumer needs after the rules ran on one file."""
    file_path: str
    program: Program
    scope_manager: ScopeManager
    # tree-sitter recovered from syntax errors; bindings may be missing
    has_syntax_errors: bool = False


class Linter:
    """Run registered rules over TypeScript sources."""

    def __init__(self, rules: Optional[List[str]] = None):
        """Initialize linter.

        Args:
            rules: Rule ids to enable (default: every registered rule). Pass an
                empty list to only build scopes.

        Raises:
            ValueError: If a rule id is not registered
        """
        rule_ids = list(RULES) if rules is None else list(rules)
        unknown = [rule_id for rule_id in rule_ids if rule_id not in RULES]
        if unknown:
            raise ValueError(f"Unknown rule(s): {', '.join(unknown)}")
        self.rule_ids = rule_ids

    def verify(self, source_code: bytes, file_path: str = '<input>',
               language: Optional[str] = None) -> LintResult:
        """Lint in-memory source.

        Args:
            source_code: TypeScript source (str is encoded as UTF-8)
            file_path: Name used in reports; also picks the grammar when
                ``language`` is not given
            language: 'typescript' or 'tsx'

        Returns:
            LintResult with the usage flags set on the scope variables
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')

        if language is None:
            parser = LanguageParser.from_file_extension(file_path) or LanguageParser('typescript')
        else:
            parser = LanguageParser(language)

        tree = parser.parse_source(source_code)
        program = TreeConverter(source_code).convert(tree)
        scope_manager = ScopeManager.analyze(program)

        context = RuleContext(scope_manager, file_path)
        handlers: Dict[str, List[Callable[[Node], None]]] = {}
        for rule_id in self.rule_ids:
            rule = RULES[rule_id](context)
            for node_type, handler in rule.create().items():
                handlers.setdefault(node_type, []).append(handler)

        if handlers:
            self._traverse(program, handlers, context)

        return LintResult(file_path=file_path, program=program, scope_manager=scope_manager,
                          has_syntax_errors=tree.root_node.has_error)

    def verify_file(self, file_path: str | Path) -> Optional[LintResult]:
        """Read and lint one file.

        Returns:
            LintResult, or None if the file cannot be read
        """
        file_path = Path(file_path)
        try:
            source_code = file_path.read_bytes()
        except OSError:
            return None
        return self.verify(source_code, str(file_path))

    @staticmethod
    def _traverse(program: Program, handlers: Dict[str, List[Callable[[Node], None]]],
                  context: RuleContext):
        # Iterative pre-order walk; long call chains nest too deep for recursion
        stack = [(program, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                context._leave()
                continue

            context._enter(node)
            for handler in handlers.get(node.type, ()):
                handler(node)

            stack.append((node, True))
            for child in reversed(list(iter_child_nodes(node))):
                stack.append((child, False))
