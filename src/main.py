"""typemark CLI - unused binding audit for TypeScript with annotation-aware usage."""
import os
from pathlib import Path
import sys
import time
import typer
from typing import Iterable, List, Optional
from rich.table import Table
from rich.tree import Tree
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn
)
from rich.markup import escape

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

# Import Windows-safe Console wrapper
from src.utils.safe_console import SafeConsole

from src.analyzer.linter import Linter
from src.analyzer.parser import LanguageParser
from src.analyzer.scope import Scope
from src.analyzer.unused_detector import FileReport, UnusedBindingDetector
from src.config import __version__, get_config

app = typer.Typer(
    name="typemark",
    help="Find unused TypeScript bindings without flagging annotation-only usage",
    add_completion=False
)
# Use SafeConsole for Windows Unicode compatibility
console = SafeConsole()


def is_ci_environment() -> bool:
    """Detect if running in CI/CD environment (GitHub Actions, GitLab CI, etc.).

    Returns:
        True if running in CI, False otherwise
    """
    ci_indicators = [
        'GITHUB_ACTIONS',  # GitHub Actions
        'CI',              # Generic CI indicator
        'GITLAB_CI',       # GitLab CI
        'CIRCLECI',        # CircleCI
        'TRAVIS',          # Travis CI
        'JENKINS_HOME',    # Jenkins
    ]
    return any(os.getenv(indicator) for indicator in ci_indicators)


def discover_files(project_path: Path, excluded_dirs: Iterable[str]) -> List[Path]:
    """Collect TypeScript sources under ``project_path``.

    Declaration files (``.d.ts``) only declare, so they are skipped.

    Args:
        project_path: Directory to scan, or a single file
        excluded_dirs: Directory names never descended into

    Returns:
        Sorted list of source files
    """
    def is_source(file_path: Path) -> bool:
        return (file_path.suffix.lower() in LanguageParser.SUPPORTED_LANGUAGES
                and not file_path.name.lower().endswith('.d.ts'))

    if project_path.is_file():
        return [project_path] if is_source(project_path) else []

    excluded = set(excluded_dirs)
    files = []
    for file_path in project_path.rglob('*'):
        if not is_source(file_path) or not file_path.is_file():
            continue
        if any(part in excluded for part in file_path.relative_to(project_path).parts):
            continue
        files.append(file_path)
    return sorted(files)


def analyze_project(files: List[Path], linter: Linter, detector: UnusedBindingDetector,
                    show_progress: bool = True) -> List[FileReport]:
    """Lint every file and collect per-file reports.

    Unreadable files are skipped and files with syntax errors are analyzed as
    far as tree-sitter recovered; both are reported as warnings.
    """
    if show_progress:
        progress_ctx = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            transient=True
        )
    else:
        from contextlib import nullcontext
        progress_ctx = nullcontext()

    reports = []
    warnings = []
    with progress_ctx as progress:
        if show_progress:
            task = progress.add_task("[cyan]Resolving bindings...", total=len(files))

        for file_path in files:
            result = linter.verify_file(file_path)
            if result is None:
                warnings.append(f"Skipped unreadable file: {file_path}")
            else:
                if result.has_syntax_errors:
                    warnings.append(f"Syntax errors in {file_path}; results may be incomplete")
                reports.append(detector.detect(result))
            if show_progress:
                progress.advance(task)

    # Printed after the transient progress bar is gone
    for warning in warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")

    return reports


def _display_path(file_path: str, project_path: Path) -> str:
    try:
        return str(Path(file_path).relative_to(project_path))
    except ValueError:
        return str(file_path)


def _load_config():
    try:
        return get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def audit(
    project_path: str = typer.Argument(".", help="Project root (or single file) to analyze"),
    show_protected: bool = typer.Option(False, "--show-protected", help="Display bindings rescued by annotation usage"),
    no_annotation_pass: bool = typer.Option(False, "--no-annotation-pass", help="Baseline: skip the annotation usage rule"),
    include_params: bool = typer.Option(False, "--include-params", help="Also report unused function parameters"),
    ignore_pattern: Optional[str] = typer.Option(None, "--ignore-pattern", help="Regex for names never reported (default from TYPEMARK_IGNORE_PATTERN)"),
    fail_on_unused: bool = typer.Option(False, "--fail-on-unused", help="Exit with code 1 if unused bindings are found"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print diagnostic output"),
):
    """Scan a project and list unused bindings."""
    config = _load_config()
    console.verbose = verbose or config.verbose

    project_path = Path(project_path).resolve()

    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    try:
        detector = UnusedBindingDetector(
            ignore_pattern=ignore_pattern if ignore_pattern is not None else config.ignore_pattern,
            report_parameters=include_params or config.report_parameters,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    linter = Linter(rules=[] if no_annotation_pass else None)

    files = discover_files(project_path, config.excluded_dirs)
    console.print(f"[bold blue]Analyzing project:[/bold blue] {escape(str(project_path))}\n")
    console.debug(f"Discovered {len(files)} TypeScript file(s); rules: {', '.join(linter.rule_ids) or 'none'}")

    start_time = time.time()
    reports = analyze_project(files, linter, detector, show_progress=not is_ci_environment())
    elapsed = time.time() - start_time

    unused = [binding for report in reports for binding in report.unused]
    protected = [binding for report in reports for binding in report.protected]

    if unused:
        table = Table(title="Unused Bindings")
        table.add_column("Name", style="cyan")
        table.add_column("Kind", style="yellow")
        table.add_column("File", style="magenta", no_wrap=False)
        table.add_column("Line", style="green")

        for binding in unused:
            table.add_row(
                escape(binding.name),
                binding.kind,
                escape(_display_path(binding.file_path, project_path)),
                str(binding.line)
            )

        console.print(table)

    if protected and show_protected:
        saved_table = Table(title="Protected Bindings (Annotation Usage)")
        saved_table.add_column("Name", style="cyan")
        saved_table.add_column("Kind", style="yellow")
        saved_table.add_column("Protection", style="bold green")
        saved_table.add_column("File", style="magenta")
        saved_table.add_column("Line", style="green")

        for binding in protected:
            saved_table.add_row(
                escape(binding.name),
                binding.kind,
                binding.protected_by,
                escape(_display_path(binding.file_path, project_path)),
                str(binding.line)
            )

        console.print(saved_table)

    console.print(f"\n[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Files analyzed: {len(reports)}")
    console.print(f"  Unused bindings: {len(unused)}")
    if not no_annotation_pass:
        console.print(f"  Protected by annotation usage: {len(protected)}")
    console.debug(f"Finished in {elapsed:.2f}s")
    console.print("")

    if not unused:
        console.print("[bold green]No unused bindings found![/bold green]")
    elif fail_on_unused:
        raise typer.Exit(1)


def _add_scope_branch(branch: Tree, scope: Scope):
    node = branch.add(f"[bold cyan]{scope.kind}[/bold cyan] scope [dim](line {scope.block.line})[/dim]")
    for variable in scope.variables.values():
        if variable.references:
            status = "[green]✓ referenced[/green]"
        elif variable.used:
            status = "[yellow]🛡 annotation usage[/yellow]"
        else:
            status = "[red]✗ unused[/red]"
        node.add(f"{escape(variable.name)} [dim]{variable.kind}, "
                 f"{len(variable.references)} reference(s)[/dim] {status}")
    for child in scope.child_scopes:
        _add_scope_branch(node, child)


@app.command()
def scopes(
    file_path: str = typer.Argument(..., help="TypeScript file to inspect"),
    no_annotation_pass: bool = typer.Option(False, "--no-annotation-pass", help="Show flags without the annotation usage rule"),
):
    """Print the scope tree of one file with every binding's usage state."""
    path = Path(file_path)

    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    if LanguageParser.from_file_extension(path) is None:
        console.print(f"[bold red]Error:[/bold red] Unsupported file type: {escape(path.suffix or str(path))}")
        raise typer.Exit(1)

    result = Linter(rules=[] if no_annotation_pass else None).verify_file(path)
    if result is None:
        console.print(f"[bold red]Error:[/bold red] Could not read {escape(str(path))}")
        raise typer.Exit(1)

    tree = Tree(f"[bold]{escape(str(path))}[/bold]")
    _add_scope_branch(tree, result.scope_manager.global_scope)
    console.print(tree)


@app.command()
def version():
    """Print the typemark version."""
    console.print(f"typemark {__version__}")


@app.callback()
def main():
    """typemark - unused binding audit for TypeScript."""
    pass


if __name__ == "__main__":
    app()
