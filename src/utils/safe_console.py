"""Rich Console that stays readable on terminals without UTF-8."""
from rich.console import Console
from rich.markup import escape
from typing import Any
from .logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Console wrapper with icon sanitization and a verbose-only debug channel.

    Inherits from Rich's Console; print() replaces icons with ASCII on
    non-UTF-8 terminals and debug() prints only when verbose is on.
    """

    def __init__(self, *args, verbose: bool = False, **kwargs):
        """Initialize SafeConsole.

        Args:
            verbose: Enable debug() output
            *args, **kwargs: Passed through to Rich's Console
        """
        self._needs_sanitization = not is_utf8_capable()
        self.verbose = verbose

        # Legacy mode keeps Rich from emitting box-drawing spinners it cannot encode
        if self._needs_sanitization:
            kwargs['legacy_windows'] = True

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic icon sanitization (same signature as Console.print)."""
        if self._needs_sanitization:
            objects = tuple(sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                            for obj in objects)
        super().print(*objects, **kwargs)

    def debug(self, message: str) -> None:
        """Print a dim diagnostic line when verbose mode is on."""
        if self.verbose:
            self.print(f"[dim]{escape(message)}[/dim]")
