"""Tests for terminal-safe output helpers."""
import io

from src.utils import logger
from src.utils.logger import ICON_MAP, sanitize_for_terminal
from src.utils.safe_console import SafeConsole


def test_sanitize_replaces_every_icon():
    text = "✓ referenced ✗ unused 🛡 protected → next"
    sanitized = sanitize_for_terminal(text, force=True)

    assert sanitized == "[OK] referenced [UNUSED] unused [PROTECTED] protected -> next"
    assert not any(icon in sanitized for icon in ICON_MAP)


def test_sanitize_is_a_no_op_on_utf8_terminals(monkeypatch):
    monkeypatch.setattr(logger, 'is_utf8_capable', lambda: True)
    assert sanitize_for_terminal("✓ done") == "✓ done"


def test_sanitize_on_legacy_terminals(monkeypatch):
    monkeypatch.setattr(logger, 'is_utf8_capable', lambda: False)
    assert sanitize_for_terminal("✓ done") == "[OK] done"


def test_debug_only_prints_when_verbose():
    quiet_output = io.StringIO()
    SafeConsole(file=quiet_output, verbose=False).debug("scanning")
    assert quiet_output.getvalue() == ""

    verbose_output = io.StringIO()
    SafeConsole(file=verbose_output, verbose=True).debug("scanning [src]")
    assert "scanning [src]" in verbose_output.getvalue(), "Markup in debug text must be escaped"
