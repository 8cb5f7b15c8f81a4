"""Terminal-safe output helpers.

Detects whether the terminal can render UTF-8 and swaps the icons typemark
prints for ASCII stand-ins when it cannot (legacy Windows consoles, CI logs
with a C locale).
"""
import sys
import locale


# Icons used in reports, mapped to ASCII fallbacks
ICON_MAP = {
    # Status
    '✓': '[OK]',
    '✗': '[UNUSED]',
    '⚠': '[WARN]',
    '🛡': '[PROTECTED]',

    # Scope tree
    '→': '->',
    '↳': '->',
    '•': '*',
    '…': '...',
}

UTF8_ENCODINGS = ('utf-8', 'utf8', 'utf_8')


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding.

    Returns:
        str: Lower-cased encoding name ('utf-8', 'cp1252', 'ascii', ...)
    """
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can render UTF-8 icons."""
    return detect_terminal_encoding() in UTF8_ENCODINGS


def sanitize_for_terminal(text: str, force: bool = False) -> str:
    """Replace icons with ASCII equivalents on non-UTF-8 terminals.

    Args:
        text: Text possibly containing icons
        force: Sanitize even if the terminal is UTF-8 capable

    Returns:
        str: Text safe for the current terminal
    """
    if not force and is_utf8_capable():
        return text

    for icon, replacement in ICON_MAP.items():
        text = text.replace(icon, replacement)
    return text
