"""Configuration management for typemark.

Loads environment variables (optionally from a .env file) and provides
centralized, validated config access. CLI options override these values.
"""
import os
import re
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

__version__ = "0.3.0"

DEFAULT_EXCLUDED_DIRS = ['node_modules', 'dist', 'build', '.git', 'coverage', '.next', 'out']

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off', '')


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_path: .env file to load (default: project root .env). Variables
                already set in the environment win over the file.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if env_path is None:
            env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(env_path)

        self._validate()

    def _validate(self):
        """Validate every variable up front so bad values fail fast.

        Raises:
            ValueError: If TYPEMARK_IGNORE_PATTERN is not a regex or a boolean
                variable is not a recognised boolean
        """
        pattern = self.ignore_pattern
        if pattern:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(
                    f"TYPEMARK_IGNORE_PATTERN is not a valid regular expression: {pattern!r} ({e})"
                ) from e

        for name in ("TYPEMARK_REPORT_PARAMETERS", "TYPEMARK_VERBOSE"):
            self._get_bool(name)

    @staticmethod
    def _get_bool(name: str, default: bool = False) -> bool:
        raw = os.getenv(name)
        if raw is None:
            return default
        value = raw.strip().lower()
        if value in TRUE_VALUES:
            return True
        if value in FALSE_VALUES:
            return False
        raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")

    @property
    def ignore_pattern(self) -> str:
        """Regex for binding names that are never reported.

        Returns:
            Pattern string; empty string disables ignoring
        """
        return os.getenv("TYPEMARK_IGNORE_PATTERN", "^_")

    @property
    def report_parameters(self) -> bool:
        """Whether unused function parameters are reported."""
        return self._get_bool("TYPEMARK_REPORT_PARAMETERS")

    @property
    def excluded_dirs(self) -> List[str]:
        """Directory names skipped during file discovery.

        Returns:
            List of directory names from TYPEMARK_EXCLUDED_DIRS (comma-separated),
            or the defaults when unset
        """
        raw = os.getenv("TYPEMARK_EXCLUDED_DIRS")
        if raw is None:
            return list(DEFAULT_EXCLUDED_DIRS)
        return [name.strip() for name in raw.split(",") if name.strip()]

    @property
    def verbose(self) -> bool:
        return self._get_bool("TYPEMARK_VERBOSE")


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
