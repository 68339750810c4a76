"""Exception hierarchy for p4file."""

from __future__ import annotations

from pathlib import Path


class P4FileError(Exception):
    """Base exception for all p4file errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all p4file errors with
    a single except clause.
    """

    pass


class InvalidArgumentError(P4FileError):
    """Caller supplied a malformed or out-of-range argument.

    Raised at the offending call, before any state is changed.
    """

    pass


# Configuration Errors
class ConfigError(P4FileError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Perforce Errors
class P4Error(P4FileError):
    """Perforce command related errors."""

    pass


class P4NotFoundError(P4Error):
    """The p4 executable could not be started."""

    def __init__(self, executable: str) -> None:
        self.executable = executable
        super().__init__(f"Perforce client not found: {executable}")


class P4CommandError(P4Error):
    """A p4 command exited with an error."""

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"p4 {' '.join(command)} failed: {detail}")
