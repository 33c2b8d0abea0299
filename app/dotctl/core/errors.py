"""Exception hierarchy for unrecoverable setup failures.

Per-item problems (a file that cannot be adopted, a cask that fails to
install) are reported as result values. Only conditions that prevent a
run from starting at all are raised as exceptions from this module.
"""

from pathlib import Path


class SetupError(Exception):
    """Base error for conditions that abort a run before any change is made."""


class SetupPathError(SetupError):
    """Raised when a required directory is missing or unreadable."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class HomeNotAccessibleError(SetupPathError):
    """Raised when the home directory cannot be listed."""

    def __init__(self, path: Path, detail: str | None = None) -> None:
        message = "Home directory is not accessible"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(path=path, message=message)


class PatternStoreError(SetupPathError):
    """Base error for pattern directory failures."""


class PatternsDirMissingError(PatternStoreError):
    """Raised when the patterns directory is required but absent."""

    def __init__(self, path: Path) -> None:
        super().__init__(path=path, message="Patterns directory not found")


class AuditLogUnwritableError(SetupPathError):
    """Raised when the audit log cannot be written at the start of a run."""

    def __init__(self, path: Path, detail: str | None = None) -> None:
        message = "Audit log is not writable"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(path=path, message=message)
