"""Append-only audit log for auto-adopt and install actions.

Each action is one human-readable line::

    [2026-10-18 14:00:03] ADOPTED: .wezterm.lua → stow/wezterm/

The log is advisory: it is never rewritten, and unparseable lines are
skipped when reading.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
SCAN_STARTED = "Scan started"

_LINE = re.compile(
    r"^\[(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\] (?P<kind>[A-Z]+): (?P<msg>.*)$"
)
_ADOPTION = re.compile(r"^(?P<path>\S.*?) → stow/(?P<package>[^/]+)/")


class AuditKind(str, Enum):
    """Keyword categorizing an audit line.

    Attributes:
        ADOPTED: A path was moved into managed storage and linked back.
        SKIPPED: A path matched no pattern and was left alone.
        SENSITIVE: A path matched a sensitive pattern and was withheld.
        INFO: Run lifecycle and configuration notices.
        WARN: A recoverable problem (e.g. unresolvable package name).
        FAILED: An adoption or installation failed.
        INSTALLED: A Brewfile entry was installed.
    """

    ADOPTED = "ADOPTED"
    SKIPPED = "SKIPPED"
    SENSITIVE = "SENSITIVE"
    INFO = "INFO"
    WARN = "WARN"
    FAILED = "FAILED"
    INSTALLED = "INSTALLED"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """A single audit log line.

    Attributes:
        timestamp: Local time the action was recorded.
        kind: Category keyword.
        message: Free-form message text.
        path: Home-relative path the action concerned, if any.
        package: Managed package involved, if any.
    """

    timestamp: datetime
    kind: AuditKind
    message: str
    path: str | None = None
    package: str | None = None

    def to_line(self) -> str:
        """Serialize to a single log line (no trailing newline)."""
        return f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] {self.kind.value}: {self.message}"

    @classmethod
    def from_line(cls, line: str) -> "AuditEntry":
        """Parse a log line.

        Args:
            line: One line of the audit log.

        Returns:
            AuditEntry instance.

        Raises:
            ValueError: If the line is not in audit log format.
        """
        match = _LINE.match(line.rstrip("\n"))
        if match is None:
            msg = f"Not an audit line: {line!r}"
            raise ValueError(msg)

        kind = AuditKind(match["kind"])
        message = match["msg"]
        path: str | None = None
        package: str | None = None

        adoption = _ADOPTION.match(message)
        if adoption is not None and kind in (AuditKind.ADOPTED, AuditKind.FAILED):
            path = adoption["path"]
            package = adoption["package"]
        elif kind in (AuditKind.SENSITIVE, AuditKind.SKIPPED):
            path = message.split(" (", 1)[0]

        return cls(
            timestamp=datetime.strptime(match["ts"], TIMESTAMP_FORMAT),
            kind=kind,
            message=message,
            path=path,
            package=package,
        )


def adoption_message(rel_path: str, package: str) -> str:
    """Message text shared by ADOPTED and FAILED adoption lines."""
    return f"{rel_path} → stow/{package}/"


class AuditLog:
    """Line-oriented, append-only audit log.

    The parent directory is created on first write only, so read-only
    commands and dry runs never touch the filesystem.

    Args:
        path: Log file location (usually ``settings.audit_log_path``).
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Location of the log file."""
        return self._path

    def append(self, entry: AuditEntry) -> None:
        """Append one entry.

        Raises:
            OSError: If the log cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_line() + "\n")
            f.flush()

    def record(
        self,
        kind: AuditKind,
        message: str,
        *,
        path: str | None = None,
        package: str | None = None,
    ) -> AuditEntry:
        """Create an entry stamped with the current local time and append it."""
        entry = AuditEntry(
            timestamp=datetime.now().replace(microsecond=0),
            kind=kind,
            message=message,
            path=path,
            package=package,
        )
        self.append(entry)
        return entry

    def info(self, message: str) -> AuditEntry:
        return self.record(AuditKind.INFO, message)

    def warn(self, message: str, *, path: str | None = None) -> AuditEntry:
        return self.record(AuditKind.WARN, message, path=path)

    def adopted(self, rel_path: str, package: str) -> AuditEntry:
        return self.record(
            AuditKind.ADOPTED,
            adoption_message(rel_path, package),
            path=rel_path,
            package=package,
        )

    def failed_adoption(self, rel_path: str, package: str, error: str) -> AuditEntry:
        return self.record(
            AuditKind.FAILED,
            f"{adoption_message(rel_path, package)} ({error})",
            path=rel_path,
            package=package,
        )

    def sensitive(self, rel_path: str) -> AuditEntry:
        return self.record(
            AuditKind.SENSITIVE, f"{rel_path} (not adopted for security)", path=rel_path
        )

    def skipped(self, rel_path: str, reason: str = "unknown pattern") -> AuditEntry:
        return self.record(AuditKind.SKIPPED, f"{rel_path} ({reason})", path=rel_path)

    def entries(self) -> list[AuditEntry]:
        """Read all parseable entries, oldest first.

        Returns:
            List of AuditEntry. Empty if the log does not exist.
        """
        if not self._path.exists():
            return []

        entries: list[AuditEntry] = []
        with self._path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry.from_line(line))
                except ValueError as e:
                    logger.warning("Skipping malformed audit line %d: %s", line_num, e)
        return entries

    def tail(self, count: int = 5) -> list[str]:
        """Return the last ``count`` raw lines of the log."""
        if count <= 0 or not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as f:
            lines = [line.rstrip("\n") for line in f if line.strip()]
        return lines[-count:]

    def last_run(self) -> datetime | None:
        """Timestamp of the most recent scan start, if any."""
        for entry in reversed(self.entries()):
            if entry.kind == AuditKind.INFO and entry.message.startswith(SCAN_STARTED):
                return entry.timestamp
        return None

    def recent(self, kind: AuditKind, count: int = 5) -> list[AuditEntry]:
        """Most recent entries of one kind, oldest first."""
        matching = [e for e in self.entries() if e.kind == kind]
        return matching[-count:] if count > 0 else []
