"""Brewfile parser.

Only the declarative subset used by ``brew bundle`` dumps is understood::

    tap "homebrew/cask-fonts"
    brew "ripgrep"
    cask "wezterm", greedy: true
    mas "Xcode", id: 497799835

Other directives (``vscode``, ``whalebrew``, Ruby conditionals) are
skipped with a debug message.
"""

import logging
import re
from pathlib import Path

from dotctl.brew.models import BrewfileEntry, BrewKind, DesiredPackageSpec

logger = logging.getLogger(__name__)

_ENTRY = re.compile(
    r"""^(?P<kind>tap|brew|cask|mas)\s+(?:"(?P<dq>[^"]+)"|'(?P<sq>[^']+)')(?P<rest>.*)$"""
)
_MAS_ID = re.compile(r"\bid:\s*(?P<id>\d+)")


class BrewfileError(Exception):
    """Base exception for Brewfile errors."""


class BrewfileNotFoundError(BrewfileError):
    """Raised when the Brewfile does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Brewfile not found: {path}")


class BrewfileParseError(BrewfileError):
    """Raised when a recognized Brewfile line is malformed."""

    def __init__(self, line_num: int, line: str, reason: str) -> None:
        self.line_num = line_num
        self.line = line
        super().__init__(f"Brewfile line {line_num}: {reason}: {line.strip()}")


def parse_entry(line: str, line_num: int = 0) -> BrewfileEntry | None:
    """Parse one Brewfile line.

    Args:
        line: Raw line.
        line_num: 1-based line number, for error messages.

    Returns:
        BrewfileEntry, or None for blank, comment, and unsupported lines.

    Raises:
        BrewfileParseError: If a mas line has no numeric id.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    match = _ENTRY.match(stripped)
    if match is None:
        logger.debug("Skipping unsupported Brewfile line %d: %s", line_num, stripped)
        return None

    kind = BrewKind(match["kind"])
    name = (match["dq"] or match["sq"]).strip()

    mas_id: int | None = None
    if kind == BrewKind.MAS:
        id_match = _MAS_ID.search(match["rest"])
        if id_match is None:
            raise BrewfileParseError(line_num, line, "mas entry without id")
        mas_id = int(id_match["id"])

    return BrewfileEntry(kind=kind, name=name, mas_id=mas_id)


def parse_brewfile(text: str) -> DesiredPackageSpec:
    """Parse Brewfile content into a desired-state snapshot.

    Duplicate entries are collapsed; the first occurrence keeps its position.
    """
    entries: list[BrewfileEntry] = []
    seen: set[BrewfileEntry] = set()

    for line_num, line in enumerate(text.splitlines(), start=1):
        entry = parse_entry(line, line_num)
        if entry is None or entry in seen:
            continue
        seen.add(entry)
        entries.append(entry)

    return DesiredPackageSpec(entries=tuple(entries))


def load_brewfile(path: Path) -> DesiredPackageSpec:
    """Load and parse a Brewfile.

    Args:
        path: Brewfile location.

    Returns:
        DesiredPackageSpec in file order.

    Raises:
        BrewfileNotFoundError: If the file does not exist.
        BrewfileParseError: If a recognized line is malformed.
        BrewfileError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise BrewfileNotFoundError(path) from None
    except OSError as e:
        msg = f"Failed to read Brewfile {path}: {e}"
        raise BrewfileError(msg) from e

    spec = parse_brewfile(text)
    logger.debug("Loaded %d Brewfile entries from %s", len(spec), path)
    return spec
