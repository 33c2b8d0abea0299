"""Auto-adopt domain models.

This module defines the data structures for pattern rules, discovered
home-directory candidates, classification verdicts, and the per-item
results aggregated into an adoption report.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Verdict(str, Enum):
    """Classification outcome for a home-relative path.

    Priority is SENSITIVE > IGNORE > ADOPT; UNKNOWN is the fallback
    when no pattern list matches.

    Attributes:
        SENSITIVE: Matches a sensitive pattern; must never be relocated.
        IGNORE: Matches an ignore pattern; intentionally untracked.
        ADOPT: Matches an adopt pattern; moved into managed storage.
        UNKNOWN: Matches no pattern list.
    """

    SENSITIVE = "sensitive"
    IGNORE = "ignore"
    ADOPT = "adopt"
    UNKNOWN = "unknown"


class PatternList(str, Enum):
    """The three ordered pattern lists, in evaluation order."""

    SENSITIVE = "sensitive"
    IGNORE = "ignore"
    ADOPT = "adopt"

    @property
    def filename(self) -> str:
        """Name of the pattern source file for this list."""
        return f"{self.value}.txt"


@dataclass(frozen=True, slots=True)
class PatternRule:
    """A single glob-like rule from a pattern file.

    Attributes:
        pattern: Glob-like pattern matched against home-relative paths.
        package_hint: Optional explicit package name (``pattern:package``).
    """

    pattern: str
    package_hint: str | None = None

    def __post_init__(self) -> None:
        """Validate rule data after initialization."""
        if not self.pattern:
            msg = "Pattern cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class PatternSet:
    """The three ordered rule lists loaded from the patterns directory.

    Attributes:
        sensitive: Rules whose match forbids adoption.
        ignore: Rules for intentionally untracked paths.
        adopt: Rules for paths adopted automatically.
        missing: Lists whose source file was absent.
    """

    sensitive: tuple[PatternRule, ...] = ()
    ignore: tuple[PatternRule, ...] = ()
    adopt: tuple[PatternRule, ...] = ()
    missing: tuple[PatternList, ...] = ()

    def rules(self, which: PatternList) -> tuple[PatternRule, ...]:
        """Return the rules of one list."""
        return getattr(self, which.value)

    @property
    def mappings(self) -> tuple[PatternRule, ...]:
        """Adopt rules that carry an explicit package name."""
        return tuple(rule for rule in self.adopt if rule.package_hint)


@dataclass(frozen=True, slots=True)
class Classification:
    """Verdict for one path, with the rule that produced it.

    Attributes:
        path: Home-relative path that was classified.
        verdict: Classification outcome.
        rule: Matching rule, or None for UNKNOWN.
    """

    path: str
    verdict: Verdict
    rule: PatternRule | None = None


@dataclass(frozen=True, slots=True)
class Candidate:
    """A filesystem entry discovered during a home-directory scan.

    Attributes:
        rel_path: Path relative to the home directory.
        is_dir: Whether the entry is a real (non-symlink) directory.
        managed: Already under managed storage (linked or mirrored).
        foreign_link: A symlink that points outside managed storage.
    """

    rel_path: str
    is_dir: bool = False
    managed: bool = False
    foreign_link: bool = False

    def __post_init__(self) -> None:
        """Validate candidate data after initialization."""
        if not self.rel_path or self.rel_path in (".", ".."):
            msg = f"Invalid candidate path: {self.rel_path!r}"
            raise ValueError(msg)
        if self.rel_path.startswith("/"):
            msg = f"Candidate path must be relative to home: {self.rel_path}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ManagedPackage:
    """A named grouping of files mirrored under managed storage.

    Attributes:
        name: Package name (a subdirectory of the stow directory).
        root: Absolute path of the package directory.
    """

    name: str
    root: Path

    def destination_for(self, rel_path: str) -> Path:
        """Mirrored location of a home-relative path inside this package."""
        return self.root / rel_path


class DecisionAction(str, Enum):
    """What the apply phase will do with a candidate.

    Attributes:
        ADOPT: Relocate into managed storage and link back.
        SKIP_MANAGED: Already managed; nothing to do.
        SKIP_LINK: Symlink pointing elsewhere; left alone.
        SKIP_SENSITIVE: Sensitive verdict; logged only.
        SKIP_IGNORED: Ignore verdict; counted only.
        SKIP_UNKNOWN: No matching rule; logged only.
        SKIP_UNRESOLVED: Adopt verdict but no usable package name.
    """

    ADOPT = "adopt"
    SKIP_MANAGED = "managed"
    SKIP_LINK = "foreign_link"
    SKIP_SENSITIVE = "sensitive"
    SKIP_IGNORED = "ignored"
    SKIP_UNKNOWN = "unknown"
    SKIP_UNRESOLVED = "unresolved"


@dataclass(frozen=True, slots=True)
class AdoptionDecision:
    """Outcome of the decide phase for one candidate.

    Attributes:
        candidate: The discovered entry.
        action: What the apply phase will do.
        verdict: Classification verdict (None for managed/foreign entries).
        package: Resolved managed package, if adoption is planned.
        reason: Human-readable explanation for skips.
    """

    candidate: Candidate
    action: DecisionAction
    verdict: Verdict | None = None
    package: ManagedPackage | None = None
    reason: str | None = None

    @property
    def rel_path(self) -> str:
        """Home-relative path of the candidate."""
        return self.candidate.rel_path

    @property
    def is_adopt(self) -> bool:
        """Check if this decision plans an adoption."""
        return self.action == DecisionAction.ADOPT


@dataclass(frozen=True, slots=True)
class AdoptionResult:
    """Result of a single adoption attempt.

    Attributes:
        rel_path: Home-relative path that was operated on.
        package: Package name the path was adopted into.
        destination: Absolute path inside managed storage.
        success: Whether the adoption completed (or would complete).
        error: Error message if the adoption failed.
        dry_run: Whether this was a preview with no filesystem change.
        rolled_back: Whether a partial change was undone after a failure.
    """

    rel_path: str
    package: str
    destination: Path
    success: bool
    error: str | None = None
    dry_run: bool = False
    rolled_back: bool = False

    @property
    def failed(self) -> bool:
        """Check if the adoption failed."""
        return not self.success


@dataclass(slots=True)
class AdoptionReport:
    """Aggregated outcome of one scan-and-adopt run.

    Attributes:
        dry_run: Whether the run was a preview.
        decisions: Every decision made during the run, in scan order.
        results: Results of attempted adoptions.
    """

    dry_run: bool = False
    decisions: list[AdoptionDecision] = field(default_factory=list)
    results: list[AdoptionResult] = field(default_factory=list)

    def _count(self, action: DecisionAction) -> int:
        return sum(1 for d in self.decisions if d.action == action)

    @property
    def adopted(self) -> int:
        """Number of successful (or, in dry-run, planned) adoptions."""
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        """Number of adoptions that failed during apply."""
        return sum(1 for r in self.results if r.failed)

    @property
    def sensitive(self) -> int:
        """Number of candidates withheld as sensitive."""
        return self._count(DecisionAction.SKIP_SENSITIVE)

    @property
    def ignored(self) -> int:
        """Number of candidates matching an ignore pattern."""
        return self._count(DecisionAction.SKIP_IGNORED)

    @property
    def managed(self) -> int:
        """Number of candidates already under managed storage."""
        return self._count(DecisionAction.SKIP_MANAGED) + self._count(DecisionAction.SKIP_LINK)

    @property
    def skipped(self) -> int:
        """Unknown, unresolvable, and failed candidates."""
        return (
            self._count(DecisionAction.SKIP_UNKNOWN)
            + self._count(DecisionAction.SKIP_UNRESOLVED)
            + self.failed
        )

    def summary(self) -> dict[str, int]:
        """Counts keyed by category, for display and logging."""
        return {
            "adopted": self.adopted,
            "sensitive": self.sensitive,
            "skipped": self.skipped,
            "ignored": self.ignored,
        }
