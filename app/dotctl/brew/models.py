"""Homebrew convergence models.

This module defines the declared desired state (parsed from a Brewfile),
the observed install state (queried from Homebrew, mas, and the
applications directory), and the plan and results that connect them.
"""

from dataclasses import dataclass, field
from enum import Enum


class BrewKind(str, Enum):
    """Kind of Brewfile entry, declared in install order.

    Attributes:
        TAP: Third-party Homebrew repository.
        BREW: Formula (command-line tool or library).
        CASK: Application bundle or installer.
        MAS: Mac App Store application, identified by numeric id.
    """

    TAP = "tap"
    BREW = "brew"
    CASK = "cask"
    MAS = "mas"

    @property
    def order(self) -> int:
        """Position of this kind in the install sequence."""
        return list(BrewKind).index(self)


@dataclass(frozen=True, slots=True)
class BrewfileEntry:
    """One declared package from the Brewfile.

    Attributes:
        kind: Entry kind.
        name: Tap, formula, or cask name; display name for mas apps.
        mas_id: App Store id (mas entries only).
    """

    kind: BrewKind
    name: str
    mas_id: int | None = None

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.name:
            msg = "Brewfile entry name cannot be empty"
            raise ValueError(msg)
        if self.kind == BrewKind.MAS and self.mas_id is None:
            msg = f"mas entry '{self.name}' requires an id"
            raise ValueError(msg)

    @property
    def short_name(self) -> str:
        """Name without a tap prefix (``user/tap/tool`` -> ``tool``)."""
        if self.kind == BrewKind.TAP:
            return self.name
        return self.name.rsplit("/", 1)[-1]

    @property
    def label(self) -> str:
        """Human-readable identifier, e.g. ``cask wezterm``."""
        if self.kind == BrewKind.MAS:
            return f"mas {self.name} ({self.mas_id})"
        return f"{self.kind.value} {self.name}"


@dataclass(frozen=True, slots=True)
class DesiredPackageSpec:
    """Immutable snapshot of everything the Brewfile declares.

    Attributes:
        entries: Entries in file order.
    """

    entries: tuple[BrewfileEntry, ...] = ()

    def of_kind(self, kind: BrewKind) -> tuple[BrewfileEntry, ...]:
        """Entries of one kind, in file order."""
        return tuple(e for e in self.entries if e.kind == kind)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class ObservedInstallState:
    """Immutable snapshot of what is installed right now.

    Attributes:
        taps: Tapped repositories.
        formulae: Installed formula names.
        casks: Installed cask tokens.
        mas_ids: Installed App Store ids.
        app_bundles: Lowercased ``.app`` names in the applications directory.
        mas_available: Whether the mas CLI could be queried.
    """

    taps: frozenset[str] = frozenset()
    formulae: frozenset[str] = frozenset()
    casks: frozenset[str] = frozenset()
    mas_ids: frozenset[int] = frozenset()
    app_bundles: frozenset[str] = frozenset()
    mas_available: bool = False

    def has_app(self, app_name: str) -> bool:
        """Check for an application bundle, case-insensitively."""
        return app_name.lower() in self.app_bundles


class ArtifactKind(str, Enum):
    """What a cask installs, as reported by ``brew info --cask``."""

    APP = "app"
    INSTALLER = "installer"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class CaskArtifact:
    """Primary artifact of a cask.

    Attributes:
        kind: Artifact kind.
        app_name: Bundle name in the applications directory (APP only).
        alias: Source name when the artifact is renamed on install.
    """

    kind: ArtifactKind
    app_name: str | None = None
    alias: str | None = None


@dataclass(frozen=True, slots=True)
class UntrackedApp:
    """An application bundle that no Brewfile entry accounts for.

    Attributes:
        bundle: Bundle name as found on disk, e.g. ``Obsidian.app``.
        suggested_cask: Likely cask token derived from the bundle name.
    """

    bundle: str
    suggested_cask: str


@dataclass(frozen=True, slots=True)
class AppAuditReport:
    """Applications directory compared against the Brewfile.

    Attributes:
        tracked: Bundles provided by a declared cask or App Store entry.
        untracked: Bundles nothing in the Brewfile provides.
    """

    tracked: tuple[str, ...] = ()
    untracked: tuple[UntrackedApp, ...] = ()


class ConvergenceState(str, Enum):
    """Outcome of comparing one desired entry against observed state.

    Attributes:
        TO_INSTALL: Missing; the install phase will act on it.
        SATISFIED: Already present.
        UNVERIFIABLE: Presence cannot be determined; skipped.
    """

    TO_INSTALL = "to_install"
    SATISFIED = "already_satisfied"
    UNVERIFIABLE = "unverifiable"


@dataclass(frozen=True, slots=True)
class ConvergenceItem:
    """Plan line for one Brewfile entry.

    Attributes:
        entry: The declared entry.
        state: Convergence state.
        reason: Short explanation shown to the user.
    """

    entry: BrewfileEntry
    state: ConvergenceState
    reason: str = ""


@dataclass(frozen=True, slots=True)
class ConvergencePlan:
    """Per-entry convergence states, ordered taps, formulae, casks, mas.

    Attributes:
        items: Plan lines in install order.
    """

    items: tuple[ConvergenceItem, ...] = ()

    def _with_state(self, state: ConvergenceState) -> tuple[ConvergenceItem, ...]:
        return tuple(item for item in self.items if item.state == state)

    @property
    def to_install(self) -> tuple[ConvergenceItem, ...]:
        return self._with_state(ConvergenceState.TO_INSTALL)

    @property
    def satisfied(self) -> tuple[ConvergenceItem, ...]:
        return self._with_state(ConvergenceState.SATISFIED)

    @property
    def unverifiable(self) -> tuple[ConvergenceItem, ...]:
        return self._with_state(ConvergenceState.UNVERIFIABLE)

    @property
    def is_converged(self) -> bool:
        """Check if nothing is left to install."""
        return not self.to_install


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Result of installing one entry.

    Attributes:
        entry: The entry that was installed.
        success: Whether the install command succeeded.
        message: Optional success message.
        error: Error output if the install failed.
        dry_run: Whether the install was only simulated.
    """

    entry: BrewfileEntry
    success: bool
    message: str | None = None
    error: str | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Check if the install failed."""
        return not self.success


@dataclass(slots=True)
class InstallReport:
    """Aggregated outcome of one install batch.

    Attributes:
        dry_run: Whether installs were simulated.
        results: Per-entry results in install order.
    """

    dry_run: bool = False
    results: list[InstallResult] = field(default_factory=list)

    @property
    def installed(self) -> list[InstallResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[InstallResult]:
        return [r for r in self.results if r.failed]
