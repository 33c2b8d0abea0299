"""Reverse check: installed applications the Brewfile does not declare.

Convergence asks what the Brewfile wants that is missing. The inventory
asks the opposite: which bundles in the applications directory were
installed by hand and never recorded.
"""

import logging
from collections.abc import Iterable

from dotctl.brew.artifacts import lookup_cask_artifact
from dotctl.brew.convergence import ArtifactLookup
from dotctl.brew.models import (
    AppAuditReport,
    ArtifactKind,
    BrewKind,
    DesiredPackageSpec,
    UntrackedApp,
)

logger = logging.getLogger(__name__)

# Shipped with macOS or Xcode, never worth declaring
SYSTEM_APPS: frozenset[str] = frozenset(
    {"safari.app", "utilities", "developer", "testflight.app"}
)

_BUNDLE_SUFFIX = ".app"


def suggest_cask_token(bundle: str) -> str:
    """Guess the cask token for a bundle (``Visual Studio Code.app`` -> ``visual-studio-code``)."""
    name = bundle[: -len(_BUNDLE_SUFFIX)] if bundle.lower().endswith(_BUNDLE_SUFFIX) else bundle
    return "-".join(name.lower().split())


class AppInventory:
    """Finds application bundles that no Brewfile entry provides.

    A bundle counts as tracked when a declared cask token matches its
    suggested token, when a ``mas`` entry carries its name, or when a
    declared cask's artifact installs it. Artifacts are only looked up
    if the cheaper name checks leave something unaccounted for.

    Args:
        artifact_lookup: Resolves a cask token to its primary artifact.
        ignored: Lowercased bundle names to leave out of the report.
    """

    def __init__(
        self,
        artifact_lookup: ArtifactLookup = lookup_cask_artifact,
        ignored: frozenset[str] = SYSTEM_APPS,
    ) -> None:
        self._artifact_lookup = artifact_lookup
        self._ignored = ignored

    def audit(self, desired: DesiredPackageSpec, bundles: Iterable[str]) -> AppAuditReport:
        """Split installed bundles into tracked and untracked.

        Args:
            desired: Entries parsed from the Brewfile.
            bundles: Bundle names found in the applications directory.

        Returns:
            AppAuditReport with both lists sorted case-insensitively.
        """
        casks = desired.of_kind(BrewKind.CASK)
        tokens = {entry.short_name.lower() for entry in casks}
        store_names = {
            f"{entry.name.lower()}{_BUNDLE_SUFFIX}" for entry in desired.of_kind(BrewKind.MAS)
        }

        tracked: list[str] = []
        pending: list[str] = []
        for bundle in sorted(bundles, key=str.lower):
            key = bundle.lower()
            if key in self._ignored:
                continue
            if suggest_cask_token(bundle) in tokens or key in store_names:
                tracked.append(bundle)
            else:
                pending.append(bundle)

        if pending:
            matched = {suggest_cask_token(bundle) for bundle in tracked}
            provided = self._provided_bundles(
                entry.short_name for entry in casks if entry.short_name.lower() not in matched
            )
            still_pending = []
            for bundle in pending:
                (tracked if bundle.lower() in provided else still_pending).append(bundle)
            pending = still_pending

        logger.debug("App audit: %d tracked, %d untracked", len(tracked), len(pending))
        return AppAuditReport(
            tracked=tuple(sorted(tracked, key=str.lower)),
            untracked=tuple(UntrackedApp(b, suggest_cask_token(b)) for b in pending),
        )

    def _provided_bundles(self, casks: Iterable[str]) -> set[str]:
        """Lowercased bundle names installed by the given casks."""
        provided: set[str] = set()
        for cask in casks:
            artifact = self._artifact_lookup(cask)
            if artifact.kind != ArtifactKind.APP:
                continue
            for name in (artifact.app_name, artifact.alias):
                if name:
                    provided.add(name.lower())
        return provided
