"""Convergence checking between the Brewfile and the installed system.

The checker compares a DesiredPackageSpec against an ObservedInstallState
and produces a ConvergencePlan; ``converge`` installs the missing delta.
Because both inputs are snapshots, checking again after a successful
install (with a fresh observation) yields nothing to install.
"""

import logging
from collections.abc import Callable

from dotctl.brew.artifacts import lookup_cask_artifact
from dotctl.brew.models import (
    ArtifactKind,
    BrewfileEntry,
    BrewKind,
    CaskArtifact,
    ConvergenceItem,
    ConvergencePlan,
    ConvergenceState,
    DesiredPackageSpec,
    InstallReport,
    ObservedInstallState,
)
from dotctl.brew.operator import BrewOperator
from dotctl.core.audit import AuditKind, AuditLog

logger = logging.getLogger(__name__)

ArtifactLookup = Callable[[str], CaskArtifact]


class ConvergenceChecker:
    """Computes which declared entries still need installing.

    Args:
        observed: Snapshot of the installed state.
        artifact_lookup: Resolves a cask token to its primary artifact.
            Only consulted for casks Homebrew does not list as installed.
    """

    def __init__(
        self,
        observed: ObservedInstallState,
        artifact_lookup: ArtifactLookup = lookup_cask_artifact,
    ) -> None:
        self._observed = observed
        self._artifact_lookup = artifact_lookup

    def check(self, desired: DesiredPackageSpec) -> ConvergencePlan:
        """Build the convergence plan.

        Args:
            desired: Entries parsed from the Brewfile.

        Returns:
            ConvergencePlan ordered taps, formulae, casks, mas apps, with
            file order preserved inside each kind.
        """
        ordered = sorted(desired.entries, key=lambda e: e.kind.order)
        return ConvergencePlan(items=tuple(self.check_entry(e) for e in ordered))

    def check_entry(self, entry: BrewfileEntry) -> ConvergenceItem:
        """Determine the convergence state of one entry."""
        observed = self._observed

        if entry.kind == BrewKind.TAP:
            if entry.name in observed.taps:
                return _satisfied(entry, "already tapped")
            return _to_install(entry)

        if entry.kind == BrewKind.BREW:
            if entry.name in observed.formulae or entry.short_name in observed.formulae:
                return _satisfied(entry, "already installed")
            return _to_install(entry)

        if entry.kind == BrewKind.CASK:
            return self._check_cask(entry)

        if not observed.mas_available:
            return ConvergenceItem(entry, ConvergenceState.UNVERIFIABLE, "mas CLI not installed")
        if entry.mas_id in observed.mas_ids:
            return _satisfied(entry, "already installed")
        return _to_install(entry)

    def _check_cask(self, entry: BrewfileEntry) -> ConvergenceItem:
        observed = self._observed
        if entry.name in observed.casks or entry.short_name in observed.casks:
            return _satisfied(entry, "managed by Homebrew")

        artifact = self._artifact_lookup(entry.name)

        if artifact.kind == ArtifactKind.APP and artifact.app_name:
            for name in (artifact.app_name, artifact.alias):
                if name and observed.has_app(name):
                    return _satisfied(entry, f"{name} already in Applications")
            return _to_install(entry)

        if artifact.kind == ArtifactKind.INSTALLER:
            return ConvergenceItem(
                entry, ConvergenceState.UNVERIFIABLE, "package installer, can't verify"
            )

        return _to_install(entry)


def _satisfied(entry: BrewfileEntry, reason: str) -> ConvergenceItem:
    return ConvergenceItem(entry, ConvergenceState.SATISFIED, reason)


def _to_install(entry: BrewfileEntry) -> ConvergenceItem:
    return ConvergenceItem(entry, ConvergenceState.TO_INSTALL, "not installed")


def _first_line(text: str | None) -> str:
    lines = (text or "").strip().splitlines()
    return lines[0] if lines else "unknown error"


def converge(
    plan: ConvergencePlan,
    operator: BrewOperator,
    audit: AuditLog | None = None,
) -> InstallReport:
    """Install every TO_INSTALL entry of a plan.

    Failures are recorded and the batch continues. Successful and failed
    installs are appended to the audit log on real runs; errors while
    writing the log are logged but do not interrupt the batch.

    Args:
        plan: Plan from :meth:`ConvergenceChecker.check`.
        operator: Installer to use.
        audit: Audit log, or None to skip recording.

    Returns:
        InstallReport with one result per attempted entry.

    Raises:
        RuntimeError: If brew is not available and the run is not a dry run.
    """
    entries = [item.entry for item in plan.to_install]
    report = InstallReport(dry_run=operator.dry_run)
    if not entries:
        return report

    report.results.extend(operator.install_all(entries))

    if audit is not None and not operator.dry_run:
        try:
            for result in report.results:
                if result.success:
                    audit.record(AuditKind.INSTALLED, result.entry.label)
                else:
                    message = f"{result.entry.label} ({_first_line(result.error)})"
                    audit.record(AuditKind.FAILED, message)
        except OSError as e:
            logger.warning("Failed to record installs to audit log: %s", e)

    return report
