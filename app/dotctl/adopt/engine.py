"""Scan-and-adopt orchestration.

A run has two phases. ``plan()`` turns scanned candidates into
decisions without touching the filesystem; ``apply()`` acts on those
decisions and writes the audit trail. Dry runs share the planning
phase unchanged and skip every write.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dotctl.adopt.classifier import Classifier
from dotctl.adopt.models import (
    AdoptionDecision,
    AdoptionReport,
    AdoptionResult,
    Candidate,
    DecisionAction,
    ManagedPackage,
    PatternSet,
    Verdict,
)
from dotctl.adopt.operator import AdoptionOperator
from dotctl.adopt.resolver import PackageNameResolver, ResolutionError
from dotctl.adopt.scanner import HomeScanner
from dotctl.core.audit import SCAN_STARTED, AuditEntry, AuditLog
from dotctl.core.errors import AuditLogUnwritableError
from dotctl.core.settings import DotctlSettings

logger = logging.getLogger(__name__)


class AdoptionRefusedError(Exception):
    """Raised when an explicitly requested adoption is not allowed."""

    def __init__(self, rel_path: str, reason: str) -> None:
        self.rel_path = rel_path
        self.reason = reason
        super().__init__(f"Cannot adopt {rel_path}: {reason}")


class AdoptionEngine:
    """Discovers, classifies, and adopts home-directory dotfiles.

    Args:
        settings: Runtime settings.
        patterns: Loaded pattern lists.
        audit: Audit log for real runs. Never written in dry-run mode.
        dry_run: Plan and report without changing anything.
        scanner: Optional scanner override.
        operator: Optional operator override.

    Example:
        >>> engine = AdoptionEngine(settings, load_patterns(settings.patterns_dir), audit)
        >>> report = engine.run()
        >>> report.summary()
        {'adopted': 1, 'sensitive': 0, 'skipped': 2, 'ignored': 5}
    """

    def __init__(
        self,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        dry_run: bool = False,
        scanner: HomeScanner | None = None,
        operator: AdoptionOperator | None = None,
    ) -> None:
        self._settings = settings
        self._patterns = patterns
        self._audit = audit
        self._dry_run = dry_run
        self._classifier = Classifier(patterns)
        self._resolver = PackageNameResolver(
            mappings=patterns.mappings,
            grouped_dirs=settings.grouped_dirs,
        )
        self._scanner = scanner or HomeScanner(settings, self._resolver)
        self._operator = operator or AdoptionOperator(
            settings.home,
            audit=None if dry_run else audit,
            dry_run=dry_run,
        )

    @property
    def dry_run(self) -> bool:
        """Check if engine is in dry-run mode."""
        return self._dry_run

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    @property
    def resolver(self) -> PackageNameResolver:
        return self._resolver

    def package(self, name: str) -> ManagedPackage:
        """Managed package handle for a name under the stow directory."""
        return ManagedPackage(name=name, root=self._settings.stow_dir / name)

    # -------------------------------------------------------------------------
    # Decide
    # -------------------------------------------------------------------------

    def decide(self, candidate: Candidate) -> AdoptionDecision:
        """Decide what to do with one candidate.

        Args:
            candidate: Entry discovered by the scanner.

        Returns:
            AdoptionDecision; never raises for per-item problems.
        """
        if candidate.managed:
            return AdoptionDecision(candidate, DecisionAction.SKIP_MANAGED)
        if candidate.foreign_link:
            return AdoptionDecision(
                candidate,
                DecisionAction.SKIP_LINK,
                reason="symlink outside managed storage",
            )

        verdict = self._classifier.verdict(candidate.rel_path)

        if verdict == Verdict.SENSITIVE:
            return AdoptionDecision(
                candidate,
                DecisionAction.SKIP_SENSITIVE,
                verdict=verdict,
                reason="not adopted for security",
            )
        if verdict == Verdict.IGNORE:
            return AdoptionDecision(candidate, DecisionAction.SKIP_IGNORED, verdict=verdict)
        if verdict == Verdict.UNKNOWN:
            return AdoptionDecision(
                candidate,
                DecisionAction.SKIP_UNKNOWN,
                verdict=verdict,
                reason="unknown pattern",
            )

        try:
            name = self._resolver.resolve(candidate.rel_path)
        except ResolutionError as e:
            return AdoptionDecision(
                candidate,
                DecisionAction.SKIP_UNRESOLVED,
                verdict=verdict,
                reason=str(e),
            )

        return AdoptionDecision(
            candidate,
            DecisionAction.ADOPT,
            verdict=verdict,
            package=self.package(name),
        )

    def plan(self, candidates: list[Candidate]) -> list[AdoptionDecision]:
        """Decide every candidate, preserving scan order."""
        return [self.decide(candidate) for candidate in candidates]

    # -------------------------------------------------------------------------
    # Apply
    # -------------------------------------------------------------------------

    def apply(self, decisions: list[AdoptionDecision]) -> AdoptionReport:
        """Act on planned decisions.

        Each adoption is independent: a failure is rolled back, recorded,
        and the batch continues.

        Args:
            decisions: Output of :meth:`plan`.

        Returns:
            AdoptionReport with per-item results.
        """
        report = AdoptionReport(dry_run=self._dry_run, decisions=list(decisions))

        for decision in decisions:
            rel_path = decision.rel_path

            if decision.action == DecisionAction.SKIP_SENSITIVE:
                logger.info("Sensitive, not adopting: %s", rel_path)
                self._record(self._audit.sensitive, rel_path)

            elif decision.action == DecisionAction.SKIP_UNKNOWN:
                logger.debug("No pattern matched: %s", rel_path)
                self._record(self._audit.skipped, rel_path)

            elif decision.action == DecisionAction.SKIP_UNRESOLVED:
                logger.warning("Could not determine package name for: %s", rel_path)
                self._record(
                    self._audit.warn,
                    f"Could not determine package name for: {rel_path}",
                    path=rel_path,
                )

            elif decision.is_adopt and decision.package is not None:
                result = self._operator.adopt(
                    rel_path, decision.package, decision.verdict or Verdict.ADOPT
                )
                if result.failed:
                    self._record(
                        self._audit.failed_adoption,
                        rel_path,
                        decision.package.name,
                        result.error or "unknown error",
                    )
                report.results.append(result)

        return report

    def _record(self, write: Callable[..., AuditEntry], *args: Any, **kwargs: Any) -> None:
        """Append an audit line, logging instead of raising on I/O errors.

        Does nothing in dry-run mode.
        """
        if self._dry_run:
            return
        try:
            write(*args, **kwargs)
        except OSError as e:
            logger.warning("Failed to write audit log %s: %s", self._audit.path, e)

    def run(self) -> AdoptionReport:
        """Scan the home directory and adopt everything that qualifies.

        Returns:
            AdoptionReport for the whole scan.

        Raises:
            SetupError: If the home directory cannot be scanned, or the audit
                log cannot be written before any change is made. Nothing is
                adopted in either case.
        """
        candidates = self._scanner.scan()
        logger.info("Scanning %d candidate(s) (dry_run=%s)", len(candidates), self._dry_run)

        if not self._dry_run:
            try:
                self._audit.info(f"{SCAN_STARTED} (dry_run=false)")
            except OSError as e:
                raise AuditLogUnwritableError(self._audit.path, str(e)) from e
            for which in self._patterns.missing:
                self._record(
                    self._audit.info,
                    f"Pattern file not found: {self._settings.patterns_dir / which.filename}",
                )

        report = self.apply(self.plan(candidates))

        summary = report.summary()
        self._record(
            self._audit.info,
            "Scan complete: " + ", ".join(f"{key}={value}" for key, value in summary.items()),
        )

        return report

    # -------------------------------------------------------------------------
    # Manual add
    # -------------------------------------------------------------------------

    def relative_to_home(self, path: Path) -> str:
        """Convert a user-supplied path into a home-relative path.

        Args:
            path: Absolute path, ``~``-prefixed path, or a path relative to home.

        Returns:
            Home-relative path string.

        Raises:
            AdoptionRefusedError: If the path lies outside the home directory.
        """
        home = self._settings.home
        expanded = path.expanduser()
        absolute = expanded if expanded.is_absolute() else home / expanded
        # Normalize ".." without following the final symlink.
        absolute = absolute.parent.resolve(strict=False) / absolute.name
        home_real = home.resolve(strict=False)

        try:
            rel = absolute.relative_to(home_real)
        except ValueError:
            raise AdoptionRefusedError(
                str(path), "path must be inside the home directory"
            ) from None

        rel_path = rel.as_posix()
        if rel_path in ("", "."):
            raise AdoptionRefusedError(str(path), "cannot adopt the home directory itself")
        return rel_path

    def adopt_path(
        self,
        rel_path: str,
        package: str | None = None,
        overwrite: bool = False,
    ) -> AdoptionResult:
        """Adopt one explicitly named path.

        Unknown verdicts are allowed here since the user asked for the path
        by name; sensitive and ignored paths are still refused.

        Args:
            rel_path: Home-relative path.
            package: Package name override; resolved from the path if omitted.
            overwrite: Replace an existing entry in managed storage.

        Returns:
            AdoptionResult for the path.

        Raises:
            AdoptionRefusedError: If the path is sensitive, ignored, or already managed.
            ResolutionError: If no package name can be derived.
        """
        candidate = self._scanner.inspect(rel_path)
        if candidate.managed:
            raise AdoptionRefusedError(rel_path, "already managed")
        if candidate.foreign_link:
            raise AdoptionRefusedError(rel_path, "path is a symlink")

        classification = self._classifier.classify(rel_path)
        if classification.verdict == Verdict.SENSITIVE:
            raise AdoptionRefusedError(rel_path, "matches a sensitive pattern")
        if classification.verdict == Verdict.IGNORE:
            raise AdoptionRefusedError(rel_path, "matches an ignore pattern")

        name = package or self._resolver.resolve(rel_path)
        if name in (".", "..") or "/" in name:
            raise ResolutionError(rel_path, name)
        result = self._operator.adopt(
            rel_path, self.package(name), classification.verdict, overwrite=overwrite
        )
        if result.failed:
            self._record(
                self._audit.failed_adoption, rel_path, name, result.error or "unknown error"
            )
        return result
