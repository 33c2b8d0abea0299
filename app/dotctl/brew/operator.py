"""Homebrew and mas installer.

Installs one Brewfile entry at a time so a single failure never aborts
the rest of the batch.
"""

import logging
import subprocess

from dotctl.brew.models import BrewfileEntry, BrewKind, InstallResult
from dotctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_INSTALL_COMMANDS: dict[BrewKind, tuple[str, ...]] = {
    BrewKind.TAP: ("brew", "tap"),
    BrewKind.BREW: ("brew", "install"),
    BrewKind.CASK: ("brew", "install", "--cask"),
}


class BrewOperator:
    """Operator for Homebrew taps, formulae, casks, and mas apps.

    Attributes:
        dry_run: If True, report what would be installed without running anything.
    """

    # Timeout for a single install (15 minutes; large casks are slow)
    _INSTALL_TIMEOUT: float = 900.0

    def __init__(self, dry_run: bool = False) -> None:
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    def is_available(self) -> bool:
        """Check if brew is available."""
        return command_exists("brew")

    @staticmethod
    def install_args(entry: BrewfileEntry) -> list[str]:
        """Build the install command for an entry."""
        if entry.kind == BrewKind.MAS:
            return ["mas", "install", str(entry.mas_id)]
        return [*_INSTALL_COMMANDS[entry.kind], entry.name]

    def install(self, entry: BrewfileEntry) -> InstallResult:
        """Install a single entry.

        Args:
            entry: Brewfile entry to install.

        Returns:
            InstallResult; command failures are reported, not raised.
        """
        args = self.install_args(entry)

        if self._dry_run:
            return InstallResult(
                entry=entry,
                success=True,
                message=f"Would run: {' '.join(args)}",
                dry_run=True,
            )

        logger.info("Installing %s", entry.label)
        try:
            result = run_command(args, timeout=self._INSTALL_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Install of %s failed: %s", entry.label, e)
            return InstallResult(entry=entry, success=False, error=str(e))

        if result.success:
            return InstallResult(entry=entry, success=True, message="Installed")

        error = result.stderr.strip() or f"{args[0]} exited with status {result.returncode}"
        logger.error("Install of %s failed: %s", entry.label, error)
        return InstallResult(entry=entry, success=False, error=error)

    def install_all(self, entries: list[BrewfileEntry]) -> list[InstallResult]:
        """Install entries in order, continuing past failures.

        Raises:
            RuntimeError: If brew is not available.
        """
        if not self._dry_run and not self.is_available():
            msg = "Homebrew is not available on this system"
            raise RuntimeError(msg)
        return [self.install(entry) for entry in entries]
