"""Observed install state scanner.

Queries Homebrew, the Mac App Store CLI, and the applications directory
once per run and freezes the answers into an ObservedInstallState. It can
also dump the current installation as a Brewfile.
"""

import logging
import subprocess
from pathlib import Path

from dotctl.brew.models import ObservedInstallState
from dotctl.utils.shell import CommandResult, command_exists, output_lines, run_command

logger = logging.getLogger(__name__)

_BUNDLE_SUFFIX = ".app"


class BrewScanner:
    """Scanner for the observed macOS install state.

    Args:
        applications_dir: Directory holding application bundles.

    Example:
        >>> scanner = BrewScanner(Path("/Applications"))
        >>> if scanner.is_available():
        ...     state = scanner.observe()
        ...     print(len(state.formulae))
    """

    _QUERY_TIMEOUT = 120.0

    def __init__(self, applications_dir: Path) -> None:
        self._applications_dir = applications_dir

    def is_available(self) -> bool:
        """Check if brew is available."""
        return command_exists("brew")

    def mas_available(self) -> bool:
        """Check if the mas CLI is available."""
        return command_exists("mas")

    def observe(self) -> ObservedInstallState:
        """Snapshot the current install state.

        Returns:
            ObservedInstallState for this run.

        Raises:
            RuntimeError: If brew is not available or a brew query fails.
        """
        if not self.is_available():
            msg = "Homebrew is not available on this system"
            raise RuntimeError(msg)

        taps = self._brew_lines(["brew", "tap"])
        formulae = self._brew_lines(["brew", "list", "--formula", "-1"])
        casks = self._brew_lines(["brew", "list", "--cask", "-1"])

        mas_available = self.mas_available()
        mas_ids = self._mas_ids() if mas_available else frozenset()

        return ObservedInstallState(
            taps=frozenset(taps),
            formulae=frozenset(formulae),
            casks=frozenset(casks),
            mas_ids=mas_ids,
            app_bundles=self.app_bundles(),
            mas_available=mas_available,
        )

    def _run(self, args: list[str]) -> CommandResult:
        try:
            return run_command(args, timeout=self._QUERY_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"{' '.join(args)} could not run: {e}"
            raise RuntimeError(msg) from e

    def _brew_lines(self, args: list[str]) -> list[str]:
        result = self._run(args)
        if not result.success:
            msg = f"{' '.join(args)} failed: {result.stderr.strip()}"
            raise RuntimeError(msg)
        return output_lines(result)

    def _mas_ids(self) -> frozenset[int]:
        """Parse ``mas list`` output (``497799835  Xcode  (15.0)``)."""
        result = self._run(["mas", "list"])
        if not result.success:
            logger.warning("mas list failed: %s", result.stderr.strip())
            return frozenset()

        ids: set[int] = set()
        for line in output_lines(result):
            token = line.split(maxsplit=1)[0]
            if token.isdigit():
                ids.add(int(token))
            else:
                logger.debug("Skipping malformed mas line: %r", line[:100])
        return frozenset(ids)

    def app_bundle_names(self) -> tuple[str, ...]:
        """Bundle names in the applications directory as found on disk.

        Symlinked bundles count as present.
        """
        try:
            entries = list(self._applications_dir.iterdir())
        except OSError as e:
            logger.warning("Cannot list %s: %s", self._applications_dir, e)
            return ()

        return tuple(
            sorted(
                entry.name
                for entry in entries
                if entry.name.lower().endswith(_BUNDLE_SUFFIX)
                and (entry.is_dir() or entry.is_symlink())
            )
        )

    def app_bundles(self) -> frozenset[str]:
        """Lowercased bundle names in the applications directory."""
        return frozenset(name.lower() for name in self.app_bundle_names())

    def export_brewfile(self, path: Path) -> Path:
        """Write the current installation as a Brewfile with ``brew bundle dump``.

        Args:
            path: Destination file; overwritten if it exists.

        Returns:
            The written path.

        Raises:
            RuntimeError: If brew is not available or the dump fails.
        """
        if not self.is_available():
            msg = "Homebrew is not available on this system"
            raise RuntimeError(msg)

        path.parent.mkdir(parents=True, exist_ok=True)
        result = self._run(["brew", "bundle", "dump", f"--file={path}", "--force"])
        if not result.success:
            msg = f"brew bundle dump failed: {result.stderr.strip()}"
            raise RuntimeError(msg)
        logger.info("Exported current installation to %s", path)
        return path
