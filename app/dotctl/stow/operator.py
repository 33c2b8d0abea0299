"""GNU Stow operator.

Links, unlinks, and relinks packages of the managed tree into the home
directory by shelling out to ``stow``. Existing files that would block a
link can be moved into a timestamped backup directory first.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath

from dotctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

BACKUP_PREFIX = ".dotfiles-backup-"

# stow 2.3+ and older conflict wording
_CONFLICT_PATTERNS = (
    re.compile(r"over existing target (?P<path>.+?) since "),
    re.compile(r"existing target is [^:]+: (?P<path>.+?)(?: => .*)?$"),
)


class StowAction(str, Enum):
    """Stow operation and the flag that selects it."""

    LINK = "link"
    UNLINK = "unlink"
    RELINK = "relink"

    @property
    def flag(self) -> str:
        return {"link": "-S", "unlink": "-D", "relink": "-R"}[self.value]


@dataclass(frozen=True, slots=True)
class StowResult:
    """Result of one stow invocation.

    Attributes:
        package: Package operated on.
        action: Operation performed.
        success: Whether stow exited cleanly.
        message: Output from stow (simulated plan in dry-run mode).
        error: Error output if stow failed.
        dry_run: Whether stow ran with ``--no``.
    """

    package: str
    action: StowAction
    success: bool
    message: str | None = None
    error: str | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Check if the operation failed."""
        return not self.success


def list_packages(stow_dir: Path) -> list[str]:
    """Names of the packages in a stow directory, sorted.

    Returns:
        Package names; empty if the directory does not exist.
    """
    if not stow_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in stow_dir.iterdir()
        if entry.is_dir() and not entry.name.startswith(".")
    )


class StowOperator:
    """Operator for GNU Stow packages.

    Args:
        stow_dir: Directory holding the packages.
        target: Directory the package contents are linked into (home).
        dry_run: If True, run stow with ``--no`` so nothing changes.
    """

    _STOW_TIMEOUT: float = 120.0

    def __init__(self, stow_dir: Path, target: Path, dry_run: bool = False) -> None:
        self._stow_dir = stow_dir
        self._target = target
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    def is_available(self) -> bool:
        """Check if stow is available."""
        return command_exists("stow")

    def link(self, package: str) -> StowResult:
        return self._run(StowAction.LINK, package)

    def unlink(self, package: str) -> StowResult:
        return self._run(StowAction.UNLINK, package)

    def relink(self, package: str) -> StowResult:
        return self._run(StowAction.RELINK, package)

    def build_args(self, action: StowAction, package: str, simulate: bool = False) -> list[str]:
        """Build the stow command line for an operation."""
        args = ["stow", "-d", str(self._stow_dir), "-t", str(self._target), "-v"]
        if self._dry_run or simulate:
            args.append("--no")
        args.extend([action.flag, package])
        return args

    def find_conflicts(self, package: str) -> list[str]:
        """Target entries that would block linking a package.

        Runs a simulated link and collects the existing targets stow
        complains about. Symlinks are left out.

        Args:
            package: Package name under the stow directory.

        Returns:
            Target-relative paths of real files and directories, in report order.

        Raises:
            RuntimeError: If stow is not available or cannot be run.
            ValueError: If the package does not exist in the stow directory.
        """
        self._check_package(package)
        args = self.build_args(StowAction.LINK, package, simulate=True)

        try:
            result = run_command(args, timeout=self._STOW_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"Conflict check for {package} could not run: {e}"
            raise RuntimeError(msg) from e

        conflicts: list[str] = []
        for line in f"{result.stderr}\n{result.stdout}".splitlines():
            rel_path = _conflict_path(line)
            if rel_path is None or rel_path in conflicts:
                continue
            if PurePosixPath(rel_path).is_absolute() or ".." in PurePosixPath(rel_path).parts:
                logger.warning("Ignoring conflict outside target: %s", rel_path)
                continue
            entry = self._target / rel_path
            if entry.exists() and not entry.is_symlink():
                conflicts.append(rel_path)
        return conflicts

    def backup(self, rel_paths: list[str], backup_dir: Path) -> list[Path]:
        """Move target entries into a backup directory, keeping their layout.

        Args:
            rel_paths: Target-relative paths, usually from :meth:`find_conflicts`.
            backup_dir: Directory receiving the entries.

        Returns:
            Locations of the backed-up entries.

        Raises:
            OSError: If an entry cannot be moved. Entries already moved stay
                in the backup directory.
        """
        moved: list[Path] = []
        for rel_path in rel_paths:
            source = self._target / rel_path
            destination = backup_dir / rel_path
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(destination))
            logger.info("Backed up %s to %s", source, destination)
            moved.append(destination)
        return moved

    def _check_package(self, package: str) -> None:
        if not self.is_available():
            msg = "GNU Stow is not available on this system"
            raise RuntimeError(msg)

        if not package or "/" in package or not (self._stow_dir / package).is_dir():
            msg = f"Unknown package '{package}' in {self._stow_dir}"
            raise ValueError(msg)

    def _run(self, action: StowAction, package: str) -> StowResult:
        """Run stow for one package.

        Raises:
            RuntimeError: If stow is not available.
            ValueError: If the package does not exist in the stow directory.
        """
        self._check_package(package)

        args = self.build_args(action, package)
        logger.info("Running stow %s for %s (dry_run=%s)", action.value, package, self._dry_run)

        try:
            result = run_command(args, timeout=self._STOW_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            return StowResult(package, action, success=False, error=str(e), dry_run=self._dry_run)

        # stow -v reports its plan on stderr
        output = (result.stderr or result.stdout).strip() or None
        if result.success:
            return StowResult(package, action, success=True, message=output, dry_run=self._dry_run)
        return StowResult(
            package,
            action,
            success=False,
            error=output or f"stow exited with status {result.returncode}",
            dry_run=self._dry_run,
        )


def _conflict_path(line: str) -> str | None:
    """Extract the target path from one line of stow conflict output."""
    for pattern in _CONFLICT_PATTERNS:
        match = pattern.search(line)
        if match is not None:
            return match["path"].strip()
    return None


def backup_dir_for(target: Path, now: datetime | None = None) -> Path:
    """Timestamped backup directory inside the target directory."""
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return target / f"{BACKUP_PREFIX}{stamp}"
