"""Home directory scanner for auto-adopt candidates.

Discovers top-level dotfiles in the home directory and the direct
children of grouped config directories (``~/.config/<app>``), and
flags entries that are already under managed storage.
"""

import logging
import os
from pathlib import Path

from dotctl.adopt.models import Candidate
from dotctl.adopt.resolver import PackageNameResolver, ResolutionError
from dotctl.core.errors import HomeNotAccessibleError
from dotctl.core.settings import DotctlSettings

logger = logging.getLogger(__name__)


class HomeScanner:
    """Scans the home directory for adoption candidates.

    Args:
        settings: Runtime settings (home, stow and dotfiles directories).
        resolver: Resolver used to find the mirrored location of a path.
    """

    def __init__(self, settings: DotctlSettings, resolver: PackageNameResolver) -> None:
        self._settings = settings
        self._resolver = resolver
        self._home = settings.home
        self._stow_dir = settings.stow_dir
        self._excluded = {
            _real(settings.dotfiles_dir),
            _real(settings.stow_dir),
        }

    def scan(self) -> list[Candidate]:
        """Discover candidates in scan order.

        Returns:
            Candidates for dotfiles in home (depth 1) followed by the
            children of each grouped directory.

        Raises:
            HomeNotAccessibleError: If the home directory cannot be listed.
        """
        if not self._home.is_dir():
            raise HomeNotAccessibleError(self._home, "not a directory")

        try:
            entries = sorted(self._home.iterdir())
        except OSError as e:
            raise HomeNotAccessibleError(self._home, e.strerror) from e

        grouped = set(self._settings.grouped_dirs)
        candidates: list[Candidate] = []

        for entry in entries:
            if not entry.name.startswith("."):
                continue
            if entry.name in grouped and entry.is_dir() and not entry.is_symlink():
                continue
            if self._is_excluded(entry):
                continue
            candidates.append(self.inspect(entry.name))

        for group in self._settings.grouped_dirs:
            candidates.extend(self._scan_group(group))

        return candidates

    def _scan_group(self, group: str) -> list[Candidate]:
        group_dir = self._home / group
        if group_dir.is_symlink() or not group_dir.is_dir():
            return []
        try:
            entries = sorted(group_dir.iterdir())
        except OSError as e:
            logger.warning("Cannot scan %s: %s", group_dir, e)
            return []
        return [
            self.inspect(f"{group}/{entry.name}")
            for entry in entries
            if not self._is_excluded(entry)
        ]

    def inspect(self, rel_path: str) -> Candidate:
        """Build a Candidate for a single home-relative path.

        Args:
            rel_path: Path relative to the home directory.

        Returns:
            Candidate with managed and foreign-link flags set.
        """
        path = self._home / rel_path

        if path.is_symlink():
            managed = self._links_into_storage(path)
            return Candidate(
                rel_path=rel_path,
                is_dir=False,
                managed=managed,
                foreign_link=not managed,
            )

        is_dir = path.is_dir()
        managed = self._is_mirrored(rel_path) or (is_dir and self._has_managed_child(path))
        return Candidate(rel_path=rel_path, is_dir=is_dir, managed=managed)

    def _links_into_storage(self, link: Path) -> bool:
        """Check whether a symlink points inside the stow directory."""
        try:
            target = Path(os.readlink(link))
        except OSError:
            return False
        if not target.is_absolute():
            target = link.parent / target
        stow_root = _real(self._stow_dir)
        return _is_within(Path(os.path.normpath(target)), self._stow_dir) or _is_within(
            _real(target), stow_root
        )

    def _is_mirrored(self, rel_path: str) -> bool:
        """Check whether the path already exists in its package's mirrored tree."""
        try:
            package = self._resolver.resolve(rel_path)
        except ResolutionError:
            return False
        package_root = self._stow_dir / package
        return package_root.is_dir() and (package_root / rel_path).exists()

    def _has_managed_child(self, directory: Path) -> bool:
        """Check whether any direct child of a directory links into storage."""
        try:
            children = list(directory.iterdir())
        except OSError:
            return False
        return any(child.is_symlink() and self._links_into_storage(child) for child in children)

    def _is_excluded(self, entry: Path) -> bool:
        return _real(entry) in self._excluded


def _real(path: Path) -> Path:
    """Resolve a path without requiring it to exist."""
    return path.resolve(strict=False)


def _is_within(path: Path, root: Path) -> bool:
    """Check whether path equals root or lies below it."""
    return path == root or root in path.parents
