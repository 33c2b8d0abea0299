"""Adoption operator: relocate a path into managed storage and link back.

Every adoption is all-or-nothing. If any step fails (directory creation,
move, symlink, audit write) the completed steps are undone so the
original location is left as it was found.
"""

import logging
import shutil
from pathlib import Path

from dotctl.adopt.models import AdoptionResult, ManagedPackage, Verdict
from dotctl.core.audit import AuditLog

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".dotctl-backup"

# Verdicts that must never lead to relocation
_REFUSED_VERDICTS = frozenset({Verdict.SENSITIVE, Verdict.IGNORE})


class AdoptionOperator:
    """Moves home-directory entries into managed packages.

    Attributes:
        _home: Home directory the relative paths are resolved against.
        _audit: Audit log receiving one ADOPTED line per success.
        _dry_run: If True, validate and report without touching the filesystem.
    """

    def __init__(self, home: Path, audit: AuditLog | None = None, dry_run: bool = False) -> None:
        self._home = home
        self._audit = audit
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    def adopt(
        self,
        rel_path: str,
        package: ManagedPackage,
        verdict: Verdict,
        *,
        overwrite: bool = False,
    ) -> AdoptionResult:
        """Adopt one home-relative path into a package.

        Args:
            rel_path: Path relative to the home directory.
            package: Destination package.
            verdict: Classification verdict of the path.
            overwrite: Replace an existing destination entry.

        Returns:
            AdoptionResult describing the outcome.
        """
        source = self._home / rel_path
        destination = package.destination_for(rel_path)

        def failure(error: str, rolled_back: bool = False) -> AdoptionResult:
            return AdoptionResult(
                rel_path=rel_path,
                package=package.name,
                destination=destination,
                success=False,
                error=error,
                dry_run=self._dry_run,
                rolled_back=rolled_back,
            )

        if verdict in _REFUSED_VERDICTS:
            return failure(f"Refusing to adopt {verdict.value} path: {rel_path}")
        if source.is_symlink():
            return failure(f"Path is already a symlink: {rel_path}")
        if not source.exists():
            return failure(f"Path does not exist: {rel_path}")

        conflict = destination.exists() or destination.is_symlink()
        if conflict and not overwrite:
            return failure(f"Destination already exists in managed storage: {destination}")

        if self._dry_run:
            logger.info("Dry-run: would adopt %s into %s", rel_path, package.name)
            return AdoptionResult(
                rel_path=rel_path,
                package=package.name,
                destination=destination,
                success=True,
                dry_run=True,
            )

        return self._adopt(rel_path, source, destination, package, backup_existing=conflict)

    def _adopt(
        self,
        rel_path: str,
        source: Path,
        destination: Path,
        package: ManagedPackage,
        backup_existing: bool,
    ) -> AdoptionResult:
        is_dir = source.is_dir()
        created_dirs: list[Path] = []
        backup: Path | None = None
        moving = False
        relocated = False
        linked = False

        try:
            created_dirs = _make_parents(destination.parent)
            if backup_existing:
                candidate = destination.with_name(destination.name + BACKUP_SUFFIX)
                destination.rename(candidate)
                backup = candidate
            moving = True
            _relocate(source, destination, is_dir)
            relocated = True
            source.symlink_to(destination.absolute(), target_is_directory=is_dir)
            linked = True
            if self._audit is not None:
                self._audit.adopted(rel_path, package.name)
        except OSError as e:
            logger.error("Adoption of %s failed: %s", rel_path, e)
            rolled_back = _rollback(
                source, destination, moving, relocated, linked, backup, created_dirs
            )
            return AdoptionResult(
                rel_path=rel_path,
                package=package.name,
                destination=destination,
                success=False,
                error=str(e),
                rolled_back=rolled_back,
            )

        if backup is not None:
            try:
                _remove(backup)
            except OSError as e:
                logger.warning("Could not remove backup %s: %s", backup, e)

        logger.info("Adopted %s into %s", rel_path, package.name)
        return AdoptionResult(
            rel_path=rel_path,
            package=package.name,
            destination=destination,
            success=True,
        )


def _rollback(
    source: Path,
    destination: Path,
    moving: bool,
    relocated: bool,
    linked: bool,
    backup: Path | None,
    created_dirs: list[Path],
) -> bool:
    """Undo the completed steps of a failed adoption.

    Returns:
        True if every undo step succeeded.
    """
    ok = True

    try:
        if linked:
            source.unlink()
        if relocated:
            shutil.move(str(destination), str(source))
        elif moving and _present(source) and _present(destination):
            # Partial copy left behind; the original is still in place.
            _remove(destination)
    except OSError as e:
        logger.error("Rollback could not restore %s: %s", source, e)
        ok = False

    if backup is not None:
        try:
            if not _present(destination):
                backup.rename(destination)
        except OSError as e:
            logger.error("Rollback could not restore backup %s: %s", backup, e)
            ok = False

    for directory in reversed(created_dirs):
        try:
            directory.rmdir()
        except OSError:
            logger.debug("Leaving non-empty directory %s", directory)
            break

    return ok


def _make_parents(directory: Path) -> list[Path]:
    """Create a directory and its missing parents.

    Returns:
        The directories that did not exist before, outermost first.
    """
    missing: list[Path] = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent
    missing.reverse()
    directory.mkdir(parents=True, exist_ok=True)
    return missing


def _relocate(source: Path, destination: Path, is_dir: bool) -> None:
    """Move a file, or copy-then-delete a directory tree."""
    if not is_dir:
        shutil.move(str(source), str(destination))
        return

    shutil.copytree(source, destination, symlinks=True)
    try:
        shutil.rmtree(source)
    except OSError:
        # Put back whatever was already deleted before giving up.
        shutil.copytree(destination, source, symlinks=True, dirs_exist_ok=True)
        shutil.rmtree(destination)
        raise


def _present(path: Path) -> bool:
    return path.exists() or path.is_symlink()


def _remove(path: Path) -> None:
    """Remove a file, symlink, or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
