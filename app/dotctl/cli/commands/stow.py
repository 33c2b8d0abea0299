"""GNU Stow commands.

Provides commands to link, unlink, and relink packages of the managed
tree into the home directory.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from dotctl.cli.types import get_settings
from dotctl.stow.operator import (
    StowAction,
    StowOperator,
    StowResult,
    backup_dir_for,
    list_packages,
)
from dotctl.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Link and unlink managed packages with GNU Stow.",
    no_args_is_help=True,
)

PackagesArg = Annotated[
    list[str] | None,
    typer.Argument(help="Packages under the stow directory. Defaults to all."),
]
DryRunOpt = Annotated[
    bool,
    typer.Option("--dry-run", "-n", help="Simulate with stow --no."),
]
ForceOpt = Annotated[
    bool,
    typer.Option("--force", "-f", help="Skip the backup of conflicting files."),
]


def _operate(
    ctx: typer.Context,
    action: StowAction,
    packages: list[str] | None,
    dry_run: bool,
    force: bool = False,
) -> None:
    """Run one stow action over the named packages, or all of them."""
    settings = get_settings(ctx)
    operator = StowOperator(settings.stow_dir, settings.home, dry_run=dry_run)

    names = packages or list_packages(settings.stow_dir)
    if not names:
        print_info(f"No packages in {settings.stow_dir}")
        return

    results: list[StowResult] = []
    try:
        if action != StowAction.UNLINK and not dry_run and not force:
            _backup_conflicts(operator, names, settings.home)
        for name in names:
            results.append(_dispatch(operator, action, name))
    except (RuntimeError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    failed = 0
    for result in results:
        if result.message:
            console.print(f"[muted]{escape(result.message)}[/muted]")
        if result.failed:
            failed += 1
            print_error(f"stow {result.action.value} {result.package} failed: {result.error}")
            continue
        verb = "Would" if result.dry_run else "Done:"
        print_success(f"{verb} {result.action.value} {result.package}")

    if failed:
        raise typer.Exit(code=1)


def _dispatch(operator: StowOperator, action: StowAction, package: str) -> StowResult:
    if action == StowAction.LINK:
        return operator.link(package)
    if action == StowAction.UNLINK:
        return operator.unlink(package)
    return operator.relink(package)


def _backup_conflicts(operator: StowOperator, packages: list[str], home: Path) -> None:
    """Move files that would block linking into one timestamped directory."""
    conflicts: list[str] = []
    for package in packages:
        found = operator.find_conflicts(package)
        if found:
            print_warning(f"Conflicts detected for package: {package}")
        conflicts.extend(path for path in found if path not in conflicts)

    if not conflicts:
        return

    backup_dir = backup_dir_for(home)
    for moved in operator.backup(conflicts, backup_dir):
        print_info(f"Backed up: {moved.relative_to(backup_dir)}")
    print_success(f"Backup created: {backup_dir}")


@app.command()
def link(
    ctx: typer.Context,
    packages: PackagesArg = None,
    dry_run: DryRunOpt = False,
    force: ForceOpt = False,
) -> None:
    """Symlink packages into the home directory.

    Existing files that would conflict are moved to
    ~/.dotfiles-backup-<timestamp>/ first unless --force is given.
    """
    _operate(ctx, StowAction.LINK, packages, dry_run, force)


@app.command()
def unlink(
    ctx: typer.Context,
    packages: PackagesArg = None,
    dry_run: DryRunOpt = False,
) -> None:
    """Remove package symlinks from the home directory."""
    _operate(ctx, StowAction.UNLINK, packages, dry_run)


@app.command()
def relink(
    ctx: typer.Context,
    packages: PackagesArg = None,
    dry_run: DryRunOpt = False,
    force: ForceOpt = False,
) -> None:
    """Remove and recreate package symlinks, backing up conflicts first."""
    _operate(ctx, StowAction.RELINK, packages, dry_run, force)


@app.command(name="list")
def list_command(ctx: typer.Context) -> None:
    """List packages in the stow directory."""
    settings = get_settings(ctx)
    packages = list_packages(settings.stow_dir)

    if not packages:
        print_info(f"No packages in {settings.stow_dir}")
        return

    for name in packages:
        console.print(name)
