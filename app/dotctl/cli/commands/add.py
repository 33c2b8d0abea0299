"""Add command for adopting a single path by hand.

This module provides the `dotctl add` command, which moves one named
path into managed storage and links it back.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.adopt.engine import AdoptionEngine, AdoptionRefusedError
from dotctl.adopt.patterns import load_patterns
from dotctl.adopt.resolver import ResolutionError
from dotctl.cli.types import get_audit_log, get_settings
from dotctl.utils.formatting import console, print_error, print_info, print_success


def add(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="File or directory to adopt (must be inside home)."),
    ],
    package: Annotated[
        str | None,
        typer.Argument(help="Package name (inferred from the path if omitted)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Replace an existing copy in managed storage.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would happen without changing anything.",
        ),
    ] = False,
) -> None:
    """Adopt one file or directory into a stow package.

    Unlike `dotctl run`, paths that match no pattern can be added. Sensitive
    and ignored paths are always refused.

    Examples:
        dotctl add ~/.claude/CLAUDE.md
        dotctl add ~/.config/myapp/config.json myapp
        dotctl add ~/.wezterm.lua --force
    """
    settings = get_settings(ctx)
    audit = get_audit_log(settings)
    engine = AdoptionEngine(settings, load_patterns(settings.patterns_dir), audit, dry_run=dry_run)

    try:
        rel_path = engine.relative_to_home(path)
        result = engine.adopt_path(rel_path, package=package, overwrite=force)
    except (AdoptionRefusedError, ResolutionError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(f"  Relative path:  ~/{rel_path}")
    console.print(f"  Package name:   {result.package}")
    console.print(f"  Stow location:  {result.destination}")

    if result.failed:
        print_error(result.error or "Adoption failed")
        if result.rolled_back:
            print_info("Partial changes were rolled back.")
        raise typer.Exit(code=1)

    if result.dry_run:
        print_info(f"Dry run: would adopt {rel_path} into {result.package}")
        return

    print_success(f"Adopted {rel_path} into {result.package}")
