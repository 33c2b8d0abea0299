"""Run command for the auto-adopt scan.

This module provides the `dotctl run` command, which scans the home
directory and adopts new dotfiles into managed storage.
"""

from typing import Annotated

import typer

from dotctl.adopt.engine import AdoptionEngine
from dotctl.adopt.patterns import load_patterns
from dotctl.cli.display import create_report_table, print_report_summary, print_status
from dotctl.cli.types import get_audit_log, get_settings
from dotctl.core.errors import SetupError
from dotctl.utils.formatting import console, print_error, print_warning

app = typer.Typer(
    name="run",
    help="Scan home and adopt new dotfiles.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be adopted without changing anything.",
        ),
    ] = False,
    show_status: Annotated[
        bool,
        typer.Option(
            "--status",
            help="Show configuration and recent activity instead of scanning.",
        ),
    ] = False,
    require_patterns: Annotated[
        bool,
        typer.Option(
            "--require-patterns",
            help="Fail if the patterns directory does not exist.",
        ),
    ] = False,
) -> None:
    """Scan the home directory and adopt new dotfiles.

    Each dotfile is classified against the sensitive, ignore, and adopt
    pattern lists. Adoptable paths are moved into their package under the
    stow directory and replaced by a symlink. Every action is appended to
    the audit log.

    Examples:
        dotctl run              # Adopt new dotfiles
        dotctl run --dry-run    # Preview only
        dotctl run --status     # Show status
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = get_settings(ctx)
    audit = get_audit_log(settings)

    try:
        patterns = load_patterns(settings.patterns_dir, require_dir=require_patterns)
    except SetupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if show_status:
        print_status(settings, patterns, audit)
        return

    for which in patterns.missing:
        print_warning(f"Pattern file not found: {settings.patterns_dir / which.filename}")

    engine = AdoptionEngine(settings, patterns, audit, dry_run=dry_run)

    try:
        report = engine.run()
    except SetupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if report.adopted or report.failed or report.sensitive or report.skipped:
        console.print(create_report_table(report))
    print_report_summary(report, audit)
