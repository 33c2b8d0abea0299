"""Status command.

This module provides the `dotctl status` command, which shows pattern
counts, configured directories, and recent audit log activity.
"""

import typer

from dotctl.adopt.patterns import load_patterns
from dotctl.cli.display import print_status
from dotctl.cli.types import get_audit_log, get_settings

app = typer.Typer(
    name="status",
    help="Show auto-adopt status.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def status(ctx: typer.Context) -> None:
    """Show pattern counts, directories, last run, and recent activity."""
    if ctx.invoked_subcommand is not None:
        return

    settings = get_settings(ctx)
    print_status(settings, load_patterns(settings.patterns_dir), get_audit_log(settings))
