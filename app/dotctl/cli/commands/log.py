"""Log command for viewing the audit log.

This module provides the `dotctl log` command for viewing recent
auto-adopt and install actions.
"""

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dotctl.cli.types import get_audit_log, get_settings
from dotctl.core.audit import AuditEntry, AuditKind
from dotctl.utils.formatting import console, print_info

app = typer.Typer(
    name="log",
    help="View the auto-adopt audit log.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def log(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    kind: Annotated[
        AuditKind | None,
        typer.Option(
            "--kind",
            "-k",
            help="Only show entries of this kind.",
            case_sensitive=False,
        ),
    ] = None,
) -> None:
    """Show recent audit log entries.

    Examples:
        dotctl log              # Show last 20 entries
        dotctl log -n 50        # Show last 50 entries
        dotctl log -k ADOPTED   # Only adoptions
    """
    if ctx.invoked_subcommand is not None:
        return

    audit = get_audit_log(get_settings(ctx))
    if kind is not None:
        entries = audit.recent(kind, limit)
    else:
        entries = audit.entries()[-limit:] if limit > 0 else []

    if not entries:
        print_info(f"No audit log entries found in {audit.path}")
        return

    _print_table(entries)


def _print_table(entries: list[AuditEntry]) -> None:
    """Print audit entries as a Rich table.

    Args:
        entries: Entries to display, oldest first.
    """
    table = Table(title="Audit Log", header_style="bold_header", border_style="border")
    table.add_column("Timestamp", style="muted")
    table.add_column("Kind")
    table.add_column("Message")

    for entry in entries:
        style = f"audit.{entry.kind.value.lower()}"
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{style}]{entry.kind.value}[/]",
            escape(entry.message),
        )

    console.print(table)
