"""Pattern commands.

Provides commands to install the default pattern files and to list the
rules currently in effect.
"""

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dotctl.adopt.patterns import install_default_patterns, load_patterns
from dotctl.cli.types import ListChoice, get_settings
from dotctl.utils.formatting import console, format_verdict, print_info, print_success

app = typer.Typer(
    help="Manage sensitive, ignore, and adopt pattern lists.",
    no_args_is_help=True,
)


@app.command()
def init(ctx: typer.Context) -> None:
    """Install the default pattern files (existing files are kept)."""
    settings = get_settings(ctx)
    written = install_default_patterns(settings.patterns_dir)

    if not written:
        print_info(f"All pattern files already exist in {settings.patterns_dir}")
        return

    for path in written:
        print_success(f"Created {path}")


@app.command(name="list")
def list_rules(
    ctx: typer.Context,
    which: Annotated[
        ListChoice,
        typer.Option(
            "--list",
            "-l",
            help="Pattern list to show.",
            case_sensitive=False,
        ),
    ] = ListChoice.ALL,
) -> None:
    """Show the loaded rules in evaluation order."""
    settings = get_settings(ctx)
    patterns = load_patterns(settings.patterns_dir)

    table = Table(
        title=f"Patterns ({settings.patterns_dir})",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("List", width=10)
    table.add_column("#", justify="right", style="muted")
    table.add_column("Pattern", no_wrap=True)
    table.add_column("Package")

    for pattern_list in which.lists():
        for index, rule in enumerate(patterns.rules(pattern_list), start=1):
            table.add_row(
                format_verdict(pattern_list.value),
                str(index),
                escape(rule.pattern),
                rule.package_hint or "",
            )

    if table.row_count:
        console.print(table)
    else:
        print_info("No rules loaded. Run 'dotctl patterns init' to install the defaults.")

    for missing in patterns.missing:
        if missing in which.lists():
            print_info(f"Missing pattern file: {settings.patterns_dir / missing.filename}")
