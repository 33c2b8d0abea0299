"""Settings commands.

Provides commands to show the effective settings and to write them to
the settings file.
"""

from typing import Annotated

import typer
from rich.table import Table

from dotctl.cli.types import get_settings
from dotctl.core.paths import get_settings_path
from dotctl.core.settings import SettingsError, save_settings
from dotctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and initialize dotctl settings.",
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the effective settings."""
    settings = get_settings(ctx)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold_header")
    table.add_column("Value")

    for key, value in settings.model_dump().items():
        if isinstance(value, tuple):
            value = ", ".join(value)
        table.add_row(key, str(value))

    console.print(table)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing settings file."),
    ] = False,
) -> None:
    """Write the effective settings to the settings file."""
    settings = get_settings(ctx)
    path = ctx.obj.get("config_path") or get_settings_path()

    if path.exists() and not force:
        print_info(f"Settings file already exists: {path} (use --force to overwrite)")
        return

    try:
        save_settings(settings, path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Settings written to {path}")
