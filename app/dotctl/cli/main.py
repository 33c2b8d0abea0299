"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from dotctl import __version__
from dotctl.cli.commands import (
    add,
    brew,
    classify,
    config,
    log,
    patterns,
    run,
    schedule,
    status,
    stow,
)
from dotctl.core.settings import SettingsError, load_settings
from dotctl.utils.formatting import err_console, print_error, set_quiet

# Create main Typer app
app = typer.Typer(
    name="dotctl",
    help="Dotfiles auto-adopt and Homebrew convergence for macOS.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dotctl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr.

    Args:
        verbose: Show DEBUG records instead of warnings only.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Settings file (default: ~/.config/dotctl/config.toml).",
        ),
    ] = None,
) -> None:
    """dotctl - Keep a macOS home directory converged with its dotfiles repo.

    New dotfiles are classified and adopted into GNU Stow packages, and the
    Brewfile is installed without reinstalling what is already present.
    """
    configure_logging(verbose)
    set_quiet(quiet)

    try:
        settings = load_settings(config_path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path
    ctx.obj["settings"] = settings


# Register commands
app.add_typer(run.app, name="run")
app.add_typer(status.app, name="status")
app.add_typer(log.app, name="log")
app.command(name="classify")(classify.classify)
app.command(name="add")(add.add)
app.add_typer(patterns.app, name="patterns")
app.add_typer(brew.app, name="brew")
app.add_typer(stow.app, name="stow")
app.add_typer(schedule.app, name="schedule")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
