"""Schedule commands for the launchd agent.

Provides commands to install, remove, and inspect the agent that runs
`dotctl run` periodically.
"""

import typer

from dotctl.cli.types import get_settings
from dotctl.schedule.launchd import LaunchdScheduler
from dotctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the periodic auto-adopt agent (launchd).",
    no_args_is_help=True,
)


@app.command()
def install(ctx: typer.Context) -> None:
    """Install and load the agent."""
    settings = get_settings(ctx)
    scheduler = LaunchdScheduler(settings, ctx.obj.get("config_path"))

    try:
        path = scheduler.install()
    except (RuntimeError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    hours = settings.schedule_interval / 3600
    print_success(f"Auto-adopt agent installed: {path}")
    console.print(f"The agent runs at load, at login, and every {hours:g} hour(s).")


@app.command()
def uninstall(ctx: typer.Context) -> None:
    """Unload and remove the agent."""
    scheduler = LaunchdScheduler(get_settings(ctx))

    try:
        removed = scheduler.uninstall()
    except (RuntimeError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if removed:
        print_success("Auto-adopt agent removed.")
    else:
        print_info("Auto-adopt agent is not installed.")


@app.command()
def status(ctx: typer.Context) -> None:
    """Show whether the agent is installed and loaded."""
    agent = LaunchdScheduler(get_settings(ctx)).status()

    console.print(f"Plist:     {agent.plist_path}")
    console.print(f"Installed: {'[success]yes[/]' if agent.installed else '[warning]no[/]'}")
    console.print(f"Loaded:    {'[success]yes[/]' if agent.loaded else '[warning]no[/]'}")
    if agent.pid is not None:
        console.print(f"PID:       {agent.pid}")
    if agent.last_exit is not None:
        console.print(f"Last exit: {agent.last_exit}")
