"""Homebrew convergence commands.

Provides commands to compare the Brewfile with the installed system, to
install only what is missing, and to find applications the Brewfile does
not declare.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.brew.brewfile import BrewfileError, load_brewfile
from dotctl.brew.convergence import ConvergenceChecker, converge
from dotctl.brew.inventory import AppInventory
from dotctl.brew.models import ConvergencePlan
from dotctl.brew.operator import BrewOperator
from dotctl.brew.scanner import BrewScanner
from dotctl.cli.display import (
    create_app_audit_table,
    create_install_table,
    create_plan_table,
    print_app_audit_summary,
    print_install_summary,
    print_plan_summary,
)
from dotctl.cli.types import get_audit_log, get_settings
from dotctl.core.settings import DotctlSettings
from dotctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Converge installed Homebrew packages with the Brewfile.",
    no_args_is_help=True,
)


def _build_plan(settings: DotctlSettings) -> ConvergencePlan:
    """Load the Brewfile, observe the system, and compute the plan.

    Raises:
        typer.Exit: If the Brewfile is unusable or Homebrew is unavailable.
    """
    try:
        desired = load_brewfile(settings.brewfile)
    except BrewfileError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    try:
        observed = BrewScanner(settings.applications_dir).observe()
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    with console.status("Checking casks..."):
        return ConvergenceChecker(observed).check(desired)


@app.command()
def check(ctx: typer.Context) -> None:
    """Show which Brewfile entries are missing."""
    plan = _build_plan(get_settings(ctx))

    if not plan.items:
        print_success("Brewfile declares no packages.")
        return

    console.print(create_plan_table(plan))
    print_plan_summary(plan)


@app.command()
def install(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would be installed."),
    ] = False,
) -> None:
    """Install missing Brewfile entries, skipping apps already present."""
    settings = get_settings(ctx)
    plan = _build_plan(settings)

    if plan.is_converged:
        print_success("System matches the Brewfile. Nothing to install.")
        return

    console.print(create_plan_table(plan))
    print_plan_summary(plan)

    operator = BrewOperator(dry_run=dry_run)
    try:
        report = converge(plan, operator, get_audit_log(settings))
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print()
    console.print(create_install_table(report.results))
    print_install_summary(report.results)


@app.command()
def audit(ctx: typer.Context) -> None:
    """List installed applications that the Brewfile does not declare."""
    settings = get_settings(ctx)

    try:
        desired = load_brewfile(settings.brewfile)
    except BrewfileError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    bundles = BrewScanner(settings.applications_dir).app_bundle_names()
    with console.status("Resolving cask artifacts..."):
        report = AppInventory().audit(desired, bundles)

    if not report.untracked:
        print_success(f"All {len(report.tracked)} application(s) are in the Brewfile.")
        return

    console.print(create_app_audit_table(report))
    print_app_audit_summary(report)


@app.command(name="export")
def export_command(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Destination file (default: <brewfile>.current).",
        ),
    ] = None,
) -> None:
    """Dump the current installation to a Brewfile for comparison."""
    settings = get_settings(ctx)
    path = output or settings.brewfile.with_name(f"{settings.brewfile.name}.current")

    try:
        written = BrewScanner(settings.applications_dir).export_brewfile(path)
    except (RuntimeError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Current state exported to: {written}")
    print_info(f"Compare with: diff {settings.brewfile} {written}")
