"""Classify command.

This module provides the `dotctl classify` command, which previews the
verdict and package of paths without touching the filesystem.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from dotctl.adopt.engine import AdoptionEngine, AdoptionRefusedError
from dotctl.adopt.models import Verdict
from dotctl.adopt.patterns import load_patterns
from dotctl.adopt.resolver import ResolutionError
from dotctl.cli.types import get_audit_log, get_settings
from dotctl.utils.formatting import console, format_verdict, print_error


def classify(
    ctx: typer.Context,
    paths: Annotated[
        list[Path],
        typer.Argument(help="Paths to classify (absolute, ~/..., or relative to home)."),
    ],
) -> None:
    """Show the verdict, matching rule, and package for each path.

    Examples:
        dotctl classify ~/.zshrc ~/.ssh/config
        dotctl classify .config/starship
    """
    settings = get_settings(ctx)
    patterns = load_patterns(settings.patterns_dir)
    engine = AdoptionEngine(settings, patterns, get_audit_log(settings), dry_run=True)

    table = Table(
        title="Classification",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Verdict", width=10)
    table.add_column("Rule")
    table.add_column("Package")

    failed = False
    for path in paths:
        try:
            rel_path = engine.relative_to_home(path)
        except AdoptionRefusedError as e:
            print_error(str(e))
            failed = True
            continue

        classification = engine.classifier.classify(rel_path)
        rule = classification.rule.pattern if classification.rule else ""

        package = ""
        if classification.verdict == Verdict.ADOPT:
            try:
                package = engine.resolver.resolve(rel_path)
            except ResolutionError:
                package = "[warning]unresolved[/warning]"

        table.add_row(
            escape(rel_path),
            format_verdict(classification.verdict.value),
            escape(rule),
            package,
        )

    if table.row_count:
        console.print(table)
    if failed:
        raise typer.Exit(code=1)
