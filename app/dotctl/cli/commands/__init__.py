"""CLI commands for dotctl.

This package contains all subcommand implementations.
"""

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

__all__ = [
    "add",
    "brew",
    "classify",
    "config",
    "log",
    "patterns",
    "run",
    "schedule",
    "status",
    "stow",
]
