"""Utility modules for dotctl.

This module exports commonly used utility functions.
"""

from dotctl.utils.formatting import (
    console,
    err_console,
    format_verdict,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from dotctl.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "format_verdict",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
