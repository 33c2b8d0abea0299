"""Shared types and utilities for CLI commands.

This module provides the helpers every command module uses to reach the
settings loaded by the root callback.
"""

from enum import Enum

import typer

from dotctl.adopt.models import PatternList
from dotctl.core.audit import AuditLog
from dotctl.core.settings import DotctlSettings, load_settings


class ListChoice(str, Enum):
    """Pattern list selection for CLI commands."""

    SENSITIVE = "sensitive"
    IGNORE = "ignore"
    ADOPT = "adopt"
    ALL = "all"

    def lists(self) -> list[PatternList]:
        """Pattern lists covered by this choice, in evaluation order."""
        if self == ListChoice.ALL:
            return list(PatternList)
        return [PatternList(self.value)]


def get_settings(ctx: typer.Context) -> DotctlSettings:
    """Return the settings loaded by the root callback.

    Falls back to loading defaults when a command is invoked without the
    root callback (e.g. when a sub-app is used directly).
    """
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = load_settings()
        obj["settings"] = settings
    return settings


def get_audit_log(settings: DotctlSettings) -> AuditLog:
    """Audit log at the configured location."""
    return AuditLog(settings.audit_log_path)
