"""XDG-compliant path management for dotctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/dotctl/
- State: ~/.local/state/dotctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "dotctl"

# Launchd agents live outside the XDG tree on macOS
LAUNCH_AGENTS_SUBDIR = "Library/LaunchAgents"


def _get_xdg_dir(env_var: str, default_subdir: str, home: Path | None = None) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").
        home: Home directory to resolve against. Defaults to Path.home().

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return (home or Path.home()) / default_subdir / APP_NAME


def get_config_dir(home: Path | None = None) -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/dotctl/ (or XDG_CONFIG_HOME/dotctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config", home)


def get_state_dir(home: Path | None = None) -> Path:
    """Get the state directory path.

    State data includes the audit log and scheduler output that should
    persist between runs but is not configuration.

    Returns:
        Path to ~/.local/state/dotctl/ (or XDG_STATE_HOME/dotctl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state", home)


def get_settings_path() -> Path:
    """Get the default settings file path.

    Returns:
        Path to ~/.config/dotctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_launch_agents_dir(home: Path) -> Path:
    """Get the per-user launchd agents directory.

    Args:
        home: Home directory of the user.

    Returns:
        Path to ~/Library/LaunchAgents.
    """
    return home / LAUNCH_AGENTS_SUBDIR

