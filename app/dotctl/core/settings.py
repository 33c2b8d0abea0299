"""Runtime settings for dotctl.

All directory roots are gathered into a single ``DotctlSettings`` object
that is built once at the CLI edge and passed explicitly into every
component. Environment variables are consulted only by ``load_settings``.

Configuration is stored in ~/.config/dotctl/config.toml
"""

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from dotctl.core.paths import get_settings_path, get_state_dir

logger = logging.getLogger(__name__)

# Environment variables honoured by load_settings()
ENV_DOTFILES_DIR = "DOTFILES_DIR"
ENV_PATTERNS_DIR = "DOTCTL_PATTERNS_DIR"

DEFAULT_SCHEDULE_INTERVAL = 14400


class DotctlSettings(BaseModel):
    """Directory roots and tunables shared by all dotctl components.

    Derived paths default relative to ``home`` and ``dotfiles_dir`` when
    they are not given explicitly.

    Attributes:
        home: Home directory that is scanned and linked into.
        dotfiles_dir: Root of the version-controlled dotfiles repository.
        stow_dir: Managed storage; one subdirectory per package.
        patterns_dir: Directory holding ignore.txt, sensitive.txt and adopt.txt.
        state_dir: Directory holding the audit log.
        brewfile: Declarative Homebrew package list.
        applications_dir: Where cask application bundles are installed.
        grouped_dirs: Home-relative directories whose children are packages.
        schedule_interval: Seconds between scheduled auto-adopt runs.
    """

    model_config = ConfigDict(extra="forbid")

    home: Annotated[Path, Field(description="Home directory")]
    dotfiles_dir: Annotated[Path, Field(description="Dotfiles repository root")]
    stow_dir: Annotated[Path, Field(description="Managed package storage")]
    patterns_dir: Annotated[Path, Field(description="Pattern files directory")]
    state_dir: Annotated[Path, Field(description="State directory (audit log)")]
    brewfile: Annotated[Path, Field(description="Homebrew Brewfile")]
    applications_dir: Annotated[
        Path, Field(description="Application bundle directory")
    ] = Path("/Applications")
    grouped_dirs: Annotated[
        tuple[str, ...],
        Field(description="Directories whose second path segment names the package"),
    ] = (".config",)
    schedule_interval: Annotated[
        int,
        Field(ge=300, le=86400, description="Scheduled run interval in seconds"),
    ] = DEFAULT_SCHEDULE_INTERVAL

    @model_validator(mode="before")
    @classmethod
    def fill_derived_paths(cls, data: Any) -> Any:
        """Fill in unset directory roots and expand ``~`` in given ones."""
        if not isinstance(data, dict):
            return data

        values: dict[str, Any] = dict(data)
        home = _expand(values.get("home")) or Path.home()
        values["home"] = home

        dotfiles = _expand(values.get("dotfiles_dir")) or home / "dotfiles"
        values["dotfiles_dir"] = dotfiles
        values["stow_dir"] = _expand(values.get("stow_dir")) or dotfiles / "stow"
        values["patterns_dir"] = _expand(values.get("patterns_dir")) or dotfiles / "patterns"
        values["state_dir"] = _expand(values.get("state_dir")) or get_state_dir(home)
        values["brewfile"] = (
            _expand(values.get("brewfile")) or dotfiles / "bootstrap" / "brewfile"
        )
        if "applications_dir" in values:
            values["applications_dir"] = _expand(values["applications_dir"])
        return values

    @property
    def audit_log_path(self) -> Path:
        """Path to the append-only audit log."""
        return self.state_dir / "auto-adopt.log"


def _expand(value: object) -> Path | None:
    """Convert a raw config value to an absolute Path, or None if unset.

    Relative values are anchored at the current working directory.
    """
    if value is None or value == "":
        return None
    return Path(str(value)).expanduser().absolute()


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> DotctlSettings:
    """Load settings from TOML, applying environment overrides.

    A missing settings file is not an error; defaults are used.

    Args:
        path: Path to the settings file. If None, uses the default path.
        env: Environment mapping. If None, uses os.environ.

    Returns:
        Validated DotctlSettings.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the file cannot be read or fails validation.
    """
    settings_path = path or get_settings_path()
    environ = os.environ if env is None else env

    data: dict[str, Any] = {}
    if settings_path.exists():
        try:
            with open(settings_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise SettingsParseError(f"Invalid TOML syntax in {settings_path}: {e}") from e
        except OSError as e:
            raise SettingsError(f"Failed to read settings: {e}") from e
    else:
        logger.debug("No settings file at %s, using defaults", settings_path)

    if environ.get(ENV_DOTFILES_DIR):
        data["dotfiles_dir"] = environ[ENV_DOTFILES_DIR]
    if environ.get(ENV_PATTERNS_DIR):
        data["patterns_dir"] = environ[ENV_PATTERNS_DIR]

    try:
        return DotctlSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}") from e


def save_settings(settings: DotctlSettings, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        settings: The settings to save.
        path: Destination path. If None, uses the default settings path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = _settings_to_dict(settings)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path


def _settings_to_dict(settings: DotctlSettings) -> dict[str, object]:
    """Convert settings to a TOML-serializable dictionary.

    ``home`` is only written when it differs from the login home directory.
    """
    data: dict[str, object] = {}
    if settings.home != Path.home():
        data["home"] = str(settings.home)
    data.update(
        {
            "dotfiles_dir": str(settings.dotfiles_dir),
            "stow_dir": str(settings.stow_dir),
            "patterns_dir": str(settings.patterns_dir),
            "state_dir": str(settings.state_dir),
            "brewfile": str(settings.brewfile),
            "applications_dir": str(settings.applications_dir),
            "grouped_dirs": list(settings.grouped_dirs),
            "schedule_interval": settings.schedule_interval,
        }
    )
    return data
