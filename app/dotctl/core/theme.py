"""Color theme for dotctl output.

The bundled ``data/theme.toml`` defines every color. A user file at
``~/.config/dotctl/theme.toml`` may override any subset of it, using the
same ``[colors]`` and ``[verdicts]`` tables.
"""

import logging
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError
from rich.theme import Theme

from dotctl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

HexColor = Annotated[
    str,
    StringConstraints(strip_whitespace=True, pattern=r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$"),
]

_SECTIONS = ("colors", "verdicts")


class BaseColors(BaseModel):
    """Colors for general output roles."""

    model_config = ConfigDict(extra="forbid")

    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"
    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"
    added: HexColor = "#c1ff62"


class VerdictColors(BaseModel):
    """One color per classification verdict."""

    model_config = ConfigDict(extra="forbid")

    adopt: HexColor = "#c1ff62"
    sensitive: HexColor = "#d44ebc"
    ignore: HexColor = "#636e72"
    unknown: HexColor = "#faf870"


class ThemeColors(BaseModel):
    """Complete color configuration, mirroring the theme file layout."""

    model_config = ConfigDict(extra="forbid")

    colors: BaseColors = BaseColors()
    verdicts: VerdictColors = VerdictColors()


def get_user_theme_path() -> Path:
    """Path to the optional user override, ~/.config/dotctl/theme.toml."""
    return get_config_dir() / "theme.toml"


def _read_sections(path: Path) -> dict[str, dict[str, Any]]:
    """Read the color tables of a theme file.

    Unreadable files and malformed tables are logged and treated as empty.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    sections: dict[str, dict[str, Any]] = {}
    for name in _SECTIONS:
        table = data.get(name, {})
        if isinstance(table, dict):
            sections[name] = table
        else:
            logger.warning("Ignoring non-table [%s] in %s", name, path)
    return sections


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the bundled theme with the user's overrides.

    An override file that fails validation is ignored as a whole, so a
    single bad color never leaves the output half-themed.

    Args:
        user_path: Override file. If None, uses the default user theme path.

    Returns:
        Validated ThemeColors.
    """
    bundled_file = resources.files("dotctl.data").joinpath("theme.toml")
    bundled = _read_sections(Path(str(bundled_file)))
    try:
        base = ThemeColors.model_validate(bundled)
    except ValidationError as e:
        logger.error("Bundled theme is invalid, using built-in colors: %s", e)
        base = ThemeColors()

    overrides = _read_sections(user_path or get_user_theme_path())
    if not overrides:
        return base

    merged = base.model_dump()
    for name, table in overrides.items():
        merged[name].update(table)
    try:
        return ThemeColors.model_validate(merged)
    except ValidationError as e:
        logger.warning("Ignoring invalid user theme: %s", e)
        return base


def build_rich_theme(theme: ThemeColors) -> Theme:
    """Map theme colors onto the style names used in markup.

    Besides the base roles this defines ``verdict.<name>`` for
    classification verdicts and ``audit.<kind>`` for audit log keywords.
    """
    c = theme.colors
    v = theme.verdicts
    return Theme(
        {
            "muted": c.muted,
            "border": c.border,
            "bold_header": f"bold {c.header}",
            "success": c.success,
            "warning": c.warning,
            "error": f"bold {c.error}",
            "info": c.info,
            "added": c.added,
            "verdict.adopt": f"bold {v.adopt}",
            "verdict.sensitive": f"bold {v.sensitive}",
            "verdict.ignore": v.ignore,
            "verdict.unknown": v.unknown,
            "audit.adopted": c.added,
            "audit.installed": c.added,
            "audit.sensitive": v.sensitive,
            "audit.skipped": c.muted,
            "audit.info": c.info,
            "audit.warn": c.warning,
            "audit.failed": f"bold {c.error}",
        }
    )


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme for the shared consoles, loaded once per process."""
    return build_rich_theme(load_theme())
