"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from dotctl.adopt.models import PatternSet
from dotctl.adopt.patterns import parse_rules
from dotctl.core.audit import AuditLog
from dotctl.core.settings import DotctlSettings, save_settings

SENSITIVE_RULES = """\
# credentials
.ssh/*
.gnupg/*
.aws/*
.netrc
*token*
*secret*
*.pem
"""

IGNORE_RULES = """\
.DS_Store
.Trash
.cache/*
.local/*
*history*
*.cache/*
*.log
"""

ADOPT_RULES = """\
.zshrc
.gitconfig:git
.wezterm.lua:wezterm
.tmux.conf
.config/*
.claude/*:claude
"""


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Empty fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path: Path, home: Path) -> DotctlSettings:
    """Settings rooted in temporary directories outside the fake home."""
    dotfiles = tmp_path / "dotfiles"
    return DotctlSettings(
        home=home,
        dotfiles_dir=dotfiles,
        stow_dir=dotfiles / "stow",
        patterns_dir=dotfiles / "patterns",
        state_dir=tmp_path / "state",
        brewfile=dotfiles / "bootstrap" / "brewfile",
        applications_dir=tmp_path / "Applications",
    )


@pytest.fixture
def patterns() -> PatternSet:
    """Pattern set covering the common sensitive, ignore, and adopt cases."""
    return PatternSet(
        sensitive=parse_rules(SENSITIVE_RULES),
        ignore=parse_rules(IGNORE_RULES),
        adopt=parse_rules(ADOPT_RULES),
    )


@pytest.fixture
def patterns_dir(settings: DotctlSettings) -> Path:
    """Patterns directory populated with the shared rule texts."""
    directory = settings.patterns_dir
    directory.mkdir(parents=True)
    (directory / "sensitive.txt").write_text(SENSITIVE_RULES)
    (directory / "ignore.txt").write_text(IGNORE_RULES)
    (directory / "adopt.txt").write_text(ADOPT_RULES)
    return directory


@pytest.fixture
def audit(settings: DotctlSettings) -> AuditLog:
    """Audit log in the temporary state directory (not yet created)."""
    return AuditLog(settings.audit_log_path)


def _snapshot(root: Path) -> dict[str, str]:
    state: dict[str, str] = {}
    if not root.exists():
        return state
    for path in sorted(root.rglob("*")):
        rel = str(path.relative_to(root))
        if path.is_symlink():
            state[rel] = f"link:{path.readlink()}"
        elif path.is_dir():
            state[rel] = "dir"
        else:
            state[rel] = f"file:{path.read_text()}"
    return state


@pytest.fixture
def snapshot():
    """Callable describing every entry under a directory, for before/after comparison."""
    return _snapshot


@pytest.fixture
def cli_args(
    tmp_path: Path, settings: DotctlSettings, monkeypatch: pytest.MonkeyPatch
) -> list[str]:
    """Global CLI options pointing every directory at the temporary settings."""
    monkeypatch.delenv("DOTFILES_DIR", raising=False)
    monkeypatch.delenv("DOTCTL_PATTERNS_DIR", raising=False)
    config = save_settings(settings, tmp_path / "config" / "config.toml")
    return ["--config", str(config)]
