"""Unit tests for package name inference."""

import pytest
from dotctl.adopt.models import PatternRule
from dotctl.adopt.resolver import PackageNameResolver, ResolutionError


class TestPackageNameResolver:
    """Tests for the resolution heuristics and their order."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            (".config/starship/config.toml", "starship"),
            (".config/nvim", "nvim"),
            (".zshrc", "zsh"),
            (".vimrc", "vim"),
            (".tmux.conf", "tmux"),
            (".claude/CLAUDE.md", "claude"),
            (".wezterm.lua", "wezterm"),
            (".gitignore_global", "gitignore"),
        ],
    )
    def test_heuristics(self, path: str, expected: str) -> None:
        assert PackageNameResolver().resolve(path) == expected

    def test_explicit_mapping_wins(self) -> None:
        resolver = PackageNameResolver(mappings=(PatternRule(".gitconfig", "git"),))
        assert resolver.resolve(".gitconfig") == "git"

    def test_mapping_beats_grouped_dir(self) -> None:
        resolver = PackageNameResolver(
            mappings=(PatternRule(".config/starship.toml", "starship"),)
        )
        assert resolver.resolve(".config/starship.toml") == "starship"

    def test_mapping_uses_glob_matching(self) -> None:
        resolver = PackageNameResolver(mappings=(PatternRule(".claude/*", "ai"),))
        assert resolver.resolve(".claude/settings.json") == "ai"
        assert resolver.resolve(".claude") == "ai"

    def test_mappings_without_hint_ignored(self) -> None:
        resolver = PackageNameResolver(mappings=(PatternRule(".zshrc"),))
        assert resolver.resolve(".zshrc") == "zsh"

    def test_custom_grouped_dirs(self) -> None:
        resolver = PackageNameResolver(grouped_dirs=(".config", "Library/Application Support"))
        assert resolver.resolve("Library/Application Support/Code/User") == "Code"

    def test_rc_requires_lowercase_letters(self) -> None:
        """.Xrc falls through to the generic rule."""
        assert PackageNameResolver().resolve(".Xresources") == "Xresources"

    @pytest.mark.parametrize("path", [".", "..", "./x", "._foo"])
    def test_degenerate_names_raise(self, path: str) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            PackageNameResolver().resolve(path)
        assert "Could not determine package name" in str(exc_info.value)
