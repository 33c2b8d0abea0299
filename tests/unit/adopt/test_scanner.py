"""Unit tests for the home directory scanner."""

from pathlib import Path

import pytest
from dotctl.adopt.resolver import PackageNameResolver
from dotctl.adopt.scanner import HomeScanner
from dotctl.core.errors import HomeNotAccessibleError
from dotctl.core.settings import DotctlSettings


@pytest.fixture
def scanner(settings: DotctlSettings) -> HomeScanner:
    return HomeScanner(settings, PackageNameResolver())


class TestHomeScanner:
    """Tests for candidate discovery and managed detection."""

    def test_finds_top_level_dotfiles_only(self, home: Path, scanner: HomeScanner) -> None:
        (home / ".zshrc").write_text("export A=1")
        (home / ".vim").mkdir()
        (home / "Documents").mkdir()
        (home / "notes.txt").write_text("x")

        paths = [c.rel_path for c in scanner.scan()]

        assert paths == [".vim", ".zshrc"]

    def test_scans_grouped_dir_children(self, home: Path, scanner: HomeScanner) -> None:
        config = home / ".config"
        (config / "nvim").mkdir(parents=True)
        (config / "starship.toml").write_text("")

        paths = [c.rel_path for c in scanner.scan()]

        assert ".config" not in paths
        assert paths == [".config/nvim", ".config/starship.toml"]

    def test_candidate_flags(self, home: Path, scanner: HomeScanner) -> None:
        (home / ".vim").mkdir()
        (home / ".zshrc").write_text("")

        candidates = {c.rel_path: c for c in scanner.scan()}

        assert candidates[".vim"].is_dir is True
        assert candidates[".zshrc"].is_dir is False
        assert not candidates[".zshrc"].managed

    def test_symlink_into_storage_is_managed(
        self, home: Path, settings: DotctlSettings, scanner: HomeScanner
    ) -> None:
        stored = settings.stow_dir / "zsh" / ".zshrc"
        stored.parent.mkdir(parents=True)
        stored.write_text("")
        (home / ".zshrc").symlink_to(stored)

        candidate = scanner.inspect(".zshrc")

        assert candidate.managed is True
        assert candidate.foreign_link is False

    def test_relative_symlink_into_storage_is_managed(
        self, home: Path, settings: DotctlSettings, scanner: HomeScanner
    ) -> None:
        stored = settings.stow_dir / "vim" / ".vimrc"
        stored.parent.mkdir(parents=True)
        stored.write_text("")
        (home / ".vimrc").symlink_to(Path("..") / "dotfiles" / "stow" / "vim" / ".vimrc")

        assert scanner.inspect(".vimrc").managed is True

    def test_foreign_symlink(self, home: Path, tmp_path: Path, scanner: HomeScanner) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.write_text("")
        (home / ".profile").symlink_to(elsewhere)

        candidate = scanner.inspect(".profile")

        assert candidate.managed is False
        assert candidate.foreign_link is True

    def test_mirrored_path_is_managed(
        self, home: Path, settings: DotctlSettings, scanner: HomeScanner
    ) -> None:
        """A real file that already exists in its package tree counts as managed."""
        (settings.stow_dir / "zsh").mkdir(parents=True)
        (settings.stow_dir / "zsh" / ".zshrc").write_text("")
        (home / ".zshrc").write_text("")

        assert scanner.inspect(".zshrc").managed is True

    def test_directory_with_linked_child_is_managed(
        self, home: Path, settings: DotctlSettings, scanner: HomeScanner
    ) -> None:
        """Stow folds into real directories by linking their children."""
        stored = settings.stow_dir / "ai" / ".claude" / "CLAUDE.md"
        stored.parent.mkdir(parents=True)
        stored.write_text("")
        (home / ".claude").mkdir()
        (home / ".claude" / "CLAUDE.md").symlink_to(stored)

        assert scanner.inspect(".claude").managed is True

    def test_dotfiles_dir_inside_home_excluded(self, home: Path, tmp_path: Path) -> None:
        dotfiles = home / ".dotfiles"
        (dotfiles / "stow").mkdir(parents=True)
        (home / ".zshrc").write_text("")
        settings = DotctlSettings(
            home=home,
            dotfiles_dir=dotfiles,
            state_dir=tmp_path / "state",
        )

        paths = [c.rel_path for c in HomeScanner(settings, PackageNameResolver()).scan()]

        assert paths == [".zshrc"]

    def test_missing_home_raises(self, tmp_path: Path) -> None:
        settings = DotctlSettings(home=tmp_path / "missing", state_dir=tmp_path / "state")

        with pytest.raises(HomeNotAccessibleError):
            HomeScanner(settings, PackageNameResolver()).scan()

    def test_scan_is_sorted_and_repeatable(self, home: Path, scanner: HomeScanner) -> None:
        for name in (".b", ".a", ".c"):
            (home / name).write_text("")

        assert scanner.scan() == scanner.scan()
        assert [c.rel_path for c in scanner.scan()] == [".a", ".b", ".c"]
