"""Unit tests for AdoptionEngine.

Covers the decide/apply phases, full scan runs against a fake home,
dry-run equivalence, re-run idempotence, and manual adoption.
"""

from pathlib import Path

import pytest
from dotctl.adopt.engine import AdoptionEngine, AdoptionRefusedError
from dotctl.adopt.models import (
    Candidate,
    DecisionAction,
    PatternList,
    PatternRule,
    PatternSet,
    Verdict,
)
from dotctl.adopt.resolver import ResolutionError
from dotctl.core.audit import AuditEntry, AuditKind, AuditLog
from dotctl.core.errors import AuditLogUnwritableError, HomeNotAccessibleError
from dotctl.core.settings import DotctlSettings


@pytest.fixture
def populated_home(home: Path) -> Path:
    """Fake home with one path for every verdict."""
    (home / ".zshrc").write_text("export A=1")
    (home / ".gitconfig").write_text("[user]")
    (home / ".ssh").mkdir()
    (home / ".ssh" / "id_ed25519").write_text("PRIVATE")
    (home / ".DS_Store").write_bytes(b"\x00")
    (home / ".mystery").write_text("")
    (home / ".config" / "starship").mkdir(parents=True)
    (home / ".config" / "starship" / "starship.toml").write_text("add_newline = false")
    (home / ".netrc").write_text("machine example.com password hunter2")
    return home


def _engine(
    settings: DotctlSettings, patterns: PatternSet, audit: AuditLog, dry_run: bool = False
) -> AdoptionEngine:
    return AdoptionEngine(settings, patterns, audit, dry_run=dry_run)


class TestDecide:
    """Tests for per-candidate decisions."""

    def test_adopt_with_resolved_package(
        self, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        decision = _engine(settings, patterns, audit).decide(Candidate(".gitconfig"))

        assert decision.action == DecisionAction.ADOPT
        assert decision.verdict == Verdict.ADOPT
        assert decision.package is not None
        assert decision.package.name == "git"
        assert decision.package.root == settings.stow_dir / "git"

    @pytest.mark.parametrize(
        ("path", "action"),
        [
            (".ssh", DecisionAction.SKIP_SENSITIVE),
            (".DS_Store", DecisionAction.SKIP_IGNORED),
            (".mystery", DecisionAction.SKIP_UNKNOWN),
        ],
    )
    def test_skip_actions(
        self,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        path: str,
        action: DecisionAction,
    ) -> None:
        decision = _engine(settings, patterns, audit).decide(Candidate(path))

        assert decision.action == action
        assert decision.package is None

    def test_managed_candidate_skipped_before_classification(
        self, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        decision = _engine(settings, patterns, audit).decide(Candidate(".ssh", managed=True))

        assert decision.action == DecisionAction.SKIP_MANAGED
        assert decision.verdict is None

    def test_foreign_link_skipped(
        self, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        decision = _engine(settings, patterns, audit).decide(
            Candidate(".zshrc", foreign_link=True)
        )

        assert decision.action == DecisionAction.SKIP_LINK

    def test_unresolvable_package(
        self, settings: DotctlSettings, audit: AuditLog
    ) -> None:
        patterns = PatternSet(adopt=(PatternRule("._*"),))

        decision = _engine(settings, patterns, audit).decide(Candidate("._weird"))

        assert decision.action == DecisionAction.SKIP_UNRESOLVED
        assert "Could not determine package name" in (decision.reason or "")

    def test_plan_preserves_order(
        self, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        candidates = [Candidate(".zshrc"), Candidate(".ssh"), Candidate(".mystery")]

        decisions = _engine(settings, patterns, audit).plan(candidates)

        assert [d.rel_path for d in decisions] == [".zshrc", ".ssh", ".mystery"]


class TestRun:
    """Tests for full scan-and-adopt runs."""

    def test_run_adopts_and_reports(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        report = _engine(settings, patterns, audit).run()

        assert report.summary() == {"adopted": 3, "sensitive": 2, "skipped": 1, "ignored": 1}
        assert (populated_home / ".zshrc").is_symlink()
        assert (populated_home / ".gitconfig").is_symlink()
        assert (populated_home / ".config" / "starship").is_symlink()
        assert (settings.stow_dir / "zsh" / ".zshrc").read_text() == "export A=1"
        assert (settings.stow_dir / "git" / ".gitconfig").is_file()
        assert (settings.stow_dir / "starship" / ".config" / "starship" / "starship.toml").is_file()

    def test_sensitive_paths_never_move(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        _engine(settings, patterns, audit).run()

        assert not (populated_home / ".ssh").is_symlink()
        assert (populated_home / ".ssh" / "id_ed25519").read_text() == "PRIVATE"
        assert not (populated_home / ".netrc").is_symlink()
        assert not list(settings.stow_dir.rglob("id_ed25519"))
        assert not list(settings.stow_dir.rglob(".netrc"))

    def test_audit_trail(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        _engine(settings, patterns, audit).run()

        entries = audit.entries()
        kinds = [e.kind for e in entries]
        assert entries[0].kind == AuditKind.INFO
        assert entries[0].message.startswith("Scan started")
        assert entries[-1].message == (
            "Scan complete: adopted=3, sensitive=2, skipped=1, ignored=1"
        )
        assert kinds.count(AuditKind.ADOPTED) == 3
        assert kinds.count(AuditKind.SENSITIVE) == 2
        assert kinds.count(AuditKind.SKIPPED) == 1
        assert {e.path for e in entries if e.kind == AuditKind.SENSITIVE} == {
            ".ssh",
            ".netrc",
        }
        assert audit.last_run() is not None

    def test_dry_run_leaves_filesystem_untouched(
        self,
        populated_home: Path,
        tmp_path: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        snapshot,
    ) -> None:
        before = snapshot(tmp_path)

        report = _engine(settings, patterns, audit, dry_run=True).run()

        assert snapshot(tmp_path) == before
        assert report.dry_run is True
        assert report.adopted == 3
        assert not settings.state_dir.exists()

    def test_dry_run_decisions_match_real_run(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        preview = _engine(settings, patterns, audit, dry_run=True).run()
        real = _engine(settings, patterns, audit).run()

        assert [(d.rel_path, d.action) for d in preview.decisions] == [
            (d.rel_path, d.action) for d in real.decisions
        ]
        assert preview.summary() == real.summary()

    def test_rerun_is_idempotent(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        snapshot,
    ) -> None:
        _engine(settings, patterns, audit).run()
        after_first = snapshot(populated_home)
        stored_first = snapshot(settings.stow_dir)

        report = _engine(settings, patterns, audit).run()

        assert report.adopted == 0
        assert report.managed == 3
        assert snapshot(populated_home) == after_first
        assert snapshot(settings.stow_dir) == stored_first

    def test_missing_pattern_files_logged(
        self, populated_home: Path, settings: DotctlSettings, audit: AuditLog
    ) -> None:
        patterns = PatternSet(missing=(PatternList.SENSITIVE, PatternList.ADOPT))

        report = _engine(settings, patterns, audit).run()

        assert report.adopted == 0
        info = [e.message for e in audit.entries() if e.kind == AuditKind.INFO]
        assert any("sensitive.txt" in m for m in info)
        assert any("adopt.txt" in m for m in info)

    def test_unresolved_logged_as_warning(
        self, home: Path, settings: DotctlSettings, audit: AuditLog
    ) -> None:
        (home / "._weird").write_text("")
        patterns = PatternSet(adopt=(PatternRule("._*"),))

        report = _engine(settings, patterns, audit).run()

        assert report.skipped == 1
        warnings = [e for e in audit.entries() if e.kind == AuditKind.WARN]
        assert len(warnings) == 1
        assert "._weird" in warnings[0].message

    def test_adoption_failure_continues_batch(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        """A dangling link in storage fails one item but the rest still adopt."""
        blocker = settings.stow_dir / "git" / ".gitconfig"
        blocker.parent.mkdir(parents=True)
        blocker.symlink_to(settings.stow_dir / "nowhere")

        report = _engine(settings, patterns, audit).run()

        assert report.failed == 1
        assert report.adopted == 2
        assert not (populated_home / ".gitconfig").is_symlink()
        failed = [e for e in audit.entries() if e.kind == AuditKind.FAILED]
        assert len(failed) == 1
        assert failed[0].path == ".gitconfig"
        assert failed[0].package == "git"

    def test_unreadable_home_aborts_without_audit(
        self, tmp_path: Path, patterns: PatternSet
    ) -> None:
        settings = DotctlSettings(home=tmp_path / "missing", state_dir=tmp_path / "state")
        audit = AuditLog(settings.audit_log_path)

        with pytest.raises(HomeNotAccessibleError):
            _engine(settings, patterns, audit).run()

        assert not audit.path.exists()

    def test_unwritable_audit_log_aborts_before_changes(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
    ) -> None:
        settings.state_dir.write_text("not a directory")

        with pytest.raises(AuditLogUnwritableError, match="Audit log is not writable"):
            _engine(settings, patterns, audit).run()

        assert not (populated_home / ".zshrc").is_symlink()
        assert not settings.stow_dir.exists()

    def test_audit_write_failure_mid_batch_continues(
        self,
        populated_home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        class FlakyAuditLog(AuditLog):
            def sensitive(self, rel_path: str) -> AuditEntry:
                raise OSError("disk full")

        flaky = FlakyAuditLog(audit.path)

        report = _engine(settings, patterns, flaky).run()

        assert report.sensitive == 2
        assert report.adopted == 3
        assert (populated_home / ".zshrc").is_symlink()
        kinds = [e.kind for e in flaky.entries()]
        assert kinds.count(AuditKind.ADOPTED) == 3
        assert AuditKind.SENSITIVE not in kinds
        assert "Failed to write audit log" in caplog.text


class TestManualAdd:
    """Tests for adopting one explicitly named path."""

    def test_relative_to_home(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        engine = _engine(settings, patterns, audit)

        assert engine.relative_to_home(home / ".zshrc") == ".zshrc"
        assert engine.relative_to_home(Path(".config/nvim")) == ".config/nvim"
        assert engine.relative_to_home(home / ".config" / ".." / ".vimrc") == ".vimrc"

    def test_outside_home_refused(
        self, tmp_path: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        with pytest.raises(AdoptionRefusedError, match="inside the home directory"):
            _engine(settings, patterns, audit).relative_to_home(tmp_path / "elsewhere")

    def test_home_itself_refused(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        with pytest.raises(AdoptionRefusedError):
            _engine(settings, patterns, audit).relative_to_home(home)

    def test_adopt_unknown_path_with_package(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        (home / ".mystery").write_text("hello")

        result = _engine(settings, patterns, audit).adopt_path(".mystery", package="misc")

        assert result.success is True
        assert result.package == "misc"
        assert (settings.stow_dir / "misc" / ".mystery").read_text() == "hello"
        assert (home / ".mystery").is_symlink()

    def test_adopt_infers_package(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        (home / ".claude").mkdir()
        (home / ".claude" / "CLAUDE.md").write_text("# notes")

        result = _engine(settings, patterns, audit).adopt_path(".claude/CLAUDE.md")

        assert result.package == "claude"
        assert (settings.stow_dir / "claude" / ".claude" / "CLAUDE.md").is_file()

    @pytest.mark.parametrize("path", [".ssh", ".DS_Store"])
    def test_sensitive_and_ignored_refused(
        self,
        home: Path,
        settings: DotctlSettings,
        patterns: PatternSet,
        audit: AuditLog,
        path: str,
    ) -> None:
        (home / path).write_text("")

        with pytest.raises(AdoptionRefusedError):
            _engine(settings, patterns, audit).adopt_path(path)

        assert not (home / path).is_symlink()

    def test_already_managed_refused(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        (home / ".zshrc").write_text("")
        engine = _engine(settings, patterns, audit)
        engine.adopt_path(".zshrc")

        with pytest.raises(AdoptionRefusedError, match="already managed"):
            engine.adopt_path(".zshrc")

    def test_bad_package_name_rejected(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        (home / ".mystery").write_text("")

        with pytest.raises(ResolutionError):
            _engine(settings, patterns, audit).adopt_path(".mystery", package="../escape")

    def test_existing_destination_needs_overwrite(
        self, home: Path, settings: DotctlSettings, patterns: PatternSet, audit: AuditLog
    ) -> None:
        stored = settings.stow_dir / "term" / ".wezterm.lua"
        stored.parent.mkdir(parents=True)
        stored.write_text("old")
        (home / ".wezterm.lua").write_text("new")
        engine = _engine(settings, patterns, audit)

        refused = engine.adopt_path(".wezterm.lua", package="term")

        assert refused.failed
        assert stored.read_text() == "old"
        assert [e.kind for e in audit.entries()] == [AuditKind.FAILED]

        result = engine.adopt_path(".wezterm.lua", package="term", overwrite=True)

        assert result.success is True
        assert stored.read_text() == "new"
        assert (home / ".wezterm.lua").is_symlink()
