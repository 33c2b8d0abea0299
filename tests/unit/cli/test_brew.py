"""Unit tests for the brew commands."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from dotctl.brew.convergence import ConvergenceChecker
from dotctl.brew.inventory import AppInventory
from dotctl.brew.models import ArtifactKind, CaskArtifact, ObservedInstallState
from dotctl.cli.main import app
from dotctl.core.audit import AuditKind, AuditLog
from dotctl.core.settings import DotctlSettings
from dotctl.utils.shell import CommandResult
from typer.testing import CliRunner

runner = CliRunner()

BREWFILE = """\
brew "ripgrep"
cask "wezterm"
"""


def _lookup(cask: str) -> CaskArtifact:
    return CaskArtifact(ArtifactKind.APP, app_name="WezTerm.app")


@pytest.fixture
def brewfile(settings: DotctlSettings) -> Path:
    settings.brewfile.parent.mkdir(parents=True)
    settings.brewfile.write_text(BREWFILE)
    return settings.brewfile


def _observe(state: ObservedInstallState) -> Iterator[None]:
    with (
        patch("dotctl.cli.commands.brew.BrewScanner") as scanner_cls,
        patch(
            "dotctl.cli.commands.brew.ConvergenceChecker",
            side_effect=lambda observed: ConvergenceChecker(observed, _lookup),
        ),
    ):
        scanner_cls.return_value.observe.return_value = state
        yield


@pytest.fixture
def fresh_machine() -> Iterator[None]:
    yield from _observe(ObservedInstallState())


@pytest.fixture
def converged_machine() -> Iterator[None]:
    yield from _observe(
        ObservedInstallState(
            formulae=frozenset({"ripgrep"}),
            app_bundles=frozenset({"wezterm.app"}),
        )
    )


def test_check_missing_brewfile(cli_args: list[str]) -> None:
    result = runner.invoke(app, [*cli_args, "brew", "check"])

    assert result.exit_code == 1
    assert "Brewfile not found" in result.output


def test_check_lists_plan(cli_args: list[str], brewfile: Path, fresh_machine: None) -> None:
    result = runner.invoke(app, [*cli_args, "brew", "check"])

    assert result.exit_code == 0
    assert "ripgrep" in result.output
    assert "2 to install" in result.output


def test_check_without_homebrew(cli_args: list[str], brewfile: Path) -> None:
    with patch("dotctl.brew.scanner.command_exists", return_value=False):
        result = runner.invoke(app, [*cli_args, "brew", "check"])

    assert result.exit_code == 1
    assert "Homebrew is not available" in result.output


def test_install_nothing_to_do(
    cli_args: list[str], brewfile: Path, converged_machine: None
) -> None:
    result = runner.invoke(app, [*cli_args, "brew", "install"])

    assert result.exit_code == 0
    assert "Nothing to install" in result.output


def test_install_dry_run(
    cli_args: list[str], brewfile: Path, settings: DotctlSettings, fresh_machine: None
) -> None:
    with patch("dotctl.brew.operator.run_command") as mock_run:
        result = runner.invoke(app, [*cli_args, "brew", "install", "--dry-run"])

    assert result.exit_code == 0
    mock_run.assert_not_called()
    assert "All 2 install(s) completed successfully" in result.output
    assert not settings.audit_log_path.exists()


def test_install_records_audit(
    cli_args: list[str], brewfile: Path, settings: DotctlSettings, fresh_machine: None
) -> None:
    outcomes = [
        CommandResult(stdout="", stderr="", returncode=0),
        CommandResult(stdout="", stderr="Error: download failed", returncode=1),
    ]
    with (
        patch("dotctl.brew.operator.command_exists", return_value=True),
        patch("dotctl.brew.operator.run_command", side_effect=outcomes),
    ):
        result = runner.invoke(app, [*cli_args, "brew", "install"])

    assert result.exit_code == 0
    assert "1 succeeded" in result.output
    assert "1 failed" in result.output
    entries = AuditLog(settings.audit_log_path).entries()
    assert [e.kind for e in entries] == [AuditKind.INSTALLED, AuditKind.FAILED]


@pytest.fixture
def installed_apps() -> Iterator[None]:
    with (
        patch("dotctl.cli.commands.brew.BrewScanner") as scanner_cls,
        patch(
            "dotctl.cli.commands.brew.AppInventory",
            side_effect=lambda: AppInventory(_lookup),
        ),
    ):
        scanner_cls.return_value.app_bundle_names.return_value = (
            "Obsidian.app",
            "Safari.app",
            "WezTerm.app",
        )
        yield


def test_audit_lists_untracked_apps(
    cli_args: list[str], brewfile: Path, installed_apps: None
) -> None:
    result = runner.invoke(app, [*cli_args, "brew", "audit"])

    assert result.exit_code == 0
    assert "Obsidian.app" in result.output
    assert 'cask "obsidian"' in result.output
    assert "Safari" not in result.output
    assert "1 in Brewfile, 1 not in Brewfile" in result.output


def test_audit_all_tracked(cli_args: list[str], brewfile: Path) -> None:
    with patch("dotctl.cli.commands.brew.BrewScanner") as scanner_cls:
        scanner_cls.return_value.app_bundle_names.return_value = ("WezTerm.app",)
        result = runner.invoke(app, [*cli_args, "brew", "audit"])

    assert result.exit_code == 0
    assert "All 1 application(s) are in the Brewfile" in result.output


def test_export(cli_args: list[str], settings: DotctlSettings) -> None:
    with (
        patch("dotctl.brew.scanner.command_exists", return_value=True),
        patch("dotctl.brew.scanner.run_command") as mock_run,
    ):
        mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
        result = runner.invoke(app, [*cli_args, "brew", "export"])

    assert result.exit_code == 0
    assert "Current state exported" in result.output
    assert f"--file={settings.brewfile}.current" in mock_run.call_args[0][0]


def test_export_without_brew(cli_args: list[str]) -> None:
    with patch("dotctl.brew.scanner.command_exists", return_value=False):
        result = runner.invoke(app, [*cli_args, "brew", "export"])

    assert result.exit_code == 1
    assert "not available" in result.output
