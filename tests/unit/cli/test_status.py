"""Unit tests for the status command."""

from pathlib import Path

from dotctl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


def test_status_before_any_run(cli_args: list[str], patterns_dir: Path) -> None:
    result = runner.invoke(app, [*cli_args, "status"])

    assert result.exit_code == 0
    assert "7 sensitive, 7 ignore, 6 adopt" in result.output
    assert "never" in result.output
    assert "Recent activity" not in result.output


def test_status_reports_missing_files(cli_args: list[str]) -> None:
    result = runner.invoke(app, [*cli_args, "status"])

    assert result.exit_code == 0
    assert "0 sensitive, 0 ignore, 0 adopt" in result.output
    assert "Missing" in result.output


def test_status_after_run(cli_args: list[str], home: Path, patterns_dir: Path) -> None:
    (home / ".zshrc").write_text("")
    runner.invoke(app, [*cli_args, "run"])

    result = runner.invoke(app, [*cli_args, "status"])

    assert result.exit_code == 0
    assert "never" not in result.output
    assert "Recent activity" in result.output
    assert "Scan complete" in result.output
