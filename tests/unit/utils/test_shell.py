"""Unit tests for shell execution utilities."""

from unittest.mock import MagicMock, patch

from dotctl.utils.shell import CommandResult, command_exists, output_lines, run_command


class TestRunCommand:
    """Tests for run_command function."""

    @patch("dotctl.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """run_command wraps the completed process in a CommandResult."""
        mock_run.return_value = MagicMock(stdout="out", stderr="err", returncode=3)

        result = run_command(["brew", "tap"])

        assert result == CommandResult(stdout="out", stderr="err", returncode=3)
        assert result.success is False
        kwargs = mock_run.call_args.kwargs
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["timeout"] == 60.0

    @patch("dotctl.utils.shell.subprocess.run")
    def test_passes_timeout_and_cwd(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["stow", "-S", "zsh"], timeout=5.0, cwd="/tmp")

        assert mock_run.call_args.kwargs["timeout"] == 5.0
        assert mock_run.call_args.kwargs["cwd"] == "/tmp"


class TestCommandExists:
    """Tests for command_exists function."""

    def test_found(self) -> None:
        with patch("dotctl.utils.shell.shutil.which", return_value="/usr/bin/stow"):
            assert command_exists("stow") is True

    def test_missing(self) -> None:
        with patch("dotctl.utils.shell.shutil.which", return_value=None):
            assert command_exists("mas") is False


def test_output_lines_strips_blanks() -> None:
    result = CommandResult(stdout="  ripgrep\n\nfd  \n \n", stderr="", returncode=0)

    assert output_lines(result) == ["ripgrep", "fd"]
