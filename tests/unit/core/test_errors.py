"""Unit tests for the setup error hierarchy."""

from pathlib import Path

from dotctl.core.errors import (
    HomeNotAccessibleError,
    PatternsDirMissingError,
    PatternStoreError,
    SetupError,
    SetupPathError,
)


def test_home_error_message_includes_detail() -> None:
    error = HomeNotAccessibleError(Path("/Users/x"), "Permission denied")

    assert isinstance(error, SetupPathError)
    assert error.path == Path("/Users/x")
    assert str(error) == "Home directory is not accessible (Permission denied): /Users/x"


def test_home_error_without_detail() -> None:
    assert str(HomeNotAccessibleError(Path("/h"))) == "Home directory is not accessible: /h"


def test_patterns_dir_missing_is_a_setup_error() -> None:
    error = PatternsDirMissingError(Path("/d/patterns"))

    assert isinstance(error, PatternStoreError)
    assert isinstance(error, SetupError)
    assert "Patterns directory not found" in str(error)
