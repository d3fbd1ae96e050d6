"""
Test error mapping and CLI exit code functionality.

Validates that exceptions are mapped to exit codes and that run_and_exit
converts failures into typer.Exit.
"""
from __future__ import annotations

import pytest
import typer

from registry_digest.mappers import EXIT_CODES, FALLBACK_EXIT_CODE, exit_code_for, run_and_exit
from registry_digest.registry.errors import (
    AuthenticationError,
    ManifestFetchError,
    ManifestResolutionError,
    TokenExchangeError,
)


def wrapped(cause: Exception) -> ManifestResolutionError:
    try:
        raise ManifestResolutionError(f"Got an error: {cause}") from cause
    except ManifestResolutionError as e:
        return e


class TestExitCodeMapping:
    """Test exception to exit code mapping."""

    def test_known_exceptions(self):
        assert exit_code_for(ValueError("bad name")) == 2
        assert exit_code_for(ManifestResolutionError("failed")) == 3
        assert exit_code_for(AuthenticationError("Bad credentials")) == 4

    def test_unknown_exception_maps_to_fallback(self):
        assert exit_code_for(RuntimeError("boom")) == FALLBACK_EXIT_CODE == 3

    def test_cause_wins_over_wrapper(self):
        """Test that a resolution failing on credentials exits with 4."""
        assert exit_code_for(wrapped(AuthenticationError("Bad credentials: 401"))) == 4

    def test_unmapped_cause_uses_wrapper(self):
        assert exit_code_for(wrapped(ManifestFetchError("404"))) == 3
        assert exit_code_for(wrapped(TokenExchangeError("403", status_code=403))) == 3

    def test_exit_code_constants(self):
        assert EXIT_CODES == {
            "ValueError": 2,
            "ManifestResolutionError": 3,
            "AuthenticationError": 4,
        }


class TestRunAndExit:
    """Test run_and_exit wrapper functionality."""

    def test_successful_function_returns_result(self):
        assert run_and_exit(lambda: "sha256:abc") == "sha256:abc"

    def test_exception_raises_typer_exit(self):
        def failing():
            raise ValueError("Image name cannot be empty")

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)

        assert exc_info.value.exit_code == 2

    def test_exception_chaining_preserved(self):
        original = ManifestResolutionError("both attempts failed")

        def failing():
            raise original

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)

        assert exc_info.value.__cause__ is original
        assert exc_info.value.exit_code == 3

    def test_error_message_on_stderr(self, capsys):
        def failing():
            raise ManifestResolutionError("registry said no")

        with pytest.raises(typer.Exit):
            run_and_exit(failing)

        assert "Error: registry said no" in capsys.readouterr().err
