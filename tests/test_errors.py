"""Tests for the error code registry."""
from __future__ import annotations

import pytest

from tracescope import errors
from tracescope.errors import (
    ERROR_TEMPLATES,
    ErrorCode,
    TraceScopeError,
    error_exit,
    handle_exception,
    make_error,
    set_verbose,
)


class TestMakeError:
    """Tests for make_error."""

    def test_every_code_has_template(self) -> None:
        assert set(ERROR_TEMPLATES) == set(ErrorCode)

    def test_details_formatted_into_message(self) -> None:
        err = make_error(ErrorCode.E004, "abc123")
        assert err.message == "Span not found in trace: abc123"
        assert err.details is None
        assert str(err).startswith("TS-E004: Span not found in trace: abc123")
        assert "Next step:" in str(err)

    def test_details_appended_when_no_placeholder(self) -> None:
        err = make_error(ErrorCode.E100, "empty.json")
        assert err.message == "No spans found in input: empty.json"
        assert err.details == "empty.json"
        assert "Details: empty.json" in str(err)

    def test_placeholder_removed_without_details(self) -> None:
        err = make_error(ErrorCode.E001)
        assert err.message == "Input file not found"


class TestErrorOutput:
    """Tests for printing and exiting."""

    def test_print_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        TraceScopeError(ErrorCode.E003, "bad payload", "fix it").print()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "TS-E003: bad payload" in captured.err

    def test_error_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            error_exit(ErrorCode.E005, "50 50", exit_code=1)
        assert exc_info.value.code == 1
        assert "TS-E005: Invalid time window: 50 50" in capsys.readouterr().err

    def test_handle_exception_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_verbose(True)
        try:
            try:
                raise ValueError("broken input")
            except ValueError as e:
                handle_exception(e, ErrorCode.E002)
        finally:
            set_verbose(False)

        err = capsys.readouterr().err
        assert "TS-E002: Cannot parse input file: broken input" in err
        assert "Full Traceback" in err
        assert "ValueError: broken input" in err
        assert errors.is_verbose() is False
