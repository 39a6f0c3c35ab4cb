"""Error codes reported by the tracescope command line.

Every failure the CLI reports is printed as ``TS-<code>: <message>`` followed
by an optional details line and a hint telling the user what to try next.
"""
from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """tracescope error codes."""

    # Input problems (E001-E099)
    E001 = "E001"  # Input file not found
    E002 = "E002"  # Cannot parse input file
    E003 = "E003"  # Export payload failed schema validation
    E004 = "E004"  # Span not found in trace
    E005 = "E005"  # Invalid time window
    E006 = "E006"  # Invalid configuration

    # Trace content (E100-E199)
    E100 = "E100"  # No spans in input

    # Trace checks (E200-E299)
    E200 = "E200"  # Trace validation found errors


@dataclass
class TraceScopeError:
    """A reportable failure: code, message and a next-step hint."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        out = [f"TS-{self.code.value}: {self.message}"]
        if self.details:
            out.append(f"  Details: {self.details}")
        out.append(f"  Next step: {self.next_step}")
        return "\n".join(out)

    def print(self, file=None) -> None:
        """Write the error to ``file``, stderr by default."""
        print(str(self), file=file if file is not None else sys.stderr)


# code -> (message, next step); "{details}" marks where details are inlined
ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.E001: (
        "Input file not found: {details}",
        "Check the FILE path"
    ),
    ErrorCode.E002: (
        "Cannot parse input file: {details}",
        "Input must be JSON, JSONL or YAML with a 'spans' list"
    ),
    ErrorCode.E003: (
        "Export payload failed schema validation",
        "Run 'tracescope validate --schema <file>' to see details"
    ),
    ErrorCode.E004: (
        "Span not found in trace: {details}",
        "Run 'tracescope tree <file>' to list span ids"
    ),
    ErrorCode.E005: (
        "Invalid time window: {details}",
        "Use --window START END with percentages between 0 and 100"
    ),
    ErrorCode.E006: (
        "Invalid configuration: {details}",
        "Run 'tracescope show-config' and check TRACESCOPE_* values in .env"
    ),
    ErrorCode.E100: (
        "No spans found in input",
        "Check that the payload has a non-empty 'spans' list"
    ),
    ErrorCode.E200: (
        "Trace validation failed: {details}",
        "Run 'tracescope validate <file>' to see all issues"
    ),
}

_PLACEHOLDER = "{details}"


def make_error(code: ErrorCode, details: Optional[str] = None) -> TraceScopeError:
    """Build the error for ``code``.

    Details are inlined when the template has a placeholder. Otherwise they
    are appended to the message and also kept on the error's details line.
    """
    template, next_step = ERROR_TEMPLATES.get(
        code, ("Unknown error", "Run 'tracescope --help'")
    )
    inline = _PLACEHOLDER in template

    if inline and details:
        message = template.format(details=details)
    elif inline:
        message = template.replace(": " + _PLACEHOLDER, "")
    elif details:
        message = f"{template}: {details}"
    else:
        message = template

    return TraceScopeError(
        code=code,
        message=message,
        next_step=next_step,
        details=None if inline else details,
    )


def error_exit(code: ErrorCode, details: Optional[str] = None, exit_code: int = 1) -> None:
    """Report ``code`` on stderr and terminate with ``exit_code``."""
    make_error(code, details).print()
    sys.exit(exit_code)


# Toggled by ``tracescope --verbose``
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    """Turn traceback output on or off."""
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Report ``exc`` under ``code``; in verbose mode add the traceback."""
    make_error(code, details or str(exc)).print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__)
