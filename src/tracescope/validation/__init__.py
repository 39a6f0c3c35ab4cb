"""Advisory checks for span batches and schema validation for export payloads.

Nothing here blocks a build: ``build_trace_model`` accepts any well-typed
input. These checks let a caller surface problems (for example in a banner)
before or alongside rendering.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import jsonschema

from tracescope.trace.span_model import Span, parse_timestamp


class IssueLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    level: IssueLevel
    message: str


@dataclass
class ValidationReport:
    """Errors and warnings found in a span batch."""

    errors: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> list[Issue]:
        return [*self.errors, *self.warnings]

    def error(self, message: str) -> None:
        self.errors.append(Issue(IssueLevel.ERROR, message))

    def warning(self, message: str) -> None:
        self.warnings.append(Issue(IssueLevel.WARNING, message))


def validate_trace_spans(spans: Any) -> ValidationReport:
    """Check a span batch for structural problems without modifying it.

    Errors: missing spanId/traceId/name, duplicate spanId, self-parenting,
    unparseable timestamps, end before start, attributes without a key.
    Warnings: duplicate attribute keys, events outside the span or with bad
    timestamps, more than one traceId in the batch.
    """
    report = ValidationReport()

    if not isinstance(spans, (list, tuple)):
        report.error("Trace data must be an array of spans.")
        return report

    span_ids: set[str] = set()
    trace_ids: set[str] = set()

    for index, span in enumerate(spans):
        span_id = getattr(span, "span_id", None)
        context = f'Span "{span_id}"' if span_id else f"Span @ index {index}"

        if not isinstance(span, Span):
            report.error(f"{context}: Span must be an object.")
            continue

        if not span.span_id:
            report.error(f"{context}: Missing spanId.")
        elif span.span_id in span_ids:
            report.error(f"{context}: Duplicate spanId detected.")
        else:
            span_ids.add(span.span_id)

        if not span.trace_id:
            report.error(f"{context}: Missing traceId.")
        else:
            trace_ids.add(span.trace_id)

        if not span.name:
            report.error(f"{context}: Missing span name.")

        start = parse_timestamp(span.start_time_unix_nano)
        end = parse_timestamp(span.end_time_unix_nano)
        if start is None or end is None:
            report.error(f"{context}: Invalid start or end timestamp.")
        elif end < start:
            report.error(f"{context}: endTimeUnixNano occurs before startTimeUnixNano.")

        if span.parent_span_id and span.parent_span_id == span.span_id:
            report.error(f"{context}: span cannot be its own parent.")

        attribute_keys: set[str] = set()
        for attr_index, attribute in enumerate(span.attributes):
            key = getattr(attribute, "key", None)
            if not key:
                report.error(f"{context}: Attribute at index {attr_index} is missing key.")
            elif key in attribute_keys:
                report.warning(f'{context}: Duplicate attribute key "{key}".')
            else:
                attribute_keys.add(key)

        for event_index, event in enumerate(span.events):
            event_time = parse_timestamp(getattr(event, "time_unix_nano", None))
            if event_time is None:
                report.warning(f"{context}: Event @{event_index} has invalid timestamp.")
            elif start is not None and end is not None and not start <= event_time <= end:
                name = getattr(event, "name", None) or event_index
                report.warning(f'{context}: Event "{name}" is outside the span time window.')

    if len(trace_ids) > 1:
        report.warning("Multiple traceIds detected in span collection.")

    return report


# ---------------------------------------------------------------------------
# Export payload schema validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single schema validation error."""

    path: str
    message: str


@dataclass
class ValidationResult:
    """Result of validating a payload."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    file_path: str = ""

    def summary(self) -> str:
        """Return a human-readable summary."""
        if self.valid:
            return f"✓ {self.file_path}: Valid"
        lines = [f"✗ {self.file_path}: {len(self.errors)} error(s)"]
        for err in self.errors:
            lines.append(f"  {err.path} - {err.message}")
        return "\n".join(lines)


OTEL_EXPORT_SCHEMA = "otel_export.schema.json"


def _get_schema_dir() -> Path:
    return Path(__file__).parent / "schemas"


@lru_cache(maxsize=None)
def _load_schema(schema_name: str) -> dict[str, Any]:
    """Load a bundled JSON schema by name."""
    schema_path = _get_schema_dir() / schema_name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def _format_path(path: Sequence[Any]) -> str:
    """Format a jsonschema path as a dotted string."""
    if not path:
        return "$"
    parts = ["$"]
    for p in path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(f".{p}")
    return "".join(parts)


def validate_otel_payload(payload: Any, file_path: str = "<dict>") -> ValidationResult:
    """Validate an export payload (``{"spans": [...], "logs": [...]}``).

    Args:
        payload: Decoded JSON/YAML document.
        file_path: Label used in the summary.

    Returns:
        ValidationResult with any errors found.
    """
    result = ValidationResult(valid=True, file_path=file_path)

    try:
        schema = _load_schema(OTEL_EXPORT_SCHEMA)
    except FileNotFoundError as e:
        result.valid = False
        result.errors.append(ValidationError(path="$", message=str(e)))
        return result

    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(
        validator.iter_errors(payload),
        key=lambda e: _format_path(list(e.absolute_path)),
    )

    if errors:
        result.valid = False
        for err in errors:
            result.errors.append(ValidationError(
                path=_format_path(list(err.absolute_path)),
                message=err.message,
            ))

    return result


__all__ = [
    "Issue",
    "IssueLevel",
    "ValidationError",
    "ValidationReport",
    "ValidationResult",
    "validate_otel_payload",
    "validate_trace_spans",
]
