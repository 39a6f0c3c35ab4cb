"""Log rows and the virtual logs synthesized from span lifecycles."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from tracescope.trace.span_model import Attribute, Span, StatusCode, Timestamp

SEVERITY_SPAN = "span"
SEVERITY_EVENT = "event"
SEVERITY_ERROR = "error"


@dataclass(frozen=True)
class LogRow:
    """A log record, either supplied externally or synthesized from a span."""

    id: str
    template: str
    time_unix_nano: Timestamp = None
    severity_number: Optional[int] = None
    severity_text: Optional[str] = None
    body: Any = None
    attributes: list[Attribute] = field(default_factory=list)
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    observed_time_unix_nano: Timestamp = None
    dropped_attributes_count: Optional[int] = None
    flags: Optional[int] = None


def span_start_log_id(span_id: str) -> str:
    return f"span-start-{span_id}"


def span_event_log_id(span_id: str, index: int) -> str:
    return f"event-{span_id}-{index}"


def span_end_log_id(span_id: str) -> str:
    return f"span-end-{span_id}"


def _status_text(span: Span) -> str:
    code = span.status.code.value.replace("STATUS_CODE_", "")
    if span.status.message:
        return f"{code}: {span.status.message}"
    return code


def create_virtual_span_logs(span: Span) -> list[LogRow]:
    """Synthesize the span-start, per-event and span-end log rows for a span.

    The end row is only produced when the span carries a terminal status.
    Ids are deterministic so a later merge can detect rows that already exist.
    """
    rows = [
        LogRow(
            id=span_start_log_id(span.span_id),
            template=f"Span start : {span.name}",
            time_unix_nano=span.start_time_unix_nano,
            severity_text=SEVERITY_SPAN,
            attributes=list(span.attributes),
            trace_id=span.trace_id,
            span_id=span.span_id,
        )
    ]

    for index, event in enumerate(span.events):
        rows.append(
            LogRow(
                id=span_event_log_id(span.span_id, index),
                template=event.name,
                time_unix_nano=event.time_unix_nano,
                severity_text=SEVERITY_EVENT,
                attributes=list(event.attributes),
                trace_id=span.trace_id,
                span_id=span.span_id,
            )
        )

    if span.status.is_terminal:
        severity = SEVERITY_ERROR if span.status.code == StatusCode.ERROR else SEVERITY_SPAN
        rows.append(
            LogRow(
                id=span_end_log_id(span.span_id),
                template=f"Span ended : {span.name}, status: {_status_text(span)}",
                time_unix_nano=span.end_time_unix_nano,
                severity_text=severity,
                trace_id=span.trace_id,
                span_id=span.span_id,
            )
        )

    return rows


def build_logs_map(
    spans: Sequence[Span],
    log_rows: Optional[Sequence[LogRow]] = None,
) -> dict[str, list[LogRow]]:
    """Group log rows by span id and add any missing virtual logs.

    Virtual logs are skipped for a span whose bucket already holds its
    span-start row, which keeps repeated merges free of duplicates.
    """
    logs_by_span_id: dict[str, list[LogRow]] = {}

    for row in log_rows or []:
        if row.span_id:
            logs_by_span_id.setdefault(row.span_id, []).append(row)

    for span in spans:
        bucket = logs_by_span_id.setdefault(span.span_id, [])
        start_id = span_start_log_id(span.span_id)
        if not any(row.id == start_id for row in bucket):
            bucket.extend(create_virtual_span_logs(span))

    return logs_by_span_id
