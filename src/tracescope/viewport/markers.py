"""Log/event markers on span bars and time-axis markers for the timeline."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

from tracescope.trace.log_model import LogRow
from tracescope.trace.span_model import SpanEvent, Timestamp, parse_timestamp
from tracescope.trace.trace_model import TraceModel, TraceSpanNode
from tracescope.viewport.offsets import WindowLike, coerce_window, trace_total_duration


@dataclass(frozen=True)
class SpanMarker:
    """A log row or event positioned on a span bar."""

    timestamp: Timestamp
    type: str  # "log" or "event"
    log_row: Optional[LogRow] = None
    event: Optional[SpanEvent] = None


@dataclass(frozen=True)
class TimelineMarker:
    position_percent: float
    offset_nano: float
    label: str


def collect_markers(node: TraceSpanNode) -> list[SpanMarker]:
    markers = [SpanMarker(row.time_unix_nano, "log", log_row=row) for row in node.logs]
    markers.extend(SpanMarker(event.time_unix_nano, "event", event=event) for event in node.events)
    return markers


def calculate_marker_position(
    marker_time: float,
    visible_start: float,
    visible_duration: float,
) -> float:
    """Percent position of a timestamp within a visible span.

    All three values must share a time base. Falls back to the centre of the
    bar when the span has no visible duration.
    """
    if not visible_duration > 0:
        return 50.0
    return (marker_time - visible_start) / visible_duration * 100


def format_duration_nano(duration: Union[int, float]) -> str:
    if not isinstance(duration, (int, float)) or not math.isfinite(duration) or duration < 0:
        return "0 ns"
    if duration >= 1e9:
        return f"{duration / 1e9:.2f} s"
    if duration >= 1e6:
        return f"{duration / 1e6:.2f} ms"
    if duration >= 1e3:
        return f"{duration / 1e3:.2f} μs"
    return f"{duration:.0f} ns"


def format_duration_ms(duration_nano: float) -> str:
    return f"{duration_nano / 1e6:.2f} ms"


def format_timestamp(value: Any) -> str:
    """UTC wall-clock time (HH:MM:SS.mmm) of a nanosecond timestamp."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    try:
        moment = datetime.fromtimestamp(parsed / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    return moment.strftime("%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def compute_timeline_markers(
    trace: TraceModel,
    count: int = 3,
    window: WindowLike = None,
) -> list[TimelineMarker]:
    """Evenly spaced time-axis markers across the current window.

    Produces ``count + 1`` markers (both window edges included). Labels show
    the elapsed time from the trace start, not from the window start.
    """
    if count < 1:
        return []

    win = coerce_window(window)
    total = trace_total_duration(trace)
    interval = 100 / count

    markers = []
    for index in range(count + 1):
        position = index * interval
        absolute_position = win.start + position * win.width / 100
        offset = total * absolute_position / 100
        markers.append(TimelineMarker(position, offset, format_duration_ms(offset)))
    return markers
