"""Span geometry for an arbitrarily zoomed window of a trace.

A time window is a sub-range of the trace expressed as two percentages of the
trace duration. Everything a span bar needs is remapped from that window onto
``[0, 100]`` so the viewport always fills its drawing surface.

These functions never raise: malformed numbers and degenerate windows give
zero-width results, because one bad span must not blank the whole trace.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Union

from tracescope.trace.span_model import Span, to_number_timestamp
from tracescope.trace.trace_model import TraceModel

Number = Union[int, float]
WindowLike = Union["TimeWindow", Sequence[float], None]


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


@dataclass(frozen=True)
class TimeWindow:
    """Zoom range as percentages (0-100) of the trace duration."""

    start: float = 0.0
    end: float = 100.0

    def normalized(self) -> TimeWindow:
        start = _finite_or(self.start, 0.0)
        end = _finite_or(self.end, 100.0)
        return TimeWindow(clamp(start, 0.0, 100.0), clamp(end, 0.0, 100.0))

    @property
    def width(self) -> float:
        return self.end - self.start

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0


FULL_WINDOW = TimeWindow()


@dataclass(frozen=True)
class SpanOffsets:
    start_percent: float = 0.0
    width_percent: float = 0.0
    end_percent: float = 0.0

    @property
    def is_visible(self) -> bool:
        return self.width_percent > 0


@dataclass(frozen=True)
class VisibleSpanWindow:
    """Bounds of the part of a span inside a window, in ns since trace start."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


def _finite_or(value: object, default: float) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def coerce_window(window: WindowLike) -> TimeWindow:
    """Turn any accepted window form into a normalized ``TimeWindow``.

    Args:
        window: A ``TimeWindow``, a ``(start, end)`` pair of percentages or
            None for the full trace

    Returns:
        TimeWindow clamped into ``[0, 100]``. Non-finite bounds fall back to
        0 and 100, and input of the wrong shape gives the full window.
    """
    if window is None:
        return FULL_WINDOW
    if isinstance(window, TimeWindow):
        return window.normalized()
    try:
        start, end = window
    except (TypeError, ValueError):
        return FULL_WINDOW
    return TimeWindow(_finite_or(start, 0.0), _finite_or(end, 100.0)).normalized()


def trace_total_duration(trace: TraceModel) -> float:
    """Trace duration floored at 1ns so single-instant traces stay divisible."""
    duration = _finite_or(trace.duration_nano, 0.0)
    if duration <= 0:
        duration = float(
            to_number_timestamp(trace.end_time_unix_nano)
            - to_number_timestamp(trace.start_time_unix_nano)
        )
    return max(duration, 1)


def relative_time(trace: TraceModel, value: object) -> Number:
    """Nanoseconds between the trace start and a timestamp.

    Integer timestamps subtract exactly, so epoch nanoseconds keep full
    precision before any float math happens.
    """
    return to_number_timestamp(value) - to_number_timestamp(trace.start_time_unix_nano)


def window_bounds(trace: TraceModel, window: WindowLike = None) -> tuple[float, float]:
    """Start/end of a window in ns since trace start."""
    win = coerce_window(window)
    total = trace_total_duration(trace)
    return total * win.start / 100, total * win.end / 100


def _time_to_percent(trace: TraceModel, value: Number, total: float) -> float:
    return clamp(relative_time(trace, value) / total, 0.0, 1.0) * 100


def compute_span_offsets(
    trace: TraceModel,
    span: Span,
    window: WindowLike = None,
) -> SpanOffsets:
    """Visible start/width/end of a span bar, as percent of the window.

    Args:
        trace: Trace the span belongs to; supplies the time origin and total
            duration
        span: Span to place
        window: Zoom window, in any form ``coerce_window`` accepts

    Returns:
        SpanOffsets in ``[0, 100]`` with start + width == end. A span entirely
        outside the window, or a window with no width, yields all-zero
        offsets and should not be rendered.
    """
    win = coerce_window(window)
    if win.is_degenerate:
        return SpanOffsets()

    total = trace_total_duration(trace)
    start_percent = _time_to_percent(trace, span.start, total)
    end_percent = _time_to_percent(trace, span.end, total)
    if not (math.isfinite(start_percent) and math.isfinite(end_percent)):
        return SpanOffsets()

    if end_percent < win.start or start_percent > win.end:
        return SpanOffsets()

    clamped_start = max(start_percent, win.start)
    clamped_end = min(end_percent, win.end)

    remapped_start = clamp((clamped_start - win.start) / win.width * 100, 0.0, 100.0)
    remapped_end = clamp((clamped_end - win.start) / win.width * 100, 0.0, 100.0)
    remapped_end = max(remapped_end, remapped_start)

    return SpanOffsets(
        start_percent=remapped_start,
        width_percent=max(remapped_end - remapped_start, 0.0),
        end_percent=remapped_end,
    )


def calculate_visible_span_window(
    trace: TraceModel,
    span: Span,
    window: WindowLike = None,
) -> VisibleSpanWindow:
    """Clamp a span to the time range a window covers.

    Args:
        trace: Trace the span belongs to
        span: Span to clip
        window: Zoom window, in any form ``coerce_window`` accepts

    Returns:
        VisibleSpanWindow in nanoseconds since the trace start. Its duration
        is zero or negative when the span lies outside the window.
    """
    window_start, window_end = window_bounds(trace, window)
    return VisibleSpanWindow(
        start=max(relative_time(trace, span.start), window_start),
        end=min(relative_time(trace, span.end), window_end),
    )


def window_position_to_time_delta(
    trace: TraceModel,
    window: WindowLike,
    position_percent: float,
) -> float:
    """Map a position on the drawing surface to time.

    Args:
        trace: Trace being displayed
        window: Zoom window currently shown
        position_percent: Position across the drawing surface, 0-100

    Returns:
        Nanoseconds elapsed since the trace start at that position.
    """
    win = coerce_window(window)
    position = _finite_or(position_percent, 0.0)
    absolute_position = win.start + position * win.width / 100
    return trace_total_duration(trace) * absolute_position / 100
