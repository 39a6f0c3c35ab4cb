"""Runline segments: the parts of a span bar where no descendant is active.

A parent span draws a continuation line only while it is doing its own work.
Wherever a child (or any deeper descendant) occupies time, the line pauses and
resumes once that time is free again. Segment percentages are relative to the
span's own visible bar, so a renderer can place them without redoing any
window math.
"""
from __future__ import annotations

from dataclasses import dataclass

from tracescope.trace.trace_model import TraceModel, TraceSpanNode, iter_nodes
from tracescope.viewport.offsets import (
    WindowLike,
    calculate_visible_span_window,
    relative_time,
    window_bounds,
)


@dataclass(frozen=True)
class VisibleSegment:
    start_percent: float
    width_percent: float

    @property
    def end_percent(self) -> float:
        return self.start_percent + self.width_percent


@dataclass(frozen=True)
class ChildConnector:
    """Anchor for a vertical line from a parent bar down to a child."""

    span_id: str
    position: str  # "start" or "end"
    percent: float


def collect_descendant_time_ranges(
    node: TraceSpanNode,
    trace: TraceModel,
) -> list[tuple[float, float]]:
    """(start, end) of every descendant in pre-order, in ns since trace start."""
    return [
        (relative_time(trace, d.span.start), relative_time(trace, d.span.end))
        for d in iter_nodes(node.children)
    ]


def calculate_visible_segments(
    node: TraceSpanNode,
    trace: TraceModel,
    window: WindowLike = None,
) -> list[VisibleSegment]:
    """Sub-intervals of a span's visible bar that no descendant covers."""
    visible = calculate_visible_span_window(trace, node.span, window)
    if not visible.duration > 0:
        return []

    def to_segment(start: float, end: float) -> VisibleSegment:
        start_percent = (start - visible.start) / visible.duration * 100
        end_percent = (end - visible.start) / visible.duration * 100
        return VisibleSegment(start_percent, end_percent - start_percent)

    busy = []
    for start, end in collect_descendant_time_ranges(node, trace):
        start, end = max(start, visible.start), min(end, visible.end)
        if end > start:
            busy.append((start, end))

    if not busy:
        return [VisibleSegment(0.0, 100.0)]

    busy.sort(key=lambda r: r[0])

    segments: list[VisibleSegment] = []
    cursor = visible.start
    for start, end in busy:
        if start > cursor:
            segments.append(to_segment(cursor, start))
        cursor = max(cursor, end)

    if cursor < visible.end:
        segments.append(to_segment(cursor, visible.end))

    return segments


def calculate_child_connectors(
    node: TraceSpanNode,
    trace: TraceModel,
    window: WindowLike = None,
) -> list[ChildConnector]:
    """Start/end anchors of each direct child, relative to the parent's visible bar.

    Children entirely outside the window get no anchors. An anchor is only
    emitted when it falls within the parent's visible bar.
    """
    if not node.children:
        return []

    visible = calculate_visible_span_window(trace, node.span, window)
    if not visible.duration > 0:
        return []

    window_start, window_end = window_bounds(trace, window)
    connectors: list[ChildConnector] = []
    for child in node.children:
        child_start = relative_time(trace, child.span.start)
        child_end = relative_time(trace, child.span.end)
        if child_end < window_start or child_start > window_end:
            continue

        anchors = (
            ("start", max(child_start, window_start)),
            ("end", min(child_end, window_end)),
        )
        for position, time in anchors:
            percent = (time - visible.start) / visible.duration * 100
            if 0 <= percent <= 100:
                connectors.append(ChildConnector(child.span.span_id, position, percent))

    return connectors
