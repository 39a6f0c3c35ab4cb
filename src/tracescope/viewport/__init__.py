"""Offset and segment arithmetic for zoomed trace timelines."""
from tracescope.viewport.markers import (
    SpanMarker,
    TimelineMarker,
    calculate_marker_position,
    collect_markers,
    compute_timeline_markers,
    format_duration_nano,
    format_timestamp,
)
from tracescope.viewport.offsets import (
    SpanOffsets,
    TimeWindow,
    VisibleSpanWindow,
    calculate_visible_span_window,
    compute_span_offsets,
    window_position_to_time_delta,
)
from tracescope.viewport.segments import (
    ChildConnector,
    VisibleSegment,
    calculate_child_connectors,
    calculate_visible_segments,
    collect_descendant_time_ranges,
)

__all__ = [
    "ChildConnector",
    "SpanMarker",
    "SpanOffsets",
    "TimeWindow",
    "TimelineMarker",
    "VisibleSegment",
    "VisibleSpanWindow",
    "calculate_child_connectors",
    "calculate_marker_position",
    "calculate_visible_segments",
    "calculate_visible_span_window",
    "collect_descendant_time_ranges",
    "collect_markers",
    "compute_span_offsets",
    "compute_timeline_markers",
    "format_duration_nano",
    "format_timestamp",
    "window_position_to_time_delta",
]
