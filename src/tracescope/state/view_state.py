"""Expand/collapse and zoom state for a rendered trace.

A ``ViewState`` belongs to whoever renders a trace and survives re-renders of
that trace. Every time the trace model is rebuilt the state must go through
``validate_state`` before rendering, because span ids from an earlier build
may no longer exist.

All functions accept ``state=None`` and do nothing in that case.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from tracescope.state.toggle import set_expanded
from tracescope.trace.trace_model import TraceModel, TraceSpanNode, iter_nodes
from tracescope.viewport.offsets import TimeWindow, coerce_window


class ExpansionKind(str, Enum):
    CHILDREN = "children"
    ATTRIBUTES = "attributes"


@dataclass
class ViewState:
    expanded_children: set[str] = field(default_factory=set)
    expanded_attributes: set[str] = field(default_factory=set)
    initialized_children: bool = False
    time_window_start: float = 0.0
    time_window_end: float = 100.0
    show_runline_x: bool = True
    show_runline_y: bool = False

    @property
    def time_window(self) -> TimeWindow:
        return TimeWindow(self.time_window_start, self.time_window_end)

    def expansion_set(self, kind: Union[ExpansionKind, str]) -> set[str]:
        if ExpansionKind(kind) == ExpansionKind.CHILDREN:
            return self.expanded_children
        return self.expanded_attributes


def create_view_state(trace: TraceModel) -> ViewState:
    """Create the view state for a freshly loaded trace.

    Args:
        trace: Trace the state will be rendered against

    Returns:
        ViewState showing the full window with every span that has children
        expanded.
    """
    state = ViewState()
    ensure_children_expanded(trace, state)
    return state


def update_expanded(
    state: Optional[ViewState],
    span_id: str,
    expanded: bool,
    kind: Union[ExpansionKind, str] = ExpansionKind.CHILDREN,
) -> None:
    """Record whether a span's children or attributes are expanded.

    Args:
        state: State to update; None is ignored
        span_id: Span to change
        expanded: True to expand, False to collapse
        kind: Which expansion to change, as ``ExpansionKind`` or its value

    Raises:
        ValueError: If ``kind`` is not a known expansion kind
    """
    if state is None:
        return
    set_expanded(state.expansion_set(kind), span_id, expanded)


def prune_descendant_state(node: TraceSpanNode, state: Optional[ViewState]) -> None:
    """Forget expansion of everything below ``node``.

    Without this a grandchild collapsed-over by its ancestor would reopen as
    soon as the ancestor is expanded again.
    """
    if state is None:
        return
    for descendant in iter_nodes(node.children):
        state.expanded_children.discard(descendant.span.span_id)
        state.expanded_attributes.discard(descendant.span.span_id)


def collapse_span(node: TraceSpanNode, state: Optional[ViewState]) -> None:
    """Collapse ``node`` and forget the expansion of its whole subtree."""
    if state is None:
        return
    state.expanded_children.discard(node.span.span_id)
    prune_descendant_state(node, state)


def prune_invalid_state(trace: TraceModel, state: Optional[ViewState]) -> None:
    """Drop expanded ids that are not in the current tree."""
    if state is None:
        return
    valid_ids = trace.span_ids()
    state.expanded_children &= valid_ids
    state.expanded_attributes &= valid_ids


def ensure_children_expanded(trace: TraceModel, state: Optional[ViewState]) -> None:
    """Expand every span with children, once per state object.

    Later calls are no-ops so a user's manual collapses persist across
    re-renders, even if the tree gains new expandable spans.
    """
    if state is None or state.initialized_children:
        return
    state.expanded_children.update(
        node.span.span_id for node in trace.iter_nodes() if node.children
    )
    state.initialized_children = True


def validate_state(trace: TraceModel, state: Optional[ViewState]) -> None:
    """Reconcile ``state`` with a (possibly rebuilt) trace.

    Call before every render: ids missing from ``trace`` are dropped and the
    one-time initial expansion is applied if it has not happened yet.

    Args:
        trace: Trace about to be rendered
        state: State to reconcile in place; None is ignored
    """
    if state is None:
        return
    prune_invalid_state(trace, state)
    ensure_children_expanded(trace, state)


def set_time_window(state: Optional[ViewState], start: float, end: float) -> None:
    """Store a zoom window.

    Args:
        state: State to update; None is ignored
        start: Window start, percent of the trace duration
        end: Window end, percent of the trace duration

    The bounds are ordered and clamped into 0-100 before being stored.
    """
    if state is None:
        return
    window = coerce_window((min(start, end), max(start, end)))
    state.time_window_start = window.start
    state.time_window_end = window.end
