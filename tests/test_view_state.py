"""Tests for expand/collapse and zoom state."""
from __future__ import annotations

from typing import Callable

import pytest

from tracescope.state.toggle import is_expanded, set_expanded, toggle_expanded
from tracescope.state.view_state import (
    ExpansionKind,
    ViewState,
    collapse_span,
    create_view_state,
    ensure_children_expanded,
    prune_descendant_state,
    prune_invalid_state,
    set_time_window,
    update_expanded,
    validate_state,
)
from tracescope.trace.build_trace import build_trace_model
from tracescope.trace.span_model import Span
from tracescope.viewport.offsets import TimeWindow

SpanFactory = Callable[..., Span]


@pytest.fixture
def nested_trace(span_factory: SpanFactory):
    """root -> mid -> leaf, plus a sibling leaf under root."""
    return build_trace_model([
        span_factory("root", 0, 100),
        span_factory("mid", 10, 60, parent="root"),
        span_factory("leaf", 20, 30, parent="mid"),
        span_factory("sibling", 70, 80, parent="root"),
    ])


class TestToggleHelpers:
    """Set-level helpers."""

    def test_toggle(self) -> None:
        items: set[str] = set()
        assert toggle_expanded(items, "a") is True
        assert is_expanded(items, "a")
        assert toggle_expanded(items, "a") is False
        assert not is_expanded(items, "a")

    def test_set_expanded(self) -> None:
        items: set[str] = set()
        set_expanded(items, "a", True)
        set_expanded(items, "a", True)
        assert items == {"a"}
        set_expanded(items, "a", False)
        set_expanded(items, "missing", False)
        assert items == set()


class TestInitialExpansion:
    """ensure_children_expanded / create_view_state."""

    def test_expands_spans_with_children(self, nested_trace) -> None:
        state = create_view_state(nested_trace)
        assert state.expanded_children == {"root", "mid"}
        assert state.expanded_attributes == set()
        assert state.initialized_children
        assert state.time_window == TimeWindow(0.0, 100.0)

    def test_runs_once(self, nested_trace) -> None:
        state = ViewState()
        ensure_children_expanded(nested_trace, state)
        state.expanded_children.discard("mid")
        ensure_children_expanded(nested_trace, state)
        assert state.expanded_children == {"root"}

    def test_empty_trace(self) -> None:
        state = create_view_state(build_trace_model([]))
        assert state.expanded_children == set()
        assert state.initialized_children


class TestUpdateExpanded:
    """update_expanded."""

    def test_children_by_default(self) -> None:
        state = ViewState()
        update_expanded(state, "a", True)
        assert state.expanded_children == {"a"}
        assert state.expanded_attributes == set()

    def test_attributes_kind(self) -> None:
        state = ViewState()
        update_expanded(state, "a", True, ExpansionKind.ATTRIBUTES)
        update_expanded(state, "b", True, "attributes")
        assert state.expanded_attributes == {"a", "b"}
        update_expanded(state, "a", False, "attributes")
        assert state.expanded_attributes == {"b"}

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError):
            update_expanded(ViewState(), "a", True, "logs")


class TestCollapse:
    """prune_descendant_state / collapse_span."""

    def test_prune_descendants_keeps_node(self, nested_trace) -> None:
        state = create_view_state(nested_trace)
        state.expanded_attributes.update({"root", "leaf"})

        prune_descendant_state(nested_trace.find_node("root"), state)

        assert state.expanded_children == {"root"}
        assert state.expanded_attributes == {"root"}

    def test_collapse_then_reexpand_hides_grandchildren(self, nested_trace) -> None:
        state = create_view_state(nested_trace)
        root = nested_trace.find_node("root")

        collapse_span(root, state)
        assert state.expanded_children == set()

        update_expanded(state, "root", True)
        assert state.expanded_children == {"root"}
        assert "mid" not in state.expanded_children

    def test_collapse_leaf(self, nested_trace) -> None:
        state = create_view_state(nested_trace)
        collapse_span(nested_trace.find_node("leaf"), state)
        assert state.expanded_children == {"root", "mid"}


class TestValidateState:
    """prune_invalid_state / validate_state across rebuilds."""

    def test_prune_drops_stale_ids(self, nested_trace) -> None:
        state = ViewState(expanded_children={"root", "gone"}, expanded_attributes={"old", "leaf"})
        prune_invalid_state(nested_trace, state)
        assert state.expanded_children == {"root"}
        assert state.expanded_attributes == {"leaf"}

    def test_validate_after_rebuild(self, nested_trace, span_factory: SpanFactory) -> None:
        state = create_view_state(nested_trace)
        collapse_span(nested_trace.find_node("mid"), state)

        rebuilt = build_trace_model([
            span_factory("root", 0, 100),
            span_factory("mid", 10, 60, parent="root"),
            span_factory("leaf", 20, 30, parent="mid"),
            span_factory("new", 30, 40, parent="leaf"),
        ])
        validate_state(rebuilt, state)

        # The user's collapse survives and the new expandable span stays closed.
        assert state.expanded_children == {"root"}
        assert state.expanded_children <= rebuilt.span_ids()

    def test_first_validate_expands(self, nested_trace) -> None:
        state = ViewState()
        validate_state(nested_trace, state)
        assert state.expanded_children == {"root", "mid"}


class TestTimeWindowState:
    """set_time_window."""

    def test_stores_ordered_window(self) -> None:
        state = ViewState()
        set_time_window(state, 80, 20)
        assert state.time_window == TimeWindow(20, 80)

    def test_clamps(self) -> None:
        state = ViewState()
        set_time_window(state, -5, 150)
        assert (state.time_window_start, state.time_window_end) == (0, 100)


class TestNoneState:
    """Every operation tolerates a missing state."""

    def test_all_operations_are_noops(self, nested_trace) -> None:
        node = nested_trace.roots[0]
        update_expanded(None, "root", True)
        prune_descendant_state(node, None)
        collapse_span(node, None)
        prune_invalid_state(nested_trace, None)
        ensure_children_expanded(nested_trace, None)
        validate_state(nested_trace, None)
        set_time_window(None, 0, 50)
