"""Interactive view state for a rendered trace."""
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

__all__ = [
    "ExpansionKind",
    "ViewState",
    "collapse_span",
    "create_view_state",
    "ensure_children_expanded",
    "is_expanded",
    "prune_descendant_state",
    "prune_invalid_state",
    "set_expanded",
    "set_time_window",
    "toggle_expanded",
    "update_expanded",
    "validate_state",
]
