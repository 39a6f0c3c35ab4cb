"""Set-based expand/collapse helpers."""
from __future__ import annotations


def toggle_expanded(state_set: set[str], item_id: str) -> bool:
    """Flip membership of ``item_id``; returns True when it is now expanded."""
    if item_id in state_set:
        state_set.discard(item_id)
        return False
    state_set.add(item_id)
    return True


def is_expanded(state_set: set[str], item_id: str) -> bool:
    return item_id in state_set


def set_expanded(state_set: set[str], item_id: str, expanded: bool) -> None:
    if expanded:
        state_set.add(item_id)
    else:
        state_set.discard(item_id)
