"""Color keys shared by every view of a trace.

A color key is the group name when one exists, otherwise the service name,
otherwise ``unknown-service``. The trace model indexes these keys so that
renderers pick the same palette slot for a service no matter where it appears.
"""
from __future__ import annotations

from typing import Optional

from tracescope.trace.describe import UNKNOWN_SERVICE
from tracescope.trace.trace_model import Component, Group, TraceModel, TraceSpanNode


def color_key_for_node(node: TraceSpanNode) -> str:
    """Color key of a single span: its group, else its service."""
    group_name = node.description.group_name if node.description else ""
    return group_name or node.span.resource.service_name or UNKNOWN_SERVICE


def color_key_for_component(component: Component, trace: TraceModel) -> str:
    """Color key for a component box.

    Args:
        component: Component to color
        trace: Trace holding the component's group

    Returns:
        The owning group's name when the component has a named group,
        otherwise its service name, otherwise ``unknown-service``.
    """
    group = trace.groups.get(component.group_id) if component.group_id else None
    if group is not None and group.name:
        return group.name
    return component.service_name or UNKNOWN_SERVICE


def color_key_for_group(group: Group, component: Optional[Component] = None) -> str:
    """Color key for a group box.

    Args:
        group: Group to color
        component: Optional member component, used when the group is unnamed

    Returns:
        Group name, else the component's service name, else
        ``unknown-service``.
    """
    if group.name:
        return group.name
    if component is not None and component.service_name:
        return component.service_name
    return UNKNOWN_SERVICE


def service_color_index(trace: TraceModel, color_key: str, palette_size: int) -> int:
    """Palette slot for a color key.

    Args:
        trace: Trace whose ``service_name_mapping`` assigns the indices
        color_key: Key from one of the ``color_key_for_*`` functions
        palette_size: Number of colors in the renderer's palette

    Returns:
        Index in ``[0, palette_size)``. Unknown keys and empty palettes give 0.
    """
    if palette_size <= 0:
        return 0
    return trace.service_name_mapping.get(color_key, 0) % palette_size
