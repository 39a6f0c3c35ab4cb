"""Hierarchical trace model consumed by timeline and diagram renderers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from tracescope.trace.describe import EntrypointType, SpanDescription
from tracescope.trace.log_model import LogRow
from tracescope.trace.span_model import Span, SpanEvent


@dataclass(frozen=True)
class Group:
    id: str
    name: str


@dataclass(frozen=True)
class Component:
    id: str
    name: str
    group_id: str
    kind: str
    component_stack: str = ""
    service_name: str = ""
    entrypoint_type: EntrypointType = EntrypointType.INTERNAL


@dataclass
class TraceSpanNode:
    """A span placed in the tree, with its merged logs and events."""

    span: Span
    depth: int = 0
    children: list[TraceSpanNode] = field(default_factory=list)
    description: Optional[SpanDescription] = None
    logs: list[LogRow] = field(default_factory=list)
    events: list[SpanEvent] = field(default_factory=list)

    @property
    def span_id(self) -> str:
        return self.span.span_id

    @property
    def has_children(self) -> bool:
        return bool(self.children)


@dataclass(frozen=True)
class TraceModel:
    """A built trace: span tree, time bounds and derived metadata."""

    trace_id: str = ""
    start_time_unix_nano: Union[int, float] = 0
    end_time_unix_nano: Union[int, float] = 0
    duration_nano: Union[int, float] = 0
    span_count: int = 0
    roots: list[TraceSpanNode] = field(default_factory=list)
    service_name_mapping: dict[str, int] = field(default_factory=dict)
    groups: dict[str, Group] = field(default_factory=dict)
    components: dict[str, Component] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.span_count == 0

    def iter_nodes(self) -> Iterator[TraceSpanNode]:
        """Yield every node depth-first in render order (pre-order)."""
        return iter_nodes(self.roots)

    def find_node(self, span_id: str) -> Optional[TraceSpanNode]:
        for node in self.iter_nodes():
            if node.span.span_id == span_id:
                return node
        return None

    def span_ids(self) -> set[str]:
        return {node.span.span_id for node in self.iter_nodes()}


def iter_nodes(nodes: list[TraceSpanNode]) -> Iterator[TraceSpanNode]:
    """Pre-order walk using an explicit stack so deep traces cannot overflow."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def empty_trace_model() -> TraceModel:
    return TraceModel()
