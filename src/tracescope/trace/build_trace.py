from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from tracescope.trace.describe import (
    UNKNOWN_SERVICE,
    SpanClassifier,
    create_component_key,
    describe_span,
    normalize_service_and_group,
)
from tracescope.trace.identity import color_key_for_node
from tracescope.trace.log_model import LogRow, build_logs_map
from tracescope.trace.span_model import Span
from tracescope.trace.trace_model import (
    Component,
    Group,
    TraceModel,
    TraceSpanNode,
    empty_trace_model,
    iter_nodes,
)

logger = logging.getLogger(__name__)

LogSource = Callable[[], Sequence[LogRow]]


class TraceModelBuilder:
    """Turns a flat span list into a ``TraceModel``.

    Args:
        classifier: Describes each span's group/component. Defaults to
            ``describe_span``.
        log_source: Supplies log rows when ``build`` is called without any.
    """

    def __init__(
        self,
        classifier: Optional[SpanClassifier] = None,
        log_source: Optional[LogSource] = None,
    ) -> None:
        self.classifier = classifier or describe_span
        self.log_source = log_source

    def build(
        self,
        spans: Sequence[Span],
        log_rows: Optional[Sequence[LogRow]] = None,
    ) -> TraceModel:
        if not spans:
            return empty_trace_model()

        if log_rows is None and self.log_source is not None:
            log_rows = list(self.log_source())

        logs_by_span_id = build_logs_map(spans, log_rows)

        nodes: dict[str, TraceSpanNode] = {}
        groups: dict[str, Group] = {}
        components: dict[str, Component] = {}

        for span in spans:
            service_name = span.resource.service_name or UNKNOWN_SERVICE
            description = self.classifier(span, service_name)

            group_name, component_name = normalize_service_and_group(description)
            if group_name and group_name not in groups:
                groups[group_name] = Group(id=group_name, name=group_name)

            component_id = create_component_key(group_name, component_name)
            if component_id not in components:
                components[component_id] = Component(
                    id=component_id,
                    name=component_name,
                    group_id=group_name,
                    kind=description.component_kind.value,
                    component_stack=description.component_stack or "",
                    service_name=service_name,
                    entrypoint_type=description.entrypoint_type,
                )

            # Last span wins on duplicate ids; validate_trace_spans reports them.
            nodes[span.span_id] = TraceSpanNode(
                span=span,
                description=description,
                logs=list(logs_by_span_id.get(span.span_id, [])),
                events=list(span.events),
            )

        roots = self._link(nodes)

        trace_id = spans[0].trace_id
        for span in spans:
            trace_id = span.trace_id or trace_id
        start = min(span.start for span in spans)
        end = max(span.end for span in spans)

        service_name_mapping = {
            key: index
            for index, key in enumerate(sorted({color_key_for_node(n) for n in nodes.values()}))
        }

        logger.debug(
            "Built trace %s: %d spans, %d roots, %d log rows",
            trace_id,
            len(spans),
            len(roots),
            sum(len(n.logs) for n in nodes.values()),
        )

        return TraceModel(
            trace_id=trace_id,
            start_time_unix_nano=start,
            end_time_unix_nano=end,
            duration_nano=max(end - start, 0),
            span_count=len(spans),
            roots=roots,
            service_name_mapping=service_name_mapping,
            groups=groups,
            components=components,
        )

    @staticmethod
    def _link(nodes: dict[str, TraceSpanNode]) -> list[TraceSpanNode]:
        """Attach every node to its parent and return the sorted roots."""
        roots: list[TraceSpanNode] = []
        for node in nodes.values():
            parent_id = node.span.parent_span_id
            parent = nodes.get(parent_id) if parent_id else None
            if parent is not None and parent is not node:
                parent.children.append(node)
            else:
                if parent_id and parent is None:
                    logger.debug(
                        "Span %s references missing parent %s; treating as root",
                        node.span.span_id,
                        parent_id,
                    )
                roots.append(node)

        # Spans whose parent chain loops never reach a root; cut each cycle at
        # the first member encountered so every span stays renderable.
        reachable = {id(n) for n in iter_nodes(roots)}
        for node in nodes.values():
            if id(node) in reachable:
                continue
            parent = nodes[node.span.parent_span_id]
            parent.children = [c for c in parent.children if c is not node]
            roots.append(node)
            reachable.update(id(n) for n in iter_nodes([node]))
            logger.debug("Span %s is part of a parent cycle; treating as root", node.span.span_id)

        # list.sort is stable, so spans sharing a start time keep input order.
        roots.sort(key=lambda n: n.span.start)
        stack = list(roots)
        while stack:
            node = stack.pop()
            node.children.sort(key=lambda n: n.span.start)
            for child in node.children:
                child.depth = node.depth + 1
                stack.append(child)
        return roots


def build_trace_model(
    spans: Sequence[Span],
    log_rows: Optional[Sequence[LogRow]] = None,
    classifier: Optional[SpanClassifier] = None,
) -> TraceModel:
    """Build a hierarchical trace model from spans in any order."""
    return TraceModelBuilder(classifier=classifier).build(spans, log_rows)
