"""Span records and the trace model builder."""
from tracescope.trace.build_trace import TraceModelBuilder, build_trace_model
from tracescope.trace.describe import (
    ComponentKind,
    EntrypointType,
    SpanDescription,
    describe_span,
)
from tracescope.trace.log_model import LogRow, create_virtual_span_logs
from tracescope.trace.span_model import (
    Attribute,
    InstrumentationScope,
    Resource,
    Span,
    SpanEvent,
    SpanKind,
    SpanStatus,
    StatusCode,
    to_number_timestamp,
)
from tracescope.trace.trace_model import Component, Group, TraceModel, TraceSpanNode

__all__ = [
    "Attribute",
    "Component",
    "ComponentKind",
    "EntrypointType",
    "Group",
    "InstrumentationScope",
    "LogRow",
    "Resource",
    "Span",
    "SpanDescription",
    "SpanEvent",
    "SpanKind",
    "SpanStatus",
    "StatusCode",
    "TraceModel",
    "TraceModelBuilder",
    "TraceSpanNode",
    "build_trace_model",
    "create_virtual_span_logs",
    "describe_span",
    "to_number_timestamp",
]
