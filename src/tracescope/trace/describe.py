"""Span classification into logical groups and components.

The builder does not interpret spans itself. It asks a classifier for a
``SpanDescription`` and aggregates the groups and components it returns.
``describe_span`` is the default classifier; it reads OpenTelemetry
semantic-convention attributes:

- ``db.system`` -> database component
- ``messaging.system`` -> queue (producer) or queue consumer
- server spans with an HTTP route -> endpoint
- everything else -> the service itself
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Protocol

from tracescope.trace.span_model import Span, SpanKind

UNKNOWN_SERVICE = "unknown-service"
UNKNOWN_COMPONENT = "unknown-component"


class ComponentKind(str, Enum):
    START = "start"
    ENDPOINT = "endpoint"
    SERVICE = "service"
    ACTOR = "actor"
    QUEUE = "queue"
    QUEUECONSUMER = "queueconsumer"
    WORKFLOW = "workflow"
    ACTIVITY = "activity"
    DATABASE = "database"
    DATABASESTATEMENT = "databasestatement"
    SUBCOMPONENT = "subcomponent"


class EntrypointType(IntEnum):
    """Where a component sits in a request flow."""

    ENTRYPOINT = 1
    INTERNAL = 2
    EXITPOINT = 3


@dataclass(frozen=True)
class SpanDescription:
    group_name: str
    component_name: str
    operation: str
    component_kind: ComponentKind = ComponentKind.SERVICE
    component_stack: str = ""
    is_client: bool = False
    entrypoint_type: EntrypointType = EntrypointType.INTERNAL


class SpanClassifier(Protocol):
    def __call__(self, span: Span, service_name: str) -> SpanDescription: ...


_HTTP_ROUTE_KEYS = ("http.route", "url.path", "http.target")
_DESTINATION_KEYS = ("messaging.destination.name", "messaging.destination")


def _entrypoint_type(kind: SpanKind) -> EntrypointType:
    if kind in (SpanKind.SERVER, SpanKind.CONSUMER):
        return EntrypointType.ENTRYPOINT
    if kind in (SpanKind.CLIENT, SpanKind.PRODUCER):
        return EntrypointType.EXITPOINT
    return EntrypointType.INTERNAL


def _first_attribute(span: Span, keys: tuple[str, ...]) -> str:
    for key in keys:
        value = span.attribute(key)
        if value not in (None, ""):
            return str(value)
    return ""


def describe_span(span: Span, service_name: str) -> SpanDescription:
    """Default classifier based on OpenTelemetry semantic conventions."""
    group_name = span.resource.service_namespace or ""
    stack = span.instrumentation_scope.name or ""
    entrypoint = _entrypoint_type(span.kind)
    is_client = span.kind == SpanKind.CLIENT

    db_system = span.attribute("db.system")
    if db_system:
        return SpanDescription(
            group_name=group_name,
            component_name=str(span.attribute("db.name") or db_system),
            operation=str(span.attribute("db.operation") or span.name),
            component_kind=ComponentKind.DATABASE,
            component_stack=stack or str(db_system),
            is_client=is_client,
            entrypoint_type=entrypoint,
        )

    messaging_system = span.attribute("messaging.system")
    if messaging_system:
        destination = _first_attribute(span, _DESTINATION_KEYS) or str(messaging_system)
        kind = (
            ComponentKind.QUEUECONSUMER
            if span.kind == SpanKind.CONSUMER
            else ComponentKind.QUEUE
        )
        return SpanDescription(
            group_name=group_name,
            component_name=destination,
            operation=str(span.attribute("messaging.operation") or span.name),
            component_kind=kind,
            component_stack=stack or str(messaging_system),
            is_client=is_client,
            entrypoint_type=entrypoint,
        )

    route = _first_attribute(span, _HTTP_ROUTE_KEYS)
    if span.kind == SpanKind.SERVER and route:
        method = span.attribute("http.request.method") or span.attribute("http.method")
        operation = f"{method} {route}" if method else route
        return SpanDescription(
            group_name=group_name,
            component_name=service_name,
            operation=operation,
            component_kind=ComponentKind.ENDPOINT,
            component_stack=stack,
            is_client=is_client,
            entrypoint_type=entrypoint,
        )

    return SpanDescription(
        group_name=group_name,
        component_name=service_name,
        operation=span.name,
        component_kind=ComponentKind.SERVICE,
        component_stack=stack,
        is_client=is_client,
        entrypoint_type=entrypoint,
    )


def normalize_service_and_group(description: SpanDescription) -> tuple[str, str]:
    """Return trimmed ``(group_name, component_name)`` for aggregation."""
    group_name = (description.group_name or "").strip()
    component_name = (description.component_name or "").strip() or UNKNOWN_COMPONENT
    if group_name == component_name:
        group_name = ""
    return group_name, component_name


def create_component_key(group_name: str, component_name: str) -> str:
    if group_name:
        return f"{group_name}::{component_name}"
    return component_name
