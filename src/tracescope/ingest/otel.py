"""OpenTelemetry export adapter.

Maps the OTel JSON field names of an exported payload onto ``Span`` and
``LogRow``. No protocol decoding happens here; the payload is expected to be
already-decoded JSON (or YAML) shaped like::

    {"spans": [{"span": {...}, "serviceName": "checkout"}, ...],
     "logs": [{...}, ...]}
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from tracescope.trace.describe import UNKNOWN_SERVICE
from tracescope.trace.log_model import LogRow
from tracescope.trace.span_model import (
    Attribute,
    InstrumentationScope,
    Resource,
    Span,
    SpanEvent,
    SpanKind,
    SpanStatus,
    StatusCode,
)

logger = logging.getLogger(__name__)

SEVERITY_NUMBERS: dict[str, int] = {
    "SEVERITY_NUMBER_UNSPECIFIED": 0,
    "SEVERITY_NUMBER_TRACE": 1,
    "SEVERITY_NUMBER_TRACE2": 2,
    "SEVERITY_NUMBER_TRACE3": 3,
    "SEVERITY_NUMBER_TRACE4": 4,
    "SEVERITY_NUMBER_DEBUG": 5,
    "SEVERITY_NUMBER_DEBUG2": 6,
    "SEVERITY_NUMBER_DEBUG3": 7,
    "SEVERITY_NUMBER_DEBUG4": 8,
    "SEVERITY_NUMBER_INFO": 9,
    "SEVERITY_NUMBER_INFO2": 10,
    "SEVERITY_NUMBER_INFO3": 11,
    "SEVERITY_NUMBER_INFO4": 12,
    "SEVERITY_NUMBER_WARN": 13,
    "SEVERITY_NUMBER_WARN2": 14,
    "SEVERITY_NUMBER_WARN3": 15,
    "SEVERITY_NUMBER_WARN4": 16,
    "SEVERITY_NUMBER_ERROR": 17,
    "SEVERITY_NUMBER_ERROR2": 18,
    "SEVERITY_NUMBER_ERROR3": 19,
    "SEVERITY_NUMBER_ERROR4": 20,
    "SEVERITY_NUMBER_FATAL": 21,
    "SEVERITY_NUMBER_FATAL2": 22,
    "SEVERITY_NUMBER_FATAL3": 23,
    "SEVERITY_NUMBER_FATAL4": 24,
}

# OTLP/JSON encodes enums as integers; exporters often use the names instead.
_SPAN_KIND_NUMBERS = {
    1: SpanKind.INTERNAL,
    2: SpanKind.SERVER,
    3: SpanKind.CLIENT,
    4: SpanKind.PRODUCER,
    5: SpanKind.CONSUMER,
}
_STATUS_CODE_NUMBERS = {0: StatusCode.UNSET, 1: StatusCode.OK, 2: StatusCode.ERROR}

_ANY_VALUE_KEYS = (
    "stringValue",
    "intValue",
    "doubleValue",
    "boolValue",
    "bytesValue",
    "arrayValue",
    "kvlistValue",
)

ORIGINAL_FORMAT_KEY = "{OriginalFormat}"


@dataclass
class OtelData:
    spans: list[Span] = field(default_factory=list)
    logs: list[LogRow] = field(default_factory=list)


def parse_severity_number(value: Any) -> Optional[int]:
    """Map a severity enum name to 0-24; integers pass through."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        return SEVERITY_NUMBERS.get(value)
    return None


def normalize_any_value(value: Any) -> Any:
    """Unwrap an OTel ``AnyValue`` into a plain Python value."""
    if not isinstance(value, dict):
        return value
    present = [k for k in _ANY_VALUE_KEYS if k in value]
    if len(present) != 1 or len(value) != 1:
        return value

    kind = present[0]
    inner = value[kind]
    if kind == "intValue":
        try:
            return int(inner)
        except (TypeError, ValueError):
            return inner
    if kind == "doubleValue":
        try:
            return float(inner)
        except (TypeError, ValueError):
            return inner
    if kind == "arrayValue":
        return [normalize_any_value(v) for v in (inner or {}).get("values", [])]
    if kind == "kvlistValue":
        return {
            kv.get("key", ""): normalize_any_value(kv.get("value"))
            for kv in (inner or {}).get("values", [])
        }
    return inner


def _parse_attributes(raw: Any) -> list[Attribute]:
    attributes = []
    for item in raw or []:
        if isinstance(item, dict):
            attributes.append(
                Attribute(
                    key=item.get("key", ""),
                    value=normalize_any_value(item.get("value")),
                    description=item.get("description", ""),
                )
            )
    return attributes


def _parse_kind(value: Any) -> SpanKind:
    if isinstance(value, int):
        return _SPAN_KIND_NUMBERS.get(value, SpanKind.INTERNAL)
    try:
        return SpanKind(value)
    except ValueError:
        return SpanKind.INTERNAL


def _parse_status(raw: Any) -> SpanStatus:
    if not isinstance(raw, dict):
        return SpanStatus()
    code = raw.get("code", StatusCode.UNSET.value)
    if isinstance(code, int):
        status_code = _STATUS_CODE_NUMBERS.get(code, StatusCode.UNSET)
    else:
        try:
            status_code = StatusCode(code)
        except ValueError:
            status_code = StatusCode.UNSET
    return SpanStatus(code=status_code, message=raw.get("message") or None)


def _parse_resource(raw: Any, service_name: Optional[str]) -> Resource:
    raw = raw if isinstance(raw, dict) else {}
    attrs = {a.key: a.value for a in _parse_attributes(raw.get("attributes"))}
    return Resource(
        service_name=(
            service_name
            or raw.get("serviceName")
            or attrs.get("service.name")
            or UNKNOWN_SERVICE
        ),
        service_namespace=raw.get("serviceNamespace") or attrs.get("service.namespace") or None,
    )


def parse_otel_span(record: dict[str, Any]) -> Span:
    """Convert one exported span record (optionally wrapped with serviceName)."""
    data = record.get("span") or record
    scope = data.get("instrumentationScope") or {}

    return Span(
        name=data.get("name") or "",
        span_id=data.get("spanId") or "",
        trace_id=data.get("traceId") or "",
        parent_span_id=data.get("parentSpanId") or None,
        kind=_parse_kind(data.get("kind", SpanKind.INTERNAL.value)),
        start_time_unix_nano=data.get("startTimeUnixNano"),
        end_time_unix_nano=data.get("endTimeUnixNano"),
        attributes=_parse_attributes(data.get("attributes")),
        events=[
            SpanEvent(
                name=event.get("name") or "",
                time_unix_nano=event.get("timeUnixNano"),
                attributes=_parse_attributes(event.get("attributes")),
            )
            for event in data.get("events") or []
        ],
        status=_parse_status(data.get("status")),
        instrumentation_scope=InstrumentationScope(
            name=scope.get("name"),
            version=scope.get("version"),
        ),
        resource=_parse_resource(data.get("resource"), record.get("serviceName")),
    )


def _log_template(body: Any, attributes: list[Attribute]) -> str:
    if isinstance(body, str) and body:
        return body
    for attr in attributes:
        if attr.key == ORIGINAL_FORMAT_KEY and isinstance(attr.value, str) and attr.value:
            return attr.value
    if body is not None:
        return str(body)
    return "Log entry"


def parse_otel_log(record: dict[str, Any], log_id: Optional[str] = None) -> LogRow:
    """Convert one exported log record."""
    body = normalize_any_value(record["body"]) if record.get("body") is not None else None
    attributes = _parse_attributes(record.get("attributes"))

    if not log_id:
        log_id = "log-{}-{}-{}".format(
            record.get("traceId") or "unknown",
            record.get("spanId") or "unknown",
            record.get("timeUnixNano") or time.time_ns(),
        )

    return LogRow(
        id=log_id,
        template=_log_template(body, attributes),
        time_unix_nano=record.get("timeUnixNano"),
        observed_time_unix_nano=record.get("observedTimeUnixNano"),
        severity_number=parse_severity_number(record.get("severityNumber")),
        severity_text=record.get("severityText"),
        body=body,
        attributes=attributes,
        dropped_attributes_count=record.get("droppedAttributesCount"),
        flags=record.get("flags"),
        trace_id=record.get("traceId"),
        span_id=record.get("spanId"),
    )


def parse_otel_data(payload: dict[str, Any]) -> OtelData:
    """Convert a whole export payload; unparseable records are logged and skipped."""
    data = OtelData()

    for index, record in enumerate(payload.get("spans") or []):
        try:
            data.spans.append(parse_otel_span(record))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Failed to parse span at index %d: %s", index, e)

    for index, record in enumerate(payload.get("logs") or []):
        try:
            data.logs.append(parse_otel_log(record, f"otel-log-{index}"))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Failed to parse log at index %d: %s", index, e)

    return data


def load_otel_payload(path: Path) -> dict[str, Any]:
    """Read a payload from .json, .yaml/.yml, or .jsonl (one span per line).

    Raises:
        ValueError: If the file does not decode to a payload object.
    """
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()

    if suffix == ".jsonl":
        spans = [json.loads(line) for line in text.splitlines() if line.strip()]
        return {"spans": spans}

    if suffix in (".yaml", ".yml"):
        payload = yaml.safe_load(text)
    else:
        payload = json.loads(text)

    if isinstance(payload, list):
        payload = {"spans": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a payload object in {path}")
    return payload


def load_otel_file(path: Path) -> OtelData:
    return parse_otel_data(load_otel_payload(path))
