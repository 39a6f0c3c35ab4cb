"""Adapters from exported telemetry payloads to spans and log rows."""
from tracescope.ingest.otel import (
    OtelData,
    load_otel_file,
    load_otel_payload,
    normalize_any_value,
    parse_otel_data,
    parse_otel_log,
    parse_otel_span,
    parse_severity_number,
)

__all__ = [
    "OtelData",
    "load_otel_file",
    "load_otel_payload",
    "normalize_any_value",
    "parse_otel_data",
    "parse_otel_log",
    "parse_otel_span",
    "parse_severity_number",
]
