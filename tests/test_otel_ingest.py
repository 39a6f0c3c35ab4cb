"""Tests for the OpenTelemetry export adapter."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from tracescope.ingest.otel import (
    load_otel_file,
    load_otel_payload,
    normalize_any_value,
    parse_otel_data,
    parse_otel_log,
    parse_otel_span,
    parse_severity_number,
)
from tracescope.trace.span_model import SpanKind, StatusCode


class TestSeverity:
    """parse_severity_number."""

    def test_enum_names(self) -> None:
        assert parse_severity_number("SEVERITY_NUMBER_UNSPECIFIED") == 0
        assert parse_severity_number("SEVERITY_NUMBER_INFO") == 9
        assert parse_severity_number("SEVERITY_NUMBER_FATAL4") == 24

    def test_integers_pass_through(self) -> None:
        assert parse_severity_number(17) == 17

    @pytest.mark.parametrize("value", ["LOUD", None, 1.5, True])
    def test_unknown_is_none(self, value) -> None:
        assert parse_severity_number(value) is None


class TestAnyValue:
    """normalize_any_value."""

    def test_scalars(self) -> None:
        assert normalize_any_value({"stringValue": "x"}) == "x"
        assert normalize_any_value({"intValue": "42"}) == 42
        assert normalize_any_value({"doubleValue": 1.5}) == 1.5
        assert normalize_any_value({"boolValue": False}) is False

    def test_nested(self) -> None:
        value = {
            "kvlistValue": {
                "values": [
                    {"key": "ids", "value": {"arrayValue": {"values": [{"intValue": 1}, {"intValue": "2"}]}}},
                    {"key": "ok", "value": {"boolValue": True}},
                ]
            }
        }
        assert normalize_any_value(value) == {"ids": [1, 2], "ok": True}

    def test_plain_values_pass_through(self) -> None:
        assert normalize_any_value("plain") == "plain"
        assert normalize_any_value({"a": 1}) == {"a": 1}
        assert normalize_any_value({"intValue": "not a number"}) == "not a number"


class TestParseSpan:
    """parse_otel_span."""

    def test_wrapped_record(self) -> None:
        span = parse_otel_span({
            "serviceName": "cart",
            "span": {
                "traceId": "t1",
                "spanId": "s1",
                "parentSpanId": "",
                "name": "add item",
                "kind": "SPAN_KIND_CLIENT",
                "startTimeUnixNano": "100",
                "endTimeUnixNano": "250",
                "status": {"code": "STATUS_CODE_ERROR", "message": "boom"},
                "attributes": [{"key": "db.system", "value": {"stringValue": "redis"}}],
                "events": [{"name": "retry", "timeUnixNano": "120"}],
                "instrumentationScope": {"name": "redis-py", "version": "5.0"},
            },
        })

        assert span.span_id == "s1"
        assert span.parent_span_id is None
        assert span.kind == SpanKind.CLIENT
        assert span.duration_nano == 150
        assert span.status.code == StatusCode.ERROR
        assert span.status.message == "boom"
        assert span.attribute("db.system") == "redis"
        assert span.events[0].name == "retry"
        assert span.instrumentation_scope.name == "redis-py"
        assert span.resource.service_name == "cart"

    def test_bare_record_with_numeric_enums(self) -> None:
        span = parse_otel_span({
            "traceId": "t1",
            "spanId": "s1",
            "name": "consume",
            "kind": 5,
            "status": {"code": 2},
            "resource": {
                "attributes": [
                    {"key": "service.name", "value": {"stringValue": "worker"}},
                    {"key": "service.namespace", "value": {"stringValue": "jobs"}},
                ]
            },
        })

        assert span.kind == SpanKind.CONSUMER
        assert span.status.code == StatusCode.ERROR
        assert span.resource.service_name == "worker"
        assert span.resource.service_namespace == "jobs"

    def test_unknown_kind_and_service(self) -> None:
        span = parse_otel_span({"traceId": "t", "spanId": "s", "name": "n", "kind": "WEIRD"})
        assert span.kind == SpanKind.INTERNAL
        assert span.resource.service_name == "unknown-service"


class TestParseLog:
    """parse_otel_log."""

    def test_string_body_is_template(self) -> None:
        row = parse_otel_log({"body": {"stringValue": "hello"}, "spanId": "s1"}, "l1")
        assert row.id == "l1"
        assert row.template == "hello"
        assert row.span_id == "s1"

    def test_original_format_fallback(self) -> None:
        row = parse_otel_log({
            "body": {"intValue": "5"},
            "attributes": [{"key": "{OriginalFormat}", "value": {"stringValue": "count {n}"}}],
        }, "l1")
        assert row.template == "count {n}"
        assert row.body == 5

    def test_stringified_body_and_default(self) -> None:
        assert parse_otel_log({"body": {"intValue": "5"}}, "l1").template == "5"
        assert parse_otel_log({}, "l2").template == "Log entry"

    def test_generated_id(self) -> None:
        row = parse_otel_log({"traceId": "t", "spanId": "s", "timeUnixNano": "99"})
        assert row.id == "log-t-s-99"

    def test_severity_fields(self) -> None:
        row = parse_otel_log({
            "severityNumber": "SEVERITY_NUMBER_WARN",
            "severityText": "WARN",
            "observedTimeUnixNano": "7",
            "flags": 1,
        }, "l1")
        assert row.severity_number == 13
        assert row.severity_text == "WARN"
        assert row.observed_time_unix_nano == "7"
        assert row.flags == 1


class TestParseData:
    """parse_otel_data and file loading."""

    def test_sample_file(self, sample_trace_path: Path) -> None:
        data = load_otel_file(sample_trace_path)

        assert [s.span_id for s in data.spans] == ["c2", "a1", "b1", "c1", "d1"]
        assert [row.id for row in data.logs] == ["otel-log-0", "otel-log-1", "otel-log-2"]
        assert data.logs[0].template == "charging card"
        assert data.logs[1].template == "checkout failed for {order}"
        assert data.logs[1].severity_number == 17

    def test_yaml_file(self, broken_trace_path: Path) -> None:
        data = load_otel_file(broken_trace_path)
        assert [s.span_id for s in data.spans] == ["s1", "s2", "s1", "s3"]
        assert data.spans[0].start_time_unix_nano == 1000
        assert data.logs == []

    def test_jsonl_file(self, tmp_path: Path) -> None:
        path = tmp_path / "spans.jsonl"
        lines = [
            {"traceId": "t", "spanId": "a", "name": "root"},
            {"traceId": "t", "spanId": "b", "parentSpanId": "a", "name": "child"},
        ]
        path.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n", encoding="utf-8")

        data = load_otel_file(path)
        assert [s.span_id for s in data.spans] == ["a", "b"]

    def test_top_level_list(self, tmp_path: Path) -> None:
        path = tmp_path / "spans.json"
        path.write_text(json.dumps([{"traceId": "t", "spanId": "a", "name": "root"}]), encoding="utf-8")
        assert load_otel_payload(path) == {"spans": [{"traceId": "t", "spanId": "a", "name": "root"}]}

    def test_scalar_payload_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("just a string\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_otel_payload(path)

    def test_bad_records_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="tracescope.ingest.otel"):
            data = parse_otel_data({
                "spans": ["not a record", {"traceId": "t", "spanId": "ok", "name": "n"}],
                "logs": [42],
            })

        assert [s.span_id for s in data.spans] == ["ok"]
        assert data.logs == []
        assert "Failed to parse span at index 0" in caplog.text
        assert "Failed to parse log at index 0" in caplog.text
