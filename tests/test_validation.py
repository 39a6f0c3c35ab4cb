"""Tests for span batch checks and export payload schema validation."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

from tracescope.trace.span_model import Attribute, Span, SpanEvent
from tracescope.validation import (
    IssueLevel,
    ValidationReport,
    validate_otel_payload,
    validate_trace_spans,
)

SpanFactory = Callable[..., Span]


def _messages(issues) -> list[str]:
    return [issue.message for issue in issues]


class TestValidateTraceSpans:
    """validate_trace_spans."""

    def test_clean_batch(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([
            span_factory("a", 0, 10),
            span_factory("b", 2, 8, parent="a", events=[SpanEvent("e", 5)]),
        ])
        assert report.ok
        assert report.issues == []

    def test_not_a_list(self) -> None:
        report = validate_trace_spans({"spans": []})
        assert _messages(report.errors) == ["Trace data must be an array of spans."]

    def test_missing_trace_id(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([span_factory("a", 0, 10, trace_id="")])
        assert 'Span "a": Missing traceId.' in _messages(report.errors)

    def test_missing_span_id_uses_index(self, span_factory: SpanFactory) -> None:
        spans = [span_factory(f"s{i}", 0, 10) for i in range(3)] + [span_factory("", 0, 10)]
        report = validate_trace_spans(spans)
        assert _messages(report.errors) == ["Span @ index 3: Missing spanId."]

    def test_missing_name(self) -> None:
        report = validate_trace_spans([Span(name="", span_id="a", trace_id="t", end_time_unix_nano=1)])
        assert _messages(report.errors) == ['Span "a": Missing span name.']

    def test_duplicate_span_id(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([span_factory("a", 0, 10), span_factory("a", 0, 10)])
        assert _messages(report.errors) == ['Span "a": Duplicate spanId detected.']

    def test_non_span_entry(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([span_factory("a", 0, 10), {"spanId": "b"}])
        assert _messages(report.errors) == ["Span @ index 1: Span must be an object."]

    def test_bad_timestamps(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([
            span_factory("a", "soon", 10),
            span_factory("b", 10, 5),
        ])
        assert _messages(report.errors) == [
            'Span "a": Invalid start or end timestamp.',
            'Span "b": endTimeUnixNano occurs before startTimeUnixNano.',
        ]

    def test_self_parent(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([span_factory("a", 0, 10, parent="a")])
        assert _messages(report.errors) == ['Span "a": span cannot be its own parent.']

    def test_attribute_problems(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([
            span_factory(
                "a", 0, 10,
                attributes=[Attribute("k", 1), Attribute("k", 2), Attribute("", 3)],
            ),
        ])
        assert _messages(report.errors) == ['Span "a": Attribute at index 2 is missing key.']
        assert _messages(report.warnings) == ['Span "a": Duplicate attribute key "k".']

    def test_event_warnings(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([
            span_factory("a", 0, 10, events=[SpanEvent("late", 50), SpanEvent("bad", "x")]),
        ])
        assert report.ok
        assert _messages(report.warnings) == [
            'Span "a": Event "late" is outside the span time window.',
            'Span "a": Event @1 has invalid timestamp.',
        ]
        assert all(issue.level == IssueLevel.WARNING for issue in report.warnings)

    def test_multiple_trace_ids(self, span_factory: SpanFactory) -> None:
        report = validate_trace_spans([
            span_factory("a", 0, 10, trace_id="t1"),
            span_factory("b", 0, 10, trace_id="t2"),
        ])
        assert report.ok
        assert _messages(report.warnings) == ["Multiple traceIds detected in span collection."]

    def test_empty_batch(self) -> None:
        assert validate_trace_spans([]) == ValidationReport()


class TestValidateOtelPayload:
    """validate_otel_payload against the bundled schema."""

    def test_sample_is_valid(self, sample_trace_path: Path) -> None:
        payload = json.loads(sample_trace_path.read_text(encoding="utf-8"))
        result = validate_otel_payload(payload, file_path=str(sample_trace_path))
        assert result.valid, result.summary()
        assert "Valid" in result.summary()

    def test_missing_trace_id_is_reported(self) -> None:
        payload = {"spans": [{"span": {"spanId": "a", "name": "x"}}]}
        result = validate_otel_payload(payload)

        assert not result.valid
        assert result.errors[0].path == "$.spans[0]"
        assert "<dict>: 1 error(s)" in result.summary()

    def test_wrong_types(self) -> None:
        payload = {"spans": "nope", "logs": [{"severityNumber": 1.5}]}
        result = validate_otel_payload(payload)

        paths = [e.path for e in result.errors]
        assert "$.spans" in paths
        assert "$.logs[0].severityNumber" in paths

    def test_non_object_payload(self) -> None:
        result = validate_otel_payload([1, 2])
        assert not result.valid
        assert result.errors[0].path == "$"
