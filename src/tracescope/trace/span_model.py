from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

Timestamp = Union[int, float, str, None]

# Leading decimal number, as far as it reads: "1500abc" -> "1500"
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")


class SpanKind(str, Enum):
    """OpenTelemetry span kinds."""

    INTERNAL = "SPAN_KIND_INTERNAL"
    SERVER = "SPAN_KIND_SERVER"
    CLIENT = "SPAN_KIND_CLIENT"
    PRODUCER = "SPAN_KIND_PRODUCER"
    CONSUMER = "SPAN_KIND_CONSUMER"


class StatusCode(str, Enum):
    """OpenTelemetry span status codes."""

    UNSET = "STATUS_CODE_UNSET"
    OK = "STATUS_CODE_OK"
    ERROR = "STATUS_CODE_ERROR"


@dataclass(frozen=True)
class Attribute:
    """A key/value pair attached to a span, event or log row."""

    key: str
    value: Any = None
    description: str = ""


@dataclass(frozen=True)
class SpanStatus:
    """Terminal status of a span.

    ``code`` accepts a ``StatusCode`` or its string value. Missing or
    unrecognised codes are stored as ``StatusCode.UNSET``.
    """

    code: StatusCode = StatusCode.UNSET
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.code, StatusCode):
            return
        try:
            code = StatusCode(self.code) if self.code else StatusCode.UNSET
        except ValueError:
            code = StatusCode.UNSET
        object.__setattr__(self, "code", code)

    @property
    def is_terminal(self) -> bool:
        """True when the span reported OK or ERROR."""
        return self.code != StatusCode.UNSET


@dataclass(frozen=True)
class Resource:
    service_name: Optional[str] = None
    service_namespace: Optional[str] = None


@dataclass(frozen=True)
class InstrumentationScope:
    name: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class SpanEvent:
    """A timestamped event recorded inside a span."""

    name: str
    time_unix_nano: Timestamp = None
    attributes: list[Attribute] = field(default_factory=list)


@dataclass(frozen=True)
class Span:
    """A single timed operation, shaped after the OpenTelemetry span record."""

    name: str
    span_id: str
    trace_id: str

    # Hierarchy
    parent_span_id: Optional[str] = None
    kind: SpanKind = SpanKind.INTERNAL

    # Timing (unix epoch nanoseconds)
    start_time_unix_nano: Timestamp = 0
    end_time_unix_nano: Timestamp = 0

    attributes: list[Attribute] = field(default_factory=list)
    events: list[SpanEvent] = field(default_factory=list)
    status: SpanStatus = field(default_factory=SpanStatus)
    instrumentation_scope: InstrumentationScope = field(default_factory=InstrumentationScope)
    resource: Resource = field(default_factory=Resource)

    @property
    def start(self) -> Union[int, float]:
        return to_number_timestamp(self.start_time_unix_nano)

    @property
    def end(self) -> Union[int, float]:
        return to_number_timestamp(self.end_time_unix_nano)

    @property
    def duration_nano(self) -> Union[int, float]:
        return self.end - self.start

    def attribute(self, key: str, default: Any = None) -> Any:
        """Return the value of the first attribute named ``key``."""
        for attr in self.attributes:
            if attr.key == key:
                return attr.value
        return default


def parse_timestamp(value: Any) -> Optional[Union[int, float]]:
    """Parse a nanosecond timestamp.

    Integers are kept as ``int`` so epoch nanoseconds keep full precision.
    Strings are read up to the end of their leading number, so ``"1500abc"``
    gives 1500. Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value.strip())
        if match is None:
            return None
        text = match.group(0)
        if _INTEGER.fullmatch(text):
            return int(text)
        parsed = float(text)
        return parsed if math.isfinite(parsed) else None
    return None


def to_number_timestamp(value: Any) -> Union[int, float]:
    """Best-effort numeric coercion of a timestamp, defaulting to 0."""
    parsed = parse_timestamp(value)
    return 0 if parsed is None else parsed
