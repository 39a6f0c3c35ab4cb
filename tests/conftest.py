"""tracescope test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from tracescope.trace.span_model import Resource, Span  # noqa: E402

BASE_NS = 1_700_000_000_000_000_000


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sample_trace_path(fixtures_dir: Path) -> Path:
    """Return the path to the well-formed sample export."""
    return fixtures_dir / "otel" / "sample_trace.json"


@pytest.fixture
def broken_trace_path(fixtures_dir: Path) -> Path:
    """Return the path to the export with structural problems."""
    return fixtures_dir / "otel" / "broken_trace.yaml"


def make_span(
    span_id: str,
    start: Any = 0,
    end: Any = 0,
    parent: str | None = None,
    name: str | None = None,
    trace_id: str = "trace-1",
    service: str | None = "svc",
    **kwargs: Any,
) -> Span:
    """Build a span with small relative timestamps."""
    return Span(
        name=name or f"op-{span_id}",
        span_id=span_id,
        trace_id=trace_id,
        parent_span_id=parent,
        start_time_unix_nano=start,
        end_time_unix_nano=end,
        resource=kwargs.pop("resource", Resource(service_name=service)),
        **kwargs,
    )


@pytest.fixture
def span_factory() -> Callable[..., Span]:
    """Return the ``make_span`` helper."""
    return make_span
