from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from tracescope.config import Config, load_config
from tracescope.errors import (
    ErrorCode,
    error_exit,
    handle_exception,
    is_verbose,
    make_error,
    set_verbose,
)
from tracescope.ingest.otel import load_otel_payload, parse_otel_data
from tracescope.state.view_state import (
    ViewState,
    collapse_span,
    set_time_window,
    validate_state,
)
from tracescope.trace.build_trace import build_trace_model
from tracescope.trace.identity import color_key_for_node, service_color_index
from tracescope.trace.trace_model import TraceModel, TraceSpanNode
from tracescope.validation import validate_otel_payload, validate_trace_spans
from tracescope.viewport.markers import compute_timeline_markers, format_duration_nano
from tracescope.viewport.offsets import TimeWindow, compute_span_offsets
from tracescope.viewport.segments import calculate_child_connectors, calculate_visible_segments

logger = logging.getLogger(__name__)


def _load_payload(path: Path) -> dict[str, Any]:
    if not path.exists():
        error_exit(ErrorCode.E001, str(path))
    try:
        return load_otel_payload(path)
    except (ValueError, yaml.YAMLError) as e:
        handle_exception(e, ErrorCode.E002, f"{path}: {e}")
        raise SystemExit(1)


def _load_trace(path: Path) -> TraceModel:
    data = parse_otel_data(_load_payload(path))
    logger.info("Loaded %d spans and %d logs from %s", len(data.spans), len(data.logs), path)
    return build_trace_model(data.spans, data.logs)


def _resolve_window(args: argparse.Namespace, config: Config) -> TimeWindow:
    """Window from --window, else from configuration; exits on a bad range."""
    start, end = args.window if args.window else (config.window_start, config.window_end)
    if not (math.isfinite(start) and math.isfinite(end)):
        error_exit(ErrorCode.E005, f"{start} {end}")
    if not (0 <= start < end <= 100):
        error_exit(ErrorCode.E005, f"{start} {end}")
    return TimeWindow(start, end)


def _new_state(trace: TraceModel, config: Config, window: TimeWindow) -> ViewState:
    state = ViewState(
        show_runline_x=config.show_runline_x,
        show_runline_y=config.show_runline_y,
    )
    validate_state(trace, state)
    set_time_window(state, window.start, window.end)
    return state


def _visible_nodes(trace: TraceModel, state: ViewState) -> Iterator[TraceSpanNode]:
    """Pre-order walk that skips the children of collapsed spans."""
    stack = list(reversed(trace.roots))
    while stack:
        node = stack.pop()
        yield node
        if node.span.span_id in state.expanded_children:
            stack.extend(reversed(node.children))


def _tree_row(
    trace: TraceModel,
    state: ViewState,
    node: TraceSpanNode,
    palette_size: int,
) -> dict[str, Any]:
    offsets = compute_span_offsets(trace, node.span, state.time_window)
    color_key = color_key_for_node(node)
    return {
        "spanId": node.span.span_id,
        "name": node.span.name,
        "depth": node.depth,
        "service": color_key,
        "colorIndex": service_color_index(trace, color_key, palette_size),
        "hasChildren": node.has_children,
        "expanded": node.span.span_id in state.expanded_children,
        "duration": format_duration_nano(node.span.duration_nano),
        "offsets": asdict(offsets),
        "logCount": len(node.logs),
    }


def _cmd_tree(args: argparse.Namespace) -> int:
    """Print the visible span tree with window offsets."""
    config = args.config
    trace = _load_trace(Path(args.file))
    window = _resolve_window(args, config)
    state = _new_state(trace, config, window)

    for span_id in args.collapse or []:
        node = trace.find_node(span_id)
        if node is None:
            error_exit(ErrorCode.E004, span_id)
        collapse_span(node, state)

    rows = [_tree_row(trace, state, node, config.palette_size) for node in _visible_nodes(trace, state)]

    if args.json:
        print(json.dumps({
            "traceId": trace.trace_id,
            "spanCount": trace.span_count,
            "window": asdict(state.time_window),
            "rows": rows,
        }, indent=2))
        return 0

    if trace.is_empty:
        print("(empty trace)")
        return 0

    print(f"Trace {trace.trace_id}  spans={trace.span_count}  "
          f"duration={format_duration_nano(trace.duration_nano)}")
    markers = compute_timeline_markers(trace, config.timeline_markers, state.time_window)
    print("Axis: " + " | ".join(m.label for m in markers))
    print()

    for row in rows:
        if not row["hasChildren"]:
            toggle = "   "
        elif row["expanded"]:
            toggle = "[-]"
        else:
            toggle = "[+]"
        offsets = row["offsets"]
        if offsets["width_percent"] > 0:
            bar = f"{offsets['start_percent']:6.2f}% +{offsets['width_percent']:6.2f}%"
        else:
            bar = "(outside window)"
        print(f"{'  ' * row['depth']}{toggle} {row['name']} [{row['service']}#{row['colorIndex']}] "
              f"{row['duration']}  {bar}  id={row['spanId']}")
    return 0


def _cmd_segments(args: argparse.Namespace) -> int:
    """Print offsets, self-time segments and child connectors of one span as JSON."""
    config = args.config
    trace = _load_trace(Path(args.file))
    window = _resolve_window(args, config)

    node = trace.find_node(args.span)
    if node is None:
        error_exit(ErrorCode.E004, args.span)

    print(json.dumps({
        "spanId": node.span.span_id,
        "window": asdict(window),
        "offsets": asdict(compute_span_offsets(trace, node.span, window)),
        "segments": [asdict(s) for s in calculate_visible_segments(node, trace, window)],
        "connectors": [asdict(c) for c in calculate_child_connectors(node, trace, window)],
    }, indent=2))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    """Validate an export payload and its spans."""
    path = Path(args.file)
    payload = _load_payload(path)

    if args.schema:
        result = validate_otel_payload(payload, file_path=str(path))
        print(result.summary())
        if not result.valid:
            make_error(ErrorCode.E003).print()
            return 2

    data = parse_otel_data(payload)
    report = validate_trace_spans(data.spans)

    for issue in report.errors:
        print(f"ERROR: {issue.message}")
    for issue in report.warnings:
        print(f"WARNING: {issue.message}")

    if not report.issues:
        print(f"✓ {path}: {len(data.spans)} span(s), no issues")

    if report.errors or (args.strict and report.warnings):
        return 2
    return 0


def _cmd_show_config(args: argparse.Namespace) -> int:
    """Show effective configuration from all sources."""
    print(json.dumps(args.config.to_dict(), indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tracescope",
        description="Trace model builder and timeline viewport for OpenTelemetry exports",
    )

    # Global flags
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging and full tracebacks on errors",
    )
    p.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to .env file (default: nearest .env up to the git root)",
    )
    p.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    # validate
    p_val = sub.add_parser(
        "validate",
        help="Check an export payload for structural problems",
    )
    p_val.add_argument("file", help="Path to .json, .jsonl or .yaml export")
    p_val.add_argument(
        "--schema",
        action="store_true",
        help="Also validate the payload against the bundled JSON schema",
    )
    p_val.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as failures",
    )
    p_val.set_defaults(func=_cmd_validate)

    # tree
    p_tree = sub.add_parser(
        "tree",
        help="Print the span tree with offsets for a time window",
    )
    p_tree.add_argument("file", help="Path to .json, .jsonl or .yaml export")
    p_tree.add_argument(
        "--window",
        nargs=2,
        type=float,
        metavar=("START", "END"),
        help="Zoom window as percentages of the trace duration",
    )
    p_tree.add_argument(
        "--collapse",
        nargs="+",
        metavar="SPAN_ID",
        help="Collapse these spans before printing",
    )
    p_tree.add_argument(
        "--json",
        action="store_true",
        help="Print rows as JSON",
    )
    p_tree.set_defaults(func=_cmd_tree)

    # segments
    p_seg = sub.add_parser(
        "segments",
        help="Print visible self-time segments and child connectors of a span",
    )
    p_seg.add_argument("file", help="Path to .json, .jsonl or .yaml export")
    p_seg.add_argument("--span", required=True, help="Span id")
    p_seg.add_argument(
        "--window",
        nargs=2,
        type=float,
        metavar=("START", "END"),
        help="Zoom window as percentages of the trace duration",
    )
    p_seg.set_defaults(func=_cmd_segments)

    # show-config
    p_show_config = sub.add_parser(
        "show-config",
        help="Show effective configuration from all sources",
    )
    p_show_config.set_defaults(func=_cmd_show_config)

    return p


def main(argv: Optional[list[str]] = None) -> None:
    args = _build_parser().parse_args(argv)

    set_verbose(args.verbose)

    try:
        args.config = load_config(env_file=args.env_file)
    except ValueError as e:
        error_exit(ErrorCode.E006, str(e))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else args.config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        rc = args.func(args)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except FileNotFoundError as e:
        handle_exception(e, ErrorCode.E001, str(e))
        raise SystemExit(1)
    except Exception as e:
        if is_verbose():
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
            print("Run with --verbose for full traceback", file=sys.stderr)
        raise SystemExit(1)
