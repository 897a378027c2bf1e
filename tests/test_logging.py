"""
tests.test_logging

Correlation fields on rendered log lines, for structlog and stdlib loggers.
"""

from __future__ import annotations

import io
import json
import logging

import structlog

from sleuth_sample.observability.logging import (
    DEFAULT_PATTERN,
    PatternRenderer,
    add_trace_context,
    configure_logging,
)
from sleuth_sample.tracing.context import TraceContext
from sleuth_sample.tracing.propagator import propagator

CTX = TraceContext(trace_id="a" * 32, span_id="b" * 16)


def _lines(stream: io.StringIO) -> list[str]:
    return [line for line in stream.getvalue().splitlines() if line.strip()]


def test_add_trace_context_without_context_uses_marker() -> None:
    event = add_trace_context(None, "info", {"event": "x"})
    assert event["trace_id"] == "-"
    assert event["span_id"] == "-"
    assert "parent_span_id" not in event


def test_add_trace_context_with_context() -> None:
    child = CTX.child()
    with propagator.with_context(child):
        event = add_trace_context(None, "info", {"event": "x"})
    assert event["trace_id"] == "a" * 32
    assert event["span_id"] == child.span_id
    assert event["parent_span_id"] == "b" * 16


def test_pattern_renderer_canonical_form() -> None:
    render = PatternRenderer("[{correlation}] {event}")
    line = render(None, "info", {"event": "hello", "trace_id": "a" * 32, "span_id": "b" * 16})
    assert line == f"[{'a' * 32}-{'b' * 16}] hello"


def test_pattern_renderer_absent_is_single_marker() -> None:
    render = PatternRenderer("[{correlation}] {event}")
    assert render(None, "info", {"event": "hello", "trace_id": "-", "span_id": "-"}) == "[-] hello"
    assert render(None, "info", {"event": "hello"}) == "[-] hello"


def test_pattern_renderer_appends_unreferenced_keys() -> None:
    render = PatternRenderer("[{trace_id},{span_id}] {event}")
    line = render(None, "info", {"event": "hi", "trace_id": "-", "span_id": "-", "path": "/hello"})
    assert line == "[-,-] hi path=/hello"


def test_default_pattern_has_level_and_logger() -> None:
    render = PatternRenderer(DEFAULT_PATTERN)
    line = render(
        None,
        "info",
        {
            "event": "hi",
            "level": "info",
            "logger": "demo",
            "timestamp": "2024-01-01T00:00:00Z",
            "trace_id": "a" * 32,
            "span_id": "b" * 16,
        },
    )
    assert line == f"2024-01-01T00:00:00Z INFO  [{'a' * 32}-{'b' * 16}] demo : hi"


def test_configured_structlog_lines_are_correlated() -> None:
    stream = io.StringIO()
    configure_logging(
        service_name="svc", level="INFO", pattern="[{correlation}] {event}", stream=stream
    )
    log = structlog.get_logger("test.structlog")

    log.info("outside")
    with propagator.with_context(CTX):
        log.info("inside")

    assert _lines(stream) == ["[-] outside", f"[{'a' * 32}-{'b' * 16}] inside"]


def test_configured_stdlib_lines_are_correlated() -> None:
    stream = io.StringIO()
    configure_logging(
        service_name="svc", level="INFO", pattern="[{correlation}] {event}", stream=stream
    )
    std = logging.getLogger("test.stdlib")

    with propagator.with_context(CTX):
        std.info("from %s", "stdlib")
    std.info("after")

    assert _lines(stream) == [f"[{'a' * 32}-{'b' * 16}] from stdlib", "[-] after"]


def test_json_format_carries_ids() -> None:
    stream = io.StringIO()
    configure_logging(service_name="svc", level="INFO", log_format="json", stream=stream)

    with propagator.with_context(CTX):
        logging.getLogger("test.json").info("inside")
    logging.getLogger("test.json").info("outside")

    inside, outside = (json.loads(line) for line in _lines(stream))
    assert inside["trace_id"] == "a" * 32
    assert inside["span_id"] == "b" * 16
    assert inside["service"] == "svc"
    assert outside["trace_id"] == "-"
    assert outside["span_id"] == "-"


def test_exceptions_are_rendered_after_the_line() -> None:
    stream = io.StringIO()
    configure_logging(
        service_name="svc", level="INFO", pattern="[{correlation}] {event}", stream=stream
    )
    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        logging.getLogger("test.exc").exception("failed")

    output = stream.getvalue()
    assert output.startswith("[-] failed\n")
    assert "RuntimeError: kaput" in output
