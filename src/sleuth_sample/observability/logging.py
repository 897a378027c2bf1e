"""
sleuth_sample.observability.logging

Structured logging configuration for the service.

Responsibilities:
- Configure `structlog` over stdlib logging, for our own loggers and foreign ones
  (uvicorn, httpx) alike.
- Interpolate the active trace/span ids into every line.
- Render either a pattern line (`[<trace_id>-<span_id>] <message>`) or JSON.
"""

from __future__ import annotations

import logging
import string
import sys
from typing import Any, Literal, TextIO

import structlog

from sleuth_sample.tracing.context import ABSENT_MARKER
from sleuth_sample.tracing.propagator import propagator

LogFormat = Literal["console", "json"]

DEFAULT_PATTERN = "{timestamp} {level:<5} [{correlation}] {logger} : {event}"

# Keys produced by the processor chain that never belong in the `key=value` tail.
_RESERVED = frozenset(
    {"event", "level", "logger", "timestamp", "service", "trace_id", "span_id", "parent_span_id"}
)


def add_trace_context(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    # Runs in the caller's context, so it sees the unit of work's installed context.
    current = propagator.current()
    event_dict["trace_id"] = current.trace_id
    event_dict["span_id"] = current.span_id
    if current.parent_span_id is not None:
        event_dict["parent_span_id"] = current.parent_span_id
    return event_dict


def _add_service_name(service_name: str):
    # Adds a stable "service" field for log routing/aggregation across environments.
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


class _Fields(dict):
    def __missing__(self, key: str) -> str:
        return ABSENT_MARKER


class PatternRenderer:
    """
    Render an event dict through a `str.format` pattern.

    Besides the event dict keys, `{correlation}` expands to `<trace_id>-<span_id>`
    or to a single `-` when no context is installed. Keys the pattern does not
    reference are appended as `key=value`; exceptions follow on new lines.
    """

    def __init__(self, pattern: str = DEFAULT_PATTERN) -> None:
        self._pattern = pattern
        self._referenced = frozenset(
            name.split(".")[0].split("[")[0]
            for _, name, _, _ in string.Formatter().parse(pattern)
            if name
        )

    def __call__(self, _: Any, __: str, event_dict: dict[str, Any]) -> str:
        event_dict = dict(event_dict)
        exc = event_dict.pop("exception", None)
        stack = event_dict.pop("stack", None)

        trace_id = event_dict.get("trace_id") or ABSENT_MARKER
        span_id = event_dict.get("span_id") or ABSENT_MARKER
        fields = _Fields(event_dict)
        fields["trace_id"] = trace_id
        fields["span_id"] = span_id
        fields["correlation"] = (
            ABSENT_MARKER if ABSENT_MARKER in (trace_id, span_id) else f"{trace_id}-{span_id}"
        )
        fields["level"] = str(event_dict.get("level", ABSENT_MARKER)).upper()
        fields["event"] = str(event_dict.get("event", ""))

        line = self._pattern.format_map(fields)
        extras = [
            f"{key}={value}"
            for key, value in event_dict.items()
            if key not in self._referenced and key not in _RESERVED
        ]
        if extras:
            line = f"{line} {' '.join(extras)}"
        if stack:
            line = f"{line}\n{stack}"
        if exc:
            line = f"{line}\n{exc}"
        return line


def _renderer(log_format: LogFormat, pattern: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return PatternRenderer(pattern)


def configure_logging(
    *,
    service_name: str,
    level: str,
    log_format: LogFormat = "console",
    pattern: str = DEFAULT_PATTERN,
    stream: TextIO | None = None,
) -> logging.Handler:
    """
    Correlated logs for console reading or ingestion in ELK/Splunk/Datadog.

    Returns the installed root handler (tests point it at a buffer via `stream`).
    """

    # structlog processors run on each log event; keep this list focused and stable.
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service_name(service_name),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            # Rendering happens in the handler so stdlib records share the same format.
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format, pattern),
        ],
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    # Keep uvicorn's own loggers consistent with our handler.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(numeric_level)

    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# `add_trace_context` is the only link between the tracing core and the sink;
# request metadata (path/method) is bound via contextvars in `observability.middleware`.
