"""
sleuth_sample.tracing

In-process tracing core.

Responsibilities:
- Trace/span identifier values (`context`).
- Per-unit-of-work ambient storage for the active context (`propagator`).
- Header carriers for inbound/outbound propagation (`carriers`).
- Request bracketing (`interceptor`).
"""

from __future__ import annotations

from sleuth_sample.tracing.context import ABSENT, ABSENT_MARKER, AbsentContext, TraceContext
from sleuth_sample.tracing.errors import AlreadyInstalledError, TracingError
from sleuth_sample.tracing.propagator import ContextPropagator, current_context, propagator

__all__ = [
    "ABSENT",
    "ABSENT_MARKER",
    "AbsentContext",
    "AlreadyInstalledError",
    "ContextPropagator",
    "TraceContext",
    "TracingError",
    "current_context",
    "propagator",
]


# --- Module Notes -----------------------------------------------------------
# Nothing here performs I/O; export, sampling and storage are out of scope.
