"""
sleuth_sample.tracing.propagator

Ambient, per-unit-of-work storage for the active trace context.

Responsibilities:
- Make exactly one `TraceContext` visible to all code running inside the
  current unit of work, without passing it as a parameter.
- Refuse to overwrite an installed context.
- Guarantee removal on every exit path of a scoped block.

Storage is a `contextvars.ContextVar`: each asyncio task runs in its own copy of
the context and each thread starts with an empty one, so concurrent requests
never see each other's slot and no locking is needed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from sleuth_sample.tracing.context import ABSENT, AbsentContext, TraceContext
from sleuth_sample.tracing.errors import AlreadyInstalledError


class ContextPropagator:
    def __init__(self, name: str = "sleuth_trace_context") -> None:
        # One ContextVar per propagator; instances are expected to live for the process.
        self._slot: ContextVar[TraceContext | None] = ContextVar(name, default=None)

    def install(self, context: TraceContext) -> None:
        installed = self._slot.get()
        if installed is not None:
            raise AlreadyInstalledError(installed)
        self._slot.set(context)

    def current(self) -> TraceContext | AbsentContext:
        installed = self._slot.get()
        return ABSENT if installed is None else installed

    def is_installed(self) -> bool:
        return self._slot.get() is not None

    def clear(self) -> None:
        # Idempotent: clearing an empty slot is a no-op.
        self._slot.set(None)

    @contextmanager
    def with_context(self, context: TraceContext) -> Iterator[TraceContext]:
        """
        Install `context` for the duration of the block.

        `clear()` runs on normal exit, on exceptions and on cancellation
        (`asyncio.CancelledError` unwinds through `finally` like any other error).
        """

        self.install(context)
        try:
            yield context
        finally:
            self.clear()


# Process-wide default used by the service wiring and the logging processor.
propagator = ContextPropagator()


def current_context() -> TraceContext | AbsentContext:
    return propagator.current()


# --- Module Notes -----------------------------------------------------------
# Starlette copies the caller's context into threadpool workers, so sync
# endpoints observe the same installed context as async ones.
