"""
sleuth_sample.tracing.interceptor

Request boundary bracketing.

Responsibilities:
- Decide between a fresh trace and a child of the caller's trace.
- Install the context for the unit of work and always clear it afterwards.
- Attach the current context to outbound call headers.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable, Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from sleuth_sample.tracing.carriers import Propagation
from sleuth_sample.tracing.context import TraceContext
from sleuth_sample.tracing.propagator import ContextPropagator
from sleuth_sample.tracing.propagator import propagator as default_propagator

T = TypeVar("T")

log = structlog.get_logger(__name__)


class BoundaryState(enum.StrEnum):
    NOT_STARTED = "not_started"
    CONTEXT_INSTALLED = "context_installed"
    HANDLING = "handling"
    CONTEXT_CLEARED = "context_cleared"


@dataclass(slots=True)
class UnitOfWork:
    # Per-request record of the bracket; useful for tests and access logging.
    context: TraceContext | None = None
    derived: bool = False
    state: BoundaryState = BoundaryState.NOT_STARTED
    history: list[BoundaryState] = field(default_factory=lambda: [BoundaryState.NOT_STARTED])

    def advance(self, state: BoundaryState) -> None:
        self.state = state
        self.history.append(state)


class RequestBoundaryInterceptor:
    """
    Wraps one inbound unit of work:
    - extract (or create) the context
    - install it via the propagator
    - run the handler
    - clear on every exit path
    """

    def __init__(
        self,
        *,
        propagation: Propagation,
        propagator: ContextPropagator | None = None,
    ) -> None:
        self.propagation = propagation
        self.propagator = propagator or default_propagator

    def context_for(self, headers: Mapping[str, str]) -> tuple[TraceContext, bool]:
        """Return the context for a new unit of work and whether it continues a caller's trace."""

        remote = self.propagation.extract(headers)
        if remote is not None:
            return TraceContext.derive_child(remote), True
        if self._carries_trace_headers(headers):
            # Malformed metadata is never fatal: start a new trace instead.
            log.debug("trace_headers_malformed", propagation=list(self.propagation.types))
        return TraceContext.create(), False

    def _carries_trace_headers(self, headers: Mapping[str, str]) -> bool:
        names = self.propagation.fields
        return any(k.lower() in names for k in headers)

    @contextmanager
    def bracket(self, headers: Mapping[str, str]) -> Iterator[UnitOfWork]:
        uow = UnitOfWork()
        uow.context, uow.derived = self.context_for(headers)
        self.propagator.install(uow.context)
        uow.advance(BoundaryState.CONTEXT_INSTALLED)
        try:
            uow.advance(BoundaryState.HANDLING)
            yield uow
        finally:
            self.propagator.clear()
            uow.advance(BoundaryState.CONTEXT_CLEARED)

    async def handle(self, headers: Mapping[str, str], handler: Callable[[], Awaitable[T]]) -> T:
        # Handler errors (and cancellation) pass through unchanged.
        with self.bracket(headers):
            return await handler()

    def outbound_headers(
        self, headers: Mapping[str, str] | None = None
    ) -> MutableMapping[str, str]:
        out: dict[str, str] = dict(headers or {})
        current = self.propagator.current()
        if not isinstance(current, TraceContext):
            return out
        return self.propagation.inject(current, out)


# --- Module Notes -----------------------------------------------------------
# Outbound propagation sends the current span id as the callee's parent; the
# callee derives its own child span, so no extra state lives here.
