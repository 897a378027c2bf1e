"""
sleuth_sample.tracing.context

Trace context value type.

Responsibilities:
- Hold a trace id (128 bit) and span id (64 bit) as fixed-width lowercase hex.
- Generate fresh contexts and derive child contexts without mutation.
- Provide the absent sentinel used when no context is installed.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Final

ABSENT_MARKER: Final = "-"

TRACE_ID_HEX_LEN: Final = 32
SPAN_ID_HEX_LEN: Final = 16

_TRACE_ID_RE = re.compile(r"^[0-9a-f]{32}$")
_SPAN_ID_RE = re.compile(r"^[0-9a-f]{16}$")


def _random_hex(bits: int) -> str:
    # Zero is reserved as "invalid" by both B3 and W3C; redraw on the (unlikely) hit.
    value = 0
    while value == 0:
        value = random.getrandbits(bits)
    return f"{value:0{bits // 4}x}"


def new_trace_id() -> str:
    return _random_hex(128)


def new_span_id() -> str:
    return _random_hex(64)


def is_valid_trace_id(value: str) -> bool:
    return bool(_TRACE_ID_RE.match(value)) and value != "0" * TRACE_ID_HEX_LEN


def is_valid_span_id(value: str) -> bool:
    return bool(_SPAN_ID_RE.match(value)) and value != "0" * SPAN_ID_HEX_LEN


@dataclass(frozen=True, slots=True)
class TraceContext:
    trace_id: str
    span_id: str
    parent_span_id: str | None = None
    # Carried through from the inbound carrier; this service never samples.
    sampled: bool = True

    def __post_init__(self) -> None:
        if not is_valid_trace_id(self.trace_id):
            raise ValueError(f"invalid trace id: {self.trace_id!r}")
        if not is_valid_span_id(self.span_id):
            raise ValueError(f"invalid span id: {self.span_id!r}")
        if self.parent_span_id is not None and not is_valid_span_id(self.parent_span_id):
            raise ValueError(f"invalid parent span id: {self.parent_span_id!r}")

    @classmethod
    def create(cls) -> TraceContext:
        return cls(trace_id=new_trace_id(), span_id=new_span_id())

    @classmethod
    def derive_child(cls, existing: TraceContext) -> TraceContext:
        span_id = new_span_id()
        while span_id == existing.span_id:
            span_id = new_span_id()
        return cls(
            trace_id=existing.trace_id,
            span_id=span_id,
            parent_span_id=existing.span_id,
            sampled=existing.sampled,
        )

    def child(self) -> TraceContext:
        return TraceContext.derive_child(self)

    def format(self) -> str:
        # Display form used by log correlation: `<trace_id>-<span_id>`.
        return f"{self.trace_id}-{self.span_id}"

    def __bool__(self) -> bool:
        return True


class AbsentContext:
    """Falsy stand-in returned when no context is installed."""

    __slots__ = ()

    trace_id = ABSENT_MARKER
    span_id = ABSENT_MARKER
    parent_span_id = None
    sampled = False

    def format(self) -> str:
        return ABSENT_MARKER

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Final = AbsentContext()


# --- Module Notes -----------------------------------------------------------
# Identifier strength: pseudorandom bits are enough for correlation; global
# uniqueness is not guaranteed and not needed by anything downstream.
