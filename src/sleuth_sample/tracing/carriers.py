"""
sleuth_sample.tracing.carriers

HTTP header carriers for trace propagation.

Responsibilities:
- Parse inbound propagation headers into the caller's `TraceContext`.
- Write the current context onto outbound headers.
- Compose the configured formats (`w3c`, `b3`, `b3_single`) into one `Propagation`.

Extraction never raises: absent or malformed headers return `None` so the
request degrades to a fresh trace.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
from typing import Literal, Protocol

from sleuth_sample.tracing.context import (
    SPAN_ID_HEX_LEN,
    TRACE_ID_HEX_LEN,
    TraceContext,
    is_valid_span_id,
    is_valid_trace_id,
)

PropagationType = Literal["w3c", "b3", "b3_single"]

TRACEPARENT = "traceparent"
B3_TRACE_ID = "X-B3-TraceId"
B3_SPAN_ID = "X-B3-SpanId"
B3_PARENT_SPAN_ID = "X-B3-ParentSpanId"
B3_SAMPLED = "X-B3-Sampled"
B3_FLAGS = "X-B3-Flags"
B3_SINGLE = "b3"


def _header(headers: Mapping[str, str], name: str) -> str | None:
    # Starlette/httpx headers are case-insensitive already; plain dicts are not.
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    if value is None:
        return None
    value = value.strip()
    return value or None


def _b3_trace_id(value: str) -> str | None:
    value = value.lower()
    # B3 allows 64-bit trace ids; widen them to the 128-bit form.
    if len(value) == SPAN_ID_HEX_LEN:
        value = value.rjust(TRACE_ID_HEX_LEN, "0")
    return value if is_valid_trace_id(value) else None


def _b3_sampled(value: str | None) -> bool | None:
    if value is None:
        return None
    return {"1": True, "true": True, "d": True, "0": False, "false": False}.get(value.lower())


class Carrier(Protocol):
    name: str
    fields: tuple[str, ...]

    def extract(self, headers: Mapping[str, str]) -> TraceContext | None: ...

    def inject(self, context: TraceContext, headers: MutableMapping[str, str]) -> None: ...


class W3CTraceContextCarrier:
    name = "w3c"
    fields = (TRACEPARENT,)

    def extract(self, headers: Mapping[str, str]) -> TraceContext | None:
        raw = _header(headers, TRACEPARENT)
        if raw is None:
            return None
        parts = raw.split("-")
        if len(parts) < 4:
            return None
        version, trace_id, span_id, flags = parts[:4]
        if len(version) != 2 or version == "ff" or len(flags) != 2:
            return None
        # Version 00 has exactly four fields; later versions may append more.
        if version == "00" and len(parts) != 4:
            return None
        try:
            int(version, 16)
            flag_bits = int(flags, 16)
        except ValueError:
            return None
        if not (is_valid_trace_id(trace_id) and is_valid_span_id(span_id)):
            return None
        return TraceContext(trace_id=trace_id, span_id=span_id, sampled=bool(flag_bits & 0x01))

    def inject(self, context: TraceContext, headers: MutableMapping[str, str]) -> None:
        flags = "01" if context.sampled else "00"
        headers[TRACEPARENT] = f"00-{context.trace_id}-{context.span_id}-{flags}"


class B3MultiCarrier:
    name = "b3"
    fields = (B3_TRACE_ID, B3_SPAN_ID, B3_PARENT_SPAN_ID, B3_SAMPLED, B3_FLAGS)

    def extract(self, headers: Mapping[str, str]) -> TraceContext | None:
        raw_trace = _header(headers, B3_TRACE_ID)
        raw_span = _header(headers, B3_SPAN_ID)
        if raw_trace is None or raw_span is None:
            return None
        trace_id = _b3_trace_id(raw_trace)
        span_id = raw_span.lower()
        if trace_id is None or not is_valid_span_id(span_id):
            return None

        parent = _header(headers, B3_PARENT_SPAN_ID)
        parent_span_id = parent.lower() if parent is not None else None
        if parent_span_id is not None and not is_valid_span_id(parent_span_id):
            parent_span_id = None

        # Debug flag implies sampled; a missing decision defaults to sampled.
        sampled = _b3_sampled(_header(headers, B3_SAMPLED))
        if _header(headers, B3_FLAGS) == "1":
            sampled = True
        return TraceContext(
            trace_id=trace_id,
            span_id=span_id,
            parent_span_id=parent_span_id,
            sampled=True if sampled is None else sampled,
        )

    def inject(self, context: TraceContext, headers: MutableMapping[str, str]) -> None:
        headers[B3_TRACE_ID] = context.trace_id
        headers[B3_SPAN_ID] = context.span_id
        if context.parent_span_id is not None:
            headers[B3_PARENT_SPAN_ID] = context.parent_span_id
        headers[B3_SAMPLED] = "1" if context.sampled else "0"


class B3SingleCarrier:
    name = "b3_single"
    fields = (B3_SINGLE,)

    def extract(self, headers: Mapping[str, str]) -> TraceContext | None:
        raw = _header(headers, B3_SINGLE)
        if raw is None:
            return None
        parts = raw.split("-")
        # A bare sampling decision ("0", "1", "d") carries no identifiers.
        if len(parts) < 2 or len(parts) > 4:
            return None
        trace_id = _b3_trace_id(parts[0])
        span_id = parts[1].lower()
        if trace_id is None or not is_valid_span_id(span_id):
            return None

        sampled: bool | None = True
        if len(parts) >= 3:
            sampled = _b3_sampled(parts[2])
            if sampled is None:
                return None

        parent_span_id = None
        if len(parts) == 4:
            parent_span_id = parts[3].lower()
            if not is_valid_span_id(parent_span_id):
                return None
        return TraceContext(
            trace_id=trace_id,
            span_id=span_id,
            parent_span_id=parent_span_id,
            sampled=sampled,
        )

    def inject(self, context: TraceContext, headers: MutableMapping[str, str]) -> None:
        value = f"{context.trace_id}-{context.span_id}-{'1' if context.sampled else '0'}"
        if context.parent_span_id is not None:
            value = f"{value}-{context.parent_span_id}"
        headers[B3_SINGLE] = value


_CARRIERS: dict[str, type[Carrier]] = {
    "w3c": W3CTraceContextCarrier,
    "b3": B3MultiCarrier,
    "b3_single": B3SingleCarrier,
}


class Propagation:
    """
    Ordered set of carriers.

    - extract: first carrier (in configured order) that yields a context wins
    - inject: every carrier writes its headers
    """

    def __init__(self, carriers: Iterable[Carrier]) -> None:
        self._carriers = tuple(carriers)
        if not self._carriers:
            raise ValueError("at least one propagation carrier is required")

    @classmethod
    def from_types(cls, types: Iterable[str]) -> Propagation:
        carriers: list[Carrier] = []
        seen: set[str] = set()
        for name in types:
            if name in seen:
                continue
            try:
                carriers.append(_CARRIERS[name]())
            except KeyError as e:
                raise ValueError(f"unknown propagation type: {name!r}") from e
            seen.add(name)
        return cls(carriers)

    @property
    def types(self) -> tuple[str, ...]:
        return tuple(c.name for c in self._carriers)

    @property
    def fields(self) -> frozenset[str]:
        # Lowercased header names any configured carrier reads or writes.
        return frozenset(f.lower() for c in self._carriers for f in c.fields)

    def extract(self, headers: Mapping[str, str]) -> TraceContext | None:
        for carrier in self._carriers:
            context = carrier.extract(headers)
            if context is not None:
                return context
        return None

    def inject(
        self, context: TraceContext, headers: MutableMapping[str, str] | None = None
    ) -> MutableMapping[str, str]:
        target: MutableMapping[str, str] = {} if headers is None else headers
        for carrier in self._carriers:
            carrier.inject(context, target)
        return target


# --- Module Notes -----------------------------------------------------------
# Sleuth propagated B3 by default; Micrometer Tracing defaults to W3C. Configuring
# both lets this service sit between callers of either generation.
