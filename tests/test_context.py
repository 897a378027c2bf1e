"""
tests.test_context

Trace context value semantics.
"""

from __future__ import annotations

import dataclasses

import pytest

from sleuth_sample.tracing.context import (
    ABSENT,
    TraceContext,
    is_valid_span_id,
    is_valid_trace_id,
    new_span_id,
    new_trace_id,
)


def test_create_generates_fixed_width_hex_ids() -> None:
    ctx = TraceContext.create()
    assert len(ctx.trace_id) == 32
    assert len(ctx.span_id) == 16
    assert is_valid_trace_id(ctx.trace_id)
    assert is_valid_span_id(ctx.span_id)
    assert ctx.parent_span_id is None


def test_create_is_not_repeating() -> None:
    contexts = [TraceContext.create() for _ in range(200)]
    assert len({c.trace_id for c in contexts}) == 200
    assert len({c.span_id for c in contexts}) == 200


def test_derive_child_keeps_trace_and_links_parent() -> None:
    parent = TraceContext.create()
    for _ in range(50):
        child = TraceContext.derive_child(parent)
        assert child.trace_id == parent.trace_id
        assert child.parent_span_id == parent.span_id
        assert child.span_id != parent.span_id


def test_child_method_matches_derive_child() -> None:
    parent = TraceContext(trace_id="a" * 32, span_id="b" * 16, sampled=False)
    child = parent.child()
    assert child.trace_id == "a" * 32
    assert child.parent_span_id == "b" * 16
    assert child.sampled is False


def test_derivation_does_not_mutate_existing() -> None:
    parent = TraceContext(trace_id="a" * 32, span_id="b" * 16)
    TraceContext.derive_child(parent)
    assert parent == TraceContext(trace_id="a" * 32, span_id="b" * 16)
    with pytest.raises(dataclasses.FrozenInstanceError):
        parent.span_id = "c" * 16  # type: ignore[misc]


def test_format_is_trace_dash_span() -> None:
    ctx = TraceContext(trace_id="a" * 32, span_id="b" * 16)
    assert ctx.format() == f"{'a' * 32}-{'b' * 16}"


@pytest.mark.parametrize(
    ("trace_id", "span_id"),
    [
        ("a" * 31, "b" * 16),
        ("A" * 32, "b" * 16),
        ("0" * 32, "b" * 16),
        ("a" * 32, "0" * 16),
        ("a" * 32, "xyz"),
    ],
)
def test_malformed_ids_are_rejected(trace_id: str, span_id: str) -> None:
    with pytest.raises(ValueError):
        TraceContext(trace_id=trace_id, span_id=span_id)


def test_absent_sentinel_renders_marker() -> None:
    assert not ABSENT
    assert ABSENT.trace_id == "-"
    assert ABSENT.span_id == "-"
    assert ABSENT.parent_span_id is None
    assert ABSENT.format() == "-"


def test_id_helpers_produce_valid_ids() -> None:
    assert is_valid_trace_id(new_trace_id())
    assert is_valid_span_id(new_span_id())
