"""Tests for identifier generation and SpanContext values."""

import dataclasses

import pytest
from opentelemetry.sdk.trace.id_generator import IdGenerator as OTelIdGenerator
from opentelemetry.trace import TraceFlags

from tracelink.errors import ValidationError
from tracelink.tracer import INVALID_SPAN_CONTEXT, IdGenerator, SpanContext


class SequenceIdSource(OTelIdGenerator):
    """Hands out predetermined ids, in order."""

    def __init__(self, trace_ids, span_ids):
        self._trace_ids = iter(trace_ids)
        self._span_ids = iter(span_ids)

    def generate_trace_id(self) -> int:
        return next(self._trace_ids)

    def generate_span_id(self) -> int:
        return next(self._span_ids)


class TestIdGenerator:

    def test_zero_draws_are_redrawn(self):
        """The all-zero id is reserved, so the generator draws again."""
        generator = IdGenerator(SequenceIdSource([0, 0, 7], [0, 5]))

        assert generator.new_trace_id() == 7
        assert generator.new_span_id() == 5

    def test_random_ids_fit_their_width(self):
        generator = IdGenerator()
        for _ in range(100):
            trace_id = generator.new_trace_id()
            span_id = generator.new_span_id()
            assert 0 < trace_id < (1 << 128)
            assert 0 < span_id < (1 << 64)

    def test_random_ids_do_not_repeat(self):
        generator = IdGenerator()
        span_ids = {generator.new_span_id() for _ in range(1000)}
        assert len(span_ids) == 1000


class TestSpanContext:

    def test_root_is_valid_local_and_sampled(self):
        ctx = SpanContext.root()

        assert ctx.is_valid()
        assert not ctx.is_remote
        assert ctx.sampled

    def test_from_extracted_is_remote(self):
        ctx = SpanContext.from_extracted(1, 2, 0x01)

        assert ctx.is_remote
        assert isinstance(ctx.trace_flags, TraceFlags)

    @pytest.mark.parametrize("trace_id,span_id", [(0, 1), (1, 0), (0, 0)])
    def test_zero_id_is_invalid(self, trace_id, span_id):
        assert not SpanContext(trace_id, span_id).is_valid()

    def test_invalid_constant(self):
        assert not INVALID_SPAN_CONTEXT.is_valid()
        assert not INVALID_SPAN_CONTEXT.sampled

    def test_equality_is_field_wise(self):
        a = SpanContext(1, 2, TraceFlags(1))
        assert a == SpanContext(1, 2, TraceFlags(1))
        assert a != SpanContext(1, 2, TraceFlags(0))
        assert a != SpanContext(1, 2, TraceFlags(1), is_remote=True)

    def test_is_immutable(self):
        ctx = SpanContext(1, 2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.trace_id = 3

    def test_only_bit_zero_means_sampled(self):
        """Reserved flag bits are kept but not interpreted."""
        ctx = SpanContext(1, 2, TraceFlags(0xFE))

        assert not ctx.sampled
        assert int(ctx.trace_flags) == 0xFE

    def test_plain_int_flags_are_normalized(self):
        ctx = SpanContext(1, 2, 3)
        assert isinstance(ctx.trace_flags, TraceFlags)
        assert ctx.sampled

    def test_hex_rendering(self):
        ctx = SpanContext(0xABC, 0x12)

        assert ctx.trace_id_hex == "00000000000000000000000000000abc"
        assert ctx.span_id_hex == "0000000000000012"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"trace_id": 1 << 128, "span_id": 1},
            {"trace_id": -1, "span_id": 1},
            {"trace_id": 1, "span_id": 1 << 64},
            {"trace_id": 1, "span_id": 1, "trace_flags": 0x100},
        ],
    )
    def test_out_of_range_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            SpanContext(**kwargs)

    @pytest.mark.parametrize("flags", ["sampled", None, object()])
    def test_non_numeric_flags_rejected(self, flags):
        with pytest.raises(ValidationError):
            SpanContext(1, 1, flags)
