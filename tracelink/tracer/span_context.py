"""Immutable trace metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from opentelemetry.trace import INVALID_SPAN_ID, INVALID_TRACE_ID, TraceFlags

from tracelink.errors import ValidationError
from tracelink.utils.helpers import format_span_id, format_trace_id

if TYPE_CHECKING:
    from tracelink.tracer.id_generator import IdGenerator

_MAX_TRACE_ID = (1 << 128) - 1
_MAX_SPAN_ID = (1 << 64) - 1


@dataclass(frozen=True)
class SpanContext:
    trace_id: int
    span_id: int
    # bit 0 = sampled; the other bits are carried through untouched
    trace_flags: TraceFlags = field(default_factory=lambda: TraceFlags(TraceFlags.SAMPLED))
    is_remote: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.trace_id <= _MAX_TRACE_ID:
            raise ValidationError("trace_id out of range", {"trace_id": self.trace_id})
        if not 0 <= self.span_id <= _MAX_SPAN_ID:
            raise ValidationError("span_id out of range", {"span_id": self.span_id})
        try:
            flags = int(self.trace_flags)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "trace_flags must be an integer", {"trace_flags": self.trace_flags}
            ) from exc
        if not 0 <= flags <= 0xFF:
            raise ValidationError("trace_flags out of range", {"trace_flags": self.trace_flags})
        if not isinstance(self.trace_flags, TraceFlags):
            object.__setattr__(self, "trace_flags", TraceFlags(self.trace_flags))

    @classmethod
    def root(cls, id_generator: Optional["IdGenerator"] = None) -> "SpanContext":
        """Fresh local context: new trace id, new span id, sampled."""
        if id_generator is None:
            from tracelink.tracer.id_generator import IdGenerator
            id_generator = IdGenerator()
        return cls(
            trace_id=id_generator.new_trace_id(),
            span_id=id_generator.new_span_id(),
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
            is_remote=False,
        )

    @classmethod
    def from_extracted(cls, trace_id: int, span_id: int, trace_flags: int) -> "SpanContext":
        """Context decoded from a carrier."""
        return cls(
            trace_id=trace_id,
            span_id=span_id,
            trace_flags=TraceFlags(trace_flags),
            is_remote=True,
        )

    def is_valid(self) -> bool:
        return self.trace_id != INVALID_TRACE_ID and self.span_id != INVALID_SPAN_ID

    @property
    def sampled(self) -> bool:
        return self.trace_flags.sampled

    @property
    def trace_id_hex(self) -> str:
        return format_trace_id(self.trace_id)

    @property
    def span_id_hex(self) -> str:
        return format_span_id(self.span_id)

    def __str__(self) -> str:
        return (
            f"SpanContext(trace_id={self.trace_id_hex}, span_id={self.span_id_hex}, "
            f"trace_flags={int(self.trace_flags):02x}, is_remote={self.is_remote})"
        )


INVALID_SPAN_CONTEXT = SpanContext(
    trace_id=INVALID_TRACE_ID,
    span_id=INVALID_SPAN_ID,
    trace_flags=TraceFlags(TraceFlags.DEFAULT),
)
