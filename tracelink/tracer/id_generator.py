"""Random trace and span identifier generation."""

from __future__ import annotations

from typing import Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator as OTelIdGenerator
from opentelemetry.sdk.trace.id_generator import RandomIdGenerator
from opentelemetry.trace import INVALID_SPAN_ID, INVALID_TRACE_ID


class IdGenerator:
    """
    Produces non-zero 128-bit trace ids and 64-bit span ids.

    Randomness comes from an OpenTelemetry SDK id generator; the all-zero
    value is reserved for "invalid", so a zero draw is simply redrawn.
    """

    def __init__(self, source: Optional[OTelIdGenerator] = None) -> None:
        self._source = source or RandomIdGenerator()

    def new_trace_id(self) -> int:
        trace_id = self._source.generate_trace_id()
        while trace_id == INVALID_TRACE_ID:
            trace_id = self._source.generate_trace_id()
        return trace_id

    def new_span_id(self) -> int:
        span_id = self._source.generate_span_id()
        while span_id == INVALID_SPAN_ID:
            span_id = self._source.generate_span_id()
        return span_id
