"""Trace context propagation over text carriers (W3C traceparent layout)."""

from __future__ import annotations

import logging
from typing import Any, Optional, Set

from opentelemetry.propagators.textmap import Getter, Setter

from tracelink.context.carriers import dict_reader, dict_writer
from tracelink.errors import MalformedCarrierError
from tracelink.tracer.span_context import INVALID_SPAN_CONTEXT, SpanContext
from tracelink.utils.helpers import (
    SPAN_ID_HEX_LENGTH,
    TRACE_ID_HEX_LENGTH,
    format_span_id,
    format_trace_id,
    is_lower_hex,
    parse_span_id,
    parse_trace_id,
)

logger = logging.getLogger(__name__)

TRACEPARENT_HEADER = "traceparent"
SUPPORTED_VERSION = "00"

# vv-<trace id>-<span id>-ff
_TRACEPARENT_LENGTH = 2 + 1 + TRACE_ID_HEX_LENGTH + 1 + SPAN_ID_HEX_LENGTH + 1 + 2


def format_traceparent(context: SpanContext) -> str:
    """Format a traceparent header value for a valid context."""
    return (
        f"{SUPPORTED_VERSION}-{format_trace_id(context.trace_id)}-"
        f"{format_span_id(context.span_id)}-{int(context.trace_flags):02x}"
    )


def parse_traceparent(header_value: str) -> SpanContext:
    """
    Parse a traceparent header value into a remote SpanContext.

    Raises:
        MalformedCarrierError: if the value is not a strict version-00 header
            or names an all-zero trace or span id
    """
    if not header_value:
        raise MalformedCarrierError("empty traceparent")
    if len(header_value) != _TRACEPARENT_LENGTH:
        raise MalformedCarrierError(
            "traceparent has wrong length",
            {"length": len(header_value), "expected": _TRACEPARENT_LENGTH},
        )

    parts = header_value.split("-")
    if len(parts) != 4:
        raise MalformedCarrierError("traceparent must have four fields", {"fields": len(parts)})
    version, trace_id_hex, span_id_hex, flags_hex = parts

    if not is_lower_hex(version, 2):
        raise MalformedCarrierError("invalid version field", {"version": version})
    if version != SUPPORTED_VERSION:
        raise MalformedCarrierError("unsupported traceparent version", {"version": version})
    if not is_lower_hex(trace_id_hex, TRACE_ID_HEX_LENGTH):
        raise MalformedCarrierError("invalid trace id field", {"trace_id": trace_id_hex})
    if not is_lower_hex(span_id_hex, SPAN_ID_HEX_LENGTH):
        raise MalformedCarrierError("invalid span id field", {"span_id": span_id_hex})
    if not is_lower_hex(flags_hex, 2):
        raise MalformedCarrierError("invalid flags field", {"flags": flags_hex})

    trace_id = parse_trace_id(trace_id_hex)
    span_id = parse_span_id(span_id_hex)
    if trace_id == 0:
        raise MalformedCarrierError("all-zero trace id")
    if span_id == 0:
        raise MalformedCarrierError("all-zero span id")

    return SpanContext.from_extracted(trace_id, span_id, int(flags_hex, 16))


class TraceContextPropagator:
    """
    Injects a SpanContext into, and extracts it from, any carrier.

    The carrier's concrete type is hidden behind a Setter (inject) or a
    Getter (extract). Extraction never raises on bad input: a missing or
    malformed header yields INVALID_SPAN_CONTEXT, which makes the next span
    a new root.
    """

    def __init__(self, header_name: str = TRACEPARENT_HEADER) -> None:
        if not header_name:
            raise ValueError("header_name must be a non-empty string")
        self.header_name = header_name

    @property
    def fields(self) -> Set[str]:
        """Header names this propagator reads and writes."""
        return {self.header_name}

    def inject(
        self,
        context: SpanContext,
        carrier: Any,
        setter: Setter = dict_writer,
    ) -> None:
        """Write the context header into carrier; invalid contexts write nothing."""
        if context is None or not context.is_valid():
            return
        setter.set(carrier, self.header_name, format_traceparent(context))

    def extract(self, carrier: Any, getter: Getter = dict_reader) -> SpanContext:
        """Read the context header from carrier; always returns a SpanContext."""
        values = getter.get(carrier, self.header_name)
        if not values:
            return INVALID_SPAN_CONTEXT
        try:
            return parse_traceparent(values[0])
        except MalformedCarrierError as exc:
            logger.debug("Ignoring malformed %s header: %s", self.header_name, exc)
            return INVALID_SPAN_CONTEXT


_default_propagator = TraceContextPropagator()


def inject(context: SpanContext, carrier: Any, setter: Setter = dict_writer) -> None:
    """Inject with the default `traceparent` propagator."""
    _default_propagator.inject(context, carrier, setter)


def extract(carrier: Any, getter: Getter = dict_reader) -> SpanContext:
    """Extract with the default `traceparent` propagator."""
    return _default_propagator.extract(carrier, getter)
