"""Tracer components for tracelink."""

from tracelink.tracer.id_generator import IdGenerator
from tracelink.tracer.provider import SpanProcessor, TracerProvider
from tracelink.tracer.span import Event, Span, SpanData, SpanState, SpanStatus
from tracelink.tracer.span_context import INVALID_SPAN_CONTEXT, SpanContext
from tracelink.tracer.tracer import Tracer

__all__ = [
    "Event",
    "IdGenerator",
    "INVALID_SPAN_CONTEXT",
    "Span",
    "SpanData",
    "SpanState",
    "SpanStatus",
    "SpanContext",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
]
