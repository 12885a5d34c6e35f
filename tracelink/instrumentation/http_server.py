"""HTTP server helpers for extracting context and creating server spans."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from opentelemetry.propagators.textmap import Getter

from tracelink.context.carriers import dict_reader
from tracelink.context.propagators import TraceContextPropagator
from tracelink.tracer.span import Span
from tracelink.tracer.span_context import SpanContext
from tracelink.tracer.tracer import Tracer


def extract_parent_context(
    carrier: Any,
    propagator: TraceContextPropagator,
    getter: Getter = dict_reader,
) -> SpanContext:
    """Extract the remote context; invalid if the request carried none."""
    return propagator.extract(carrier, getter)


def start_server_span(
    tracer: Tracer,
    name: str,
    carrier: Any,
    propagator: TraceContextPropagator,
    getter: Getter = dict_reader,
    attributes: Optional[Mapping[str, Any]] = None,
) -> Span:
    """
    Start a server span as the child of the caller's context.

    Without a usable incoming context the span is a new root. The returned
    span can be used with 'with'.
    """
    parent_ctx = extract_parent_context(carrier, propagator, getter)
    return tracer.start_span(name, attributes=attributes, parent_context=parent_ctx)
