"""Context propagation for tracelink."""

from tracelink.context.carriers import (
    CarrierReader,
    CarrierWriter,
    DictCarrierReader,
    DictCarrierWriter,
)
from tracelink.context.propagators import (
    TRACEPARENT_HEADER,
    TraceContextPropagator,
    format_traceparent,
    parse_traceparent,
    inject,
    extract,
)

__all__ = [
    "CarrierReader",
    "CarrierWriter",
    "DictCarrierReader",
    "DictCarrierWriter",
    "TRACEPARENT_HEADER",
    "TraceContextPropagator",
    "format_traceparent",
    "parse_traceparent",
    "inject",
    "extract",
]
