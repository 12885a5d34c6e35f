"""Utility functions for tracelink."""

from tracelink.utils.helpers import (
    SPAN_ID_HEX_LENGTH,
    TRACE_ID_HEX_LENGTH,
    get_duration_ns,
    format_trace_id,
    format_span_id,
    is_lower_hex,
    parse_trace_id,
    parse_span_id,
)

__all__ = [
    "SPAN_ID_HEX_LENGTH",
    "TRACE_ID_HEX_LENGTH",
    "get_duration_ns",
    "format_trace_id",
    "format_span_id",
    "is_lower_hex",
    "parse_trace_id",
    "parse_span_id",
]
