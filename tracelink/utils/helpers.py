"""Helper functions for identifier formatting."""

from __future__ import annotations

from typing import Optional


TRACE_ID_HEX_LENGTH = 32
SPAN_ID_HEX_LENGTH = 16


def get_duration_ns(start_time_ns: int, end_time_ns: Optional[int]) -> Optional[int]:
    """
    Get span duration in nanoseconds.

    Returns:
        Duration in nanoseconds, or None if the span hasn't ended
    """
    if end_time_ns is None:
        return None
    return end_time_ns - start_time_ns


def format_trace_id(trace_id: int) -> str:
    """
    Format a 128-bit trace_id to hex string.

    Args:
        trace_id: trace id as int

    Returns:
        32-character lowercase hex string
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format a 64-bit span_id to hex string.

    Args:
        span_id: span id as int

    Returns:
        16-character lowercase hex string
    """
    return format(span_id, '016x')


def parse_trace_id(hex_string: str) -> int:
    """
    Parse hex string trace_id to int.

    Args:
        hex_string: 32-character hex string

    Returns:
        trace id as int (0 for empty input)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def parse_span_id(hex_string: str) -> int:
    """
    Parse hex string span_id to int.

    Args:
        hex_string: 16-character hex string

    Returns:
        span id as int (0 for empty input)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def is_lower_hex(value: str, length: int) -> bool:
    """Return True if value is exactly `length` lowercase hex digits."""
    if len(value) != length:
        return False
    return all(ch in "0123456789abcdef" for ch in value)
