"""Span processor that logs spans when they end."""

from __future__ import annotations

import logging
from typing import Optional

from tracelink.tracer.provider import SpanProcessor
from tracelink.utils.helpers import format_span_id


class LoggingSpanProcessor(SpanProcessor):
    """Logs span summary on end using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("tracelink.traces")

    def on_end(self, span_data) -> None:
        attrs = dict(span_data.attributes)
        msg = (
            f"[trace] name={span_data.name} trace_id={span_data.context.trace_id_hex} "
            f"span_id={span_data.context.span_id_hex} "
            f"parent_span_id={format_span_id(span_data.parent_span_id)} "
            f"status={span_data.status.name} duration_ns={span_data.duration_ns} "
            f"events={len(span_data.events)} attrs={attrs}"
        )
        self.logger.info(msg)

    def shutdown(self) -> None:
        return None

    def force_flush(self, timeout: Optional[float] = None) -> None:
        return None
