"""In-memory collector of finished spans."""

from __future__ import annotations

import threading
from typing import List, Tuple, Union

from tracelink.errors import InvalidStateError
from tracelink.tracer.provider import SpanProcessor
from tracelink.tracer.span import Span, SpanData


class InMemorySpanCollector(SpanProcessor):
    """
    Thread-safe buffer of ended spans.

    `record` appends and `drain_all` swaps the whole buffer out under the
    same lock, so a span is returned by exactly one drain.
    """

    def __init__(self) -> None:
        self._spans: List[SpanData] = []
        self._lock = threading.Lock()

    def on_end(self, span_data: SpanData) -> None:
        self.record(span_data)

    def record(self, span: Union[Span, SpanData]) -> None:
        """Append the snapshot of an ended span."""
        if isinstance(span, Span):
            if span.is_recording():
                raise InvalidStateError(
                    "Only ended spans can be recorded",
                    {"span": span.name, "span_id": span.context.span_id_hex},
                )
            span = span.to_span_data()
        with self._lock:
            self._spans.append(span)

    def drain_all(self) -> List[SpanData]:
        """Return every buffered span in record order and empty the buffer."""
        with self._lock:
            spans, self._spans = self._spans, []
        return spans

    def get_finished_spans(self) -> Tuple[SpanData, ...]:
        """Non-destructive copy of the buffer."""
        with self._lock:
            return tuple(self._spans)

    def __len__(self) -> int:
        with self._lock:
            return len(self._spans)
