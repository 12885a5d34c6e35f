"""Console exporter for developer visibility."""

from __future__ import annotations

import sys
from typing import Iterable

from tracelink.errors import ExportError
from tracelink.tracer.span import SpanData


class ConsoleExporter:
    """Simple exporter that prints spans to stdout (or provided stream)."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def export(self, spans: Iterable[SpanData]) -> bool:
        try:
            for span in spans:
                print(f"  - {span}", file=self.stream)
            self.stream.flush()
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed stream
            raise ExportError("Failed to write spans to console", {"error": exc}) from exc
        return True

    def shutdown(self) -> None:
        return None
