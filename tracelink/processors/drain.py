"""Cancellable background loop that drains the collector into an exporter."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

from tracelink.processors.collector import InMemorySpanCollector
from tracelink.tracer.span import SpanData

logger = logging.getLogger(__name__)


class PeriodicDrainer:
    """
    Drains an InMemorySpanCollector on a fixed interval.

    Each tick takes the whole buffer with `drain_all()` and hands it to the
    exporter in batches of at most `max_export_batch_size`; with no exporter
    the batch is discarded. `stop()` wakes
    the worker, joins it and, by default, performs one last drain so nothing
    recorded before the stop is left behind.
    """

    def __init__(
        self,
        collector: InMemorySpanCollector,
        exporter: Any,
        *,
        interval_millis: int = 1000,
        max_export_batch_size: int = 512,
        name: str = "tracelink-drain",
    ) -> None:
        if interval_millis <= 0:
            raise ValueError("interval_millis must be positive")
        if max_export_batch_size <= 0:
            raise ValueError("max_export_batch_size must be positive")
        self.collector = collector
        self.exporter = exporter
        self.interval = interval_millis / 1000.0
        self.max_export_batch_size = max_export_batch_size
        self.name = name

        self._stop_event = threading.Event()
        self._drain_lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> "PeriodicDrainer":
        """Start the background worker (no-op if already running)."""
        if self.running:
            return self
        if self._stop_event.is_set():
            raise RuntimeError("PeriodicDrainer cannot be restarted after stop()")
        self._worker = threading.Thread(target=self._worker_loop, name=self.name, daemon=True)
        self._worker.start()
        logger.debug("Started %s with interval %.3fs", self.name, self.interval)
        return self

    def stop(self, timeout: Optional[float] = None, flush: bool = True) -> None:
        """Stop the worker and wait for it; optionally drain one last time."""
        self._stop_event.set()
        if self._worker is not None:
            self._worker.join(timeout=timeout if timeout is not None else self.interval * 2)
            if self._worker.is_alive():
                logger.warning("%s did not stop within the timeout", self.name)
        if flush:
            self.drain_once()
        shutdown = getattr(self.exporter, "shutdown", None)
        if shutdown is not None:
            try:
                shutdown()
            except Exception:
                logger.exception("Exporter %s failed to shut down", type(self.exporter).__name__)

    def drain_once(self) -> int:
        """Drain the collector and export what was there. Returns the span count."""
        with self._drain_lock:
            spans = self.collector.drain_all()
            for start in range(0, len(spans), self.max_export_batch_size):
                self._export(spans[start:start + self.max_export_batch_size])
        return len(spans)

    # Internal
    def _worker_loop(self) -> None:
        """Background worker that periodically drains spans."""
        while not self._stop_event.wait(timeout=self.interval):
            self.drain_once()

    def _export(self, spans: List[SpanData]) -> None:
        if self.exporter is None:
            return
        try:
            ok = self.exporter.export(spans)
        except Exception:
            # Export errors are logged; the loop keeps running.
            logger.exception("Exporter %s failed on %d spans", type(self.exporter).__name__, len(spans))
            return
        if ok is False:
            logger.warning("Exporter %s rejected %d spans", type(self.exporter).__name__, len(spans))

    def __enter__(self) -> "PeriodicDrainer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False
