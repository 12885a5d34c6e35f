"""TracerProvider: the explicit per-process tracing context."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from tracelink.errors import ConfigError
from tracelink.tracer.id_generator import IdGenerator

if TYPE_CHECKING:
    from tracelink.processors.collector import InMemorySpanCollector
    from tracelink.processors.drain import PeriodicDrainer
    from tracelink.tracer.span import SpanData
    from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class SpanProcessor:
    """
    Base span processor interface.

    Processors receive the immutable SpanData of every span as it ends.
    """

    def on_end(self, span_data: "SpanData") -> None:
        """
        Called when a span ends.

        Args:
            span_data: Frozen snapshot of the ended span
        """
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass


class TracerProvider:
    """
    Owns tracers, span processors, id generation and drain loops.

    One provider is built at process start and passed to whatever needs to
    create or collect spans; nothing here is global.
    """

    def __init__(
        self,
        collector: Optional["InMemorySpanCollector"] = None,
        id_generator: Optional[IdGenerator] = None,
        resource: Optional[Dict[str, str]] = None,
        strict_lifecycle: bool = True,
    ) -> None:
        """
        Initialize TracerProvider.

        Args:
            collector: In-memory collector that receives every ended span
            id_generator: Identifier source (random by default)
            resource: Resource attributes attached to every span snapshot
            strict_lifecycle: Raise InvalidStateError on ended-span mutation
        """
        self.id_generator = id_generator or IdGenerator()
        self.resource = dict(resource or {})
        self.strict_lifecycle = strict_lifecycle
        self.collector = collector

        self._processors: List[Any] = []
        self._drainers: List["PeriodicDrainer"] = []
        self._tracers: Dict[str, "Tracer"] = {}
        self._lock = threading.Lock()
        self._shutdown = False

        if collector is not None:
            self.add_span_processor(collector)

    def get_tracer(self, name: str) -> "Tracer":
        """
        Get a tracer by name.

        Args:
            name: Instrumentation scope name

        Returns:
            Tracer instance (cached per name)
        """
        with self._lock:
            tracer = self._tracers.get(name)
            if tracer is None:
                from tracelink.tracer.tracer import Tracer
                tracer = Tracer(self, name)
                self._tracers[name] = tracer
            return tracer

    def add_span_processor(self, processor: Any) -> None:
        """
        Add a span processor.

        Args:
            processor: Object with on_end/shutdown/force_flush (see SpanProcessor)
        """
        with self._lock:
            self._processors.append(processor)

    @property
    def span_processors(self) -> List[Any]:
        with self._lock:
            return list(self._processors)

    def _register_drainer(self, drainer: "PeriodicDrainer") -> None:
        with self._lock:
            if self._shutdown:
                raise ConfigError("Tracer provider is shut down; cannot schedule a drain loop")
            self._drainers.append(drainer)

    def _on_span_end(self, span_data: "SpanData") -> None:
        for processor in self.span_processors:
            try:
                processor.on_end(span_data)
            except Exception:
                # Processors should not crash tracing
                logger.exception(
                    "Span processor %s failed on span '%s'",
                    type(processor).__name__,
                    span_data.name,
                )

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush all processors and drain loops."""
        for processor in self.span_processors:
            try:
                processor.force_flush(timeout=timeout)
            except Exception:
                logger.exception("Span processor %s failed to flush", type(processor).__name__)
        with self._lock:
            drainers = list(self._drainers)
        for drainer in drainers:
            drainer.drain_once()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop drain loops (with a final drain) and shut down processors."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            drainers = list(self._drainers)
            self._drainers.clear()

        for drainer in drainers:
            drainer.stop(timeout=timeout)

        for processor in self.span_processors:
            try:
                processor.shutdown()
            except Exception:
                logger.exception("Span processor %s failed to shut down", type(processor).__name__)
