"""tracelink: trace context propagation, span lifecycle and in-memory collection."""

from __future__ import annotations

from typing import Any, Dict, Optional

from tracelink.config import TracelinkConfig, load_config
from tracelink.context.propagators import TraceContextPropagator
from tracelink.errors import (
    ConfigError,
    ExportError,
    InvalidStateError,
    TracelinkError,
    TransportError,
    ValidationError,
)
from tracelink.processors.collector import InMemorySpanCollector
from tracelink.processors.logging_processor import LoggingSpanProcessor
from tracelink.tracer import (
    INVALID_SPAN_CONTEXT,
    Span,
    SpanContext,
    SpanData,
    SpanStatus,
    Tracer,
    TracerProvider,
)

__version__ = "0.1.0"


def init(
    config: Optional[TracelinkConfig] = None,
    *,
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TracerProvider:
    """
    Build a TracerProvider from configuration.

    The provider gets an InMemorySpanCollector and, if enabled, a
    LoggingSpanProcessor. A new provider is returned on every call and
    nothing is kept at module level; pass it to whatever needs a tracer.
    """
    if config is None:
        config = load_config(config_file=config_file, overrides=overrides)
    provider = TracerProvider(
        collector=InMemorySpanCollector(),
        resource={"service.name": config.tracing.service_name},
        strict_lifecycle=config.tracing.strict_lifecycle,
    )
    if config.exporters.enable_logging:
        provider.add_span_processor(LoggingSpanProcessor())
    return provider


def build_propagator(config: TracelinkConfig) -> TraceContextPropagator:
    return TraceContextPropagator(header_name=config.tracing.header_name)


__all__ = [
    "__version__",
    "init",
    "build_propagator",
    "load_config",
    "TracelinkConfig",
    "TraceContextPropagator",
    "InMemorySpanCollector",
    "LoggingSpanProcessor",
    "INVALID_SPAN_CONTEXT",
    "Span",
    "SpanContext",
    "SpanData",
    "SpanStatus",
    "Tracer",
    "TracerProvider",
    "TracelinkError",
    "ConfigError",
    "ExportError",
    "InvalidStateError",
    "TransportError",
    "ValidationError",
]
