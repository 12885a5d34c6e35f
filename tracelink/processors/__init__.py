"""Span processors and the collector drain loop."""

from tracelink.processors.collector import InMemorySpanCollector
from tracelink.processors.drain import PeriodicDrainer
from tracelink.processors.logging_processor import LoggingSpanProcessor

__all__ = [
    "InMemorySpanCollector",
    "PeriodicDrainer",
    "LoggingSpanProcessor",
]
