"""Exporters for reporting drained spans."""

from tracelink.exporter.console_exporter import ConsoleExporter

__all__ = ["ConsoleExporter"]
