"""Tracer: creates spans and routes ended spans to the provider."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union, TYPE_CHECKING

from opentelemetry.trace import INVALID_SPAN_ID, TraceFlags

from tracelink.errors import ConfigError
from tracelink.tracer.span import Span, SpanData
from tracelink.tracer.span_context import SpanContext

if TYPE_CHECKING:
    from tracelink.processors.drain import PeriodicDrainer
    from tracelink.tracer.provider import TracerProvider

logger = logging.getLogger(__name__)


class Tracer:
    """
    Span factory bound to one instrumentation scope.

    Tracers are obtained from a TracerProvider; every span they create is
    handed back to that provider's processors when it ends.
    """

    def __init__(self, provider: "TracerProvider", instrumentation_scope: str):
        """
        Initialize tracer.

        Args:
            provider: TracerProvider instance that owns processors and id generation
            instrumentation_scope: Instrumentation scope name
        """
        self._provider = provider
        self.instrumentation_scope = instrumentation_scope

    @property
    def resource(self) -> Dict[str, str]:
        return self._provider.resource

    def start_span(
        self,
        name: str,
        attributes: Optional[Mapping[str, Any]] = None,
        parent: Optional[Union[Span, SpanData]] = None,
        parent_context: Optional[SpanContext] = None,
        start_time_ns: Optional[int] = None,
    ) -> Span:
        """
        Start a new span.

        A valid parent (span or context) makes the new span its child: the
        trace id and trace flags are inherited and the parent's span id is
        recorded. Without one, or with an invalid one such as a failed
        extraction, the span starts a new trace.

        Args:
            name: Span name
            attributes: Optional attributes dictionary
            parent: Optional parent span
            parent_context: Optional parent span context
            start_time_ns: Optional explicit start timestamp

        Returns:
            Active Span instance
        """
        if parent is not None:
            parent_context = parent.context

        id_generator = self._provider.id_generator
        if parent_context is not None and parent_context.is_valid():
            trace_id = parent_context.trace_id
            trace_flags = parent_context.trace_flags
            parent_span_id = parent_context.span_id
        else:
            trace_id = id_generator.new_trace_id()
            trace_flags = TraceFlags(TraceFlags.SAMPLED)
            parent_span_id = INVALID_SPAN_ID

        span_id = id_generator.new_span_id()
        while span_id == parent_span_id:
            span_id = id_generator.new_span_id()

        context = SpanContext(
            trace_id=trace_id,
            span_id=span_id,
            trace_flags=trace_flags,
            is_remote=False,
        )
        logger.debug(
            "Starting span '%s' trace_id=%s span_id=%s parent=%s",
            name,
            context.trace_id_hex,
            context.span_id_hex,
            "remote" if parent_context is not None and parent_context.is_remote else "local",
        )
        return Span(
            name=name,
            context=context,
            tracer=self,
            parent_span_id=parent_span_id,
            attributes=attributes,
            start_time_ns=start_time_ns,
            strict=self._provider.strict_lifecycle,
        )

    def schedule_drain(
        self,
        exporter: Any,
        interval_millis: Optional[int] = None,
        max_export_batch_size: Optional[int] = None,
    ) -> "PeriodicDrainer":
        """
        Start a periodic drain of the provider's collector into exporter.

        Returns:
            The running PeriodicDrainer; stop it, or shut the provider down.

        Raises:
            ConfigError: if the provider has no collector or is already shut down
        """
        collector = self._provider.collector
        if collector is None:
            raise ConfigError(
                "No span collector configured on the tracer provider",
                {"scope": self.instrumentation_scope},
            )
        from tracelink.processors.drain import PeriodicDrainer

        kwargs: Dict[str, int] = {}
        if interval_millis is not None:
            kwargs["interval_millis"] = interval_millis
        if max_export_batch_size is not None:
            kwargs["max_export_batch_size"] = max_export_batch_size
        drainer = PeriodicDrainer(collector, exporter, **kwargs)
        self._provider._register_drainer(drainer)
        return drainer.start()

    def _on_span_end(self, span_data: SpanData) -> None:
        """
        Forward an ended span to the provider's processors.

        Called by Span.end() exactly once per span.
        """
        self._provider._on_span_end(span_data)
