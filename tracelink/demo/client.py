"""HTTP client that starts a trace per request and propagates it."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import requests

import tracelink
from tracelink.config import TracelinkConfig
from tracelink.context.propagators import TraceContextPropagator
from tracelink.errors import TransportError
from tracelink.exporter.console_exporter import ConsoleExporter
from tracelink.instrumentation.http_client import traced_request
from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

TRACER_SCOPE = "example/http/client"


class HelloClient:
    """Calls the hello server; each call is a root span."""

    def __init__(
        self,
        tracer: Tracer,
        propagator: TraceContextPropagator,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        span_name: str = "Request hello API",
    ) -> None:
        self.tracer = tracer
        self.propagator = propagator
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.span_name = span_name

    def request_hello(self) -> requests.Response:
        """
        Perform one traced GET.

        Raises:
            TransportError: if the server could not be reached
        """
        response = traced_request(
            self.session,
            self.tracer,
            self.propagator,
            "GET",
            self.url,
            span_name=self.span_name,
            timeout=self.timeout,
        )
        logger.info("Response Code: %d", response.status_code)
        logger.info("Response Msg: %s", response.text)
        return response

    def close(self) -> None:
        self.session.close()


def run_client(
    config: TracelinkConfig,
    stop_event: Optional[threading.Event] = None,
    *,
    session: Optional[requests.Session] = None,
    exporter: Any = None,
    max_requests: Optional[int] = None,
) -> int:
    """
    Request the hello server every `client.request_interval_millis` until
    stop_event is set (or max_requests were sent). Collected spans are
    drained after every request.

    Returns:
        Number of requests attempted
    """
    stop_event = stop_event or threading.Event()
    provider = tracelink.init(config)
    tracer = provider.get_tracer(TRACER_SCOPE)
    client = HelloClient(
        tracer,
        tracelink.build_propagator(config),
        config.client.url,
        session=session,
        timeout=config.client.timeout_seconds,
        span_name=config.client.span_name,
    )
    if exporter is None and config.exporters.enable_console:
        exporter = ConsoleExporter()
    tracer.schedule_drain(
        exporter,
        interval_millis=config.collector.drain_interval_millis,
        max_export_batch_size=config.collector.max_export_batch_size,
    )

    attempts = 0
    interval = config.client.request_interval_millis / 1000.0
    try:
        while not stop_event.is_set():
            attempts += 1
            try:
                client.request_hello()
            except TransportError as exc:
                logger.warning("%s: %s", exc, exc.__cause__)
            provider.force_flush()
            if max_requests is not None and attempts >= max_requests:
                break
            stop_event.wait(interval)
    finally:
        client.close()
        provider.shutdown()
    return attempts
