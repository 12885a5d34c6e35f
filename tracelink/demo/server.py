"""Hello-world HTTP server that continues the caller's trace."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

import tracelink
from tracelink.config import TracelinkConfig
from tracelink.context.propagators import TraceContextPropagator
from tracelink.exporter.console_exporter import ConsoleExporter
from tracelink.instrumentation.fastapi import install_http_middleware
from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

TRACER_SCOPE = "example/http/server"
GREETING = "Hello World!"


def create_app(
    tracer: Tracer,
    propagator: TraceContextPropagator,
    *,
    span_name: str = "hello handler",
) -> FastAPI:
    """Build the demo app; every request runs inside a server span."""
    app = FastAPI(title="tracelink hello server")
    install_http_middleware(app, tracer, propagator, span_name=span_name)

    @app.get("/", response_class=PlainTextResponse)
    def hello(request: Request) -> str:
        client_host = request.client.host if request.client else "unknown"
        logger.info("Served Client: %s", client_host)
        request.state.span.add_event("event", {"client.info": client_host})
        return GREETING

    return app


def run_server(config: TracelinkConfig) -> None:
    """Serve the demo app until interrupted, printing collected spans periodically."""
    provider = tracelink.init(config)
    tracer = provider.get_tracer(TRACER_SCOPE)
    propagator = tracelink.build_propagator(config)
    app = create_app(tracer, propagator, span_name=config.server.span_name)

    exporter = ConsoleExporter() if config.exporters.enable_console else None
    tracer.schedule_drain(
        exporter,
        interval_millis=config.collector.drain_interval_millis,
        max_export_batch_size=config.collector.max_export_batch_size,
    )
    logger.info("Server ready on http://%s:%d", config.server.host, config.server.port)
    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level="debug" if config.logging.debug else "warning",
        )
    finally:
        provider.shutdown()
