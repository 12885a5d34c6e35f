"""
FastAPI middleware helpers for tracing HTTP requests.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from opentelemetry.propagators.textmap import Getter
from starlette.requests import Request

from tracelink.context.propagators import TraceContextPropagator
from tracelink.instrumentation.http_server import start_server_span
from tracelink.tracer.span import SpanStatus
from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class StarletteRequestReader(Getter[Request]):
    """Reads headers from an inbound Starlette/FastAPI request."""

    def get(self, carrier: Request, key: str) -> Optional[List[str]]:
        values = carrier.headers.getlist(key)
        return values or None

    def keys(self, carrier: Request) -> List[str]:
        return list(carrier.headers.keys())


request_reader = StarletteRequestReader()


def install_http_middleware(
    app: Any,
    tracer: Tracer,
    propagator: TraceContextPropagator,
    *,
    span_name: str = "http.request",
) -> None:
    """
    Attach an HTTP middleware that wraps each FastAPI request in a server span.

    - Propagates incoming context from headers
    - Exposes the span to handlers as request.state.span
    - Records method/path and response status code
    - Ends the span with ERROR if the handler raises
    """

    @app.middleware("http")
    async def tracing_middleware(request: Request, call_next: Callable[[Any], Awaitable[Any]]):  # type: ignore
        attrs = {
            "http.method": request.method,
            "http.target": request.url.path,
        }
        span = start_server_span(
            tracer, span_name, request, propagator, request_reader, attributes=attrs
        )
        request.state.span = span
        with span:
            response = await call_next(request)
            if not span.is_recording():
                # the handler ended its span itself
                return response
            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(SpanStatus.ERROR, f"HTTP {response.status_code}")
            return response

    return None
