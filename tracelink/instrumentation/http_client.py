"""HTTP client helpers for context propagation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from opentelemetry.propagators.textmap import Setter

from tracelink.context.carriers import dict_writer
from tracelink.context.propagators import TraceContextPropagator
from tracelink.errors import TransportError
from tracelink.tracer.span import Span, SpanStatus
from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class RequestsCarrierWriter(Setter[requests.PreparedRequest]):
    """Writes headers onto an outbound requests.PreparedRequest."""

    def set(self, carrier: requests.PreparedRequest, key: str, value: str) -> None:
        carrier.headers[key] = value


requests_writer = RequestsCarrierWriter()


def inject_headers(
    headers: Dict[str, str],
    span: Optional[Span],
    propagator: TraceContextPropagator,
) -> Dict[str, str]:
    """
    Inject the span's context into the provided headers dict.

    Returns the same headers mapping for convenience.
    """
    if span is not None:
        propagator.inject(span.context, headers, dict_writer)
    return headers


def traced_request(
    session: requests.Session,
    tracer: Tracer,
    propagator: TraceContextPropagator,
    method: str,
    url: str,
    *,
    span_name: Optional[str] = None,
    parent: Optional[Span] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> requests.Response:
    """
    Send one HTTP request inside its own client span.

    The span context is injected into the prepared request before it is
    sent. The span always ends: with OK on a response below 500, with ERROR
    otherwise. Request failures, whether the URL or headers are rejected
    while preparing or the network fails, end the span with ERROR and are
    re-raised as TransportError.
    """
    span = tracer.start_span(
        span_name or f"HTTP {method.upper()}",
        attributes={"http.method": method.upper(), "http.url": url},
        parent=parent,
    )
    try:
        prepared = session.prepare_request(requests.Request(method.upper(), url, **kwargs))
        propagator.inject(span.context, prepared, requests_writer)
        response = session.send(prepared, timeout=timeout)
    except requests.RequestException as exc:
        # covers bad URLs/headers rejected while preparing as well as network errors
        span.record_exception(exc)
        span.end()
        raise TransportError("HTTP request failed", {"method": method.upper(), "url": url}) from exc
    except Exception as exc:
        span.record_exception(exc)
        span.end()
        raise

    span.set_attribute("http.status_code", response.status_code)
    if response.status_code >= 500:
        span.set_status(SpanStatus.ERROR, f"HTTP {response.status_code}")
    else:
        span.set_status(SpanStatus.OK)
    span.end()
    return response
