"""Instrumentation helpers for HTTP clients and servers."""

from tracelink.instrumentation.http_client import (
    RequestsCarrierWriter,
    inject_headers as inject_http_headers,
    traced_request,
)
from tracelink.instrumentation.http_server import extract_parent_context, start_server_span
from tracelink.instrumentation.fastapi import StarletteRequestReader, install_http_middleware

__all__ = [
    "RequestsCarrierWriter",
    "StarletteRequestReader",
    "inject_http_headers",
    "traced_request",
    "extract_parent_context",
    "start_server_span",
    "install_http_middleware",
]
