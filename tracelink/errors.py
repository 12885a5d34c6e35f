"""Tracelink error hierarchy and exceptions."""

from __future__ import annotations


class TracelinkError(Exception):
    """Base exception for all tracelink errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TracelinkError):
    """Raised when configuration is invalid or conflicting."""
    pass


class ValidationError(TracelinkError):
    """Raised when a value is outside its allowed range."""
    pass


class InvalidStateError(TracelinkError):
    """Raised when an ended span is mutated or ended again."""
    pass


class MalformedCarrierError(TracelinkError):
    """Raised while parsing a trace header; never leaves the propagator."""
    pass


class ExportError(TracelinkError):
    """Raised when span export fails."""
    pass


class TransportError(TracelinkError):
    """Raised when an outbound traced request fails at the network layer."""
    pass
