"""Span implementation and its immutable finished-span snapshot."""

from __future__ import annotations

import logging
import threading
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, TYPE_CHECKING, Union

from opentelemetry.trace import INVALID_SPAN_ID

from tracelink.errors import InvalidStateError
from tracelink.tracer.span_context import SpanContext
from tracelink.utils.helpers import format_span_id, get_duration_ns

if TYPE_CHECKING:
    from tracelink.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

AttributeValue = Union[str, bool, int, float]

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class SpanStatus(Enum):
    UNSET = 0
    OK = 1
    ERROR = 2


class SpanState(Enum):
    ACTIVE = "active"
    ENDED = "ended"


def _clean_attribute(key: str, value: Any) -> bool:
    """Return True if (key, value) is a storable attribute; log and reject otherwise."""
    if not isinstance(key, str) or not key:
        logger.warning("Invalid attribute key %r, dropping attribute", key)
        return False
    # bool is an int subclass, check it first
    if isinstance(value, (bool, str, float)):
        return True
    if isinstance(value, int):
        if _INT64_MIN <= value <= _INT64_MAX:
            return True
        logger.warning("Attribute %s=%d does not fit in int64, dropping attribute", key, value)
        return False
    logger.warning(
        "Attribute %s has unsupported type %s, dropping attribute",
        key,
        type(value).__name__,
    )
    return False


def _clean_attributes(attributes: Optional[Mapping[str, Any]]) -> Dict[str, AttributeValue]:
    cleaned: Dict[str, AttributeValue] = {}
    for key, value in (attributes or {}).items():
        if _clean_attribute(key, value):
            cleaned[key] = value
    return cleaned


@dataclass(frozen=True)
class Event:
    name: str
    timestamp_ns: int
    attributes: Mapping[str, AttributeValue] = field(default_factory=lambda: MappingProxyType({}))

    # holds a mapping proxy; compare with ==, never hash
    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "timestamp_ns": self.timestamp_ns,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class SpanData:
    """Read-only record of an ended span, as held by the collector."""

    name: str
    context: SpanContext
    parent_span_id: int
    start_time_ns: int
    end_time_ns: int
    status: SpanStatus
    status_description: Optional[str]
    attributes: Mapping[str, AttributeValue]
    events: Tuple[Event, ...]
    instrumentation_scope: Optional[str] = None
    resource: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    # attributes and resource are mapping proxies, so snapshots are unhashable
    __hash__ = None  # type: ignore[assignment]

    @property
    def trace_id(self) -> int:
        return self.context.trace_id

    @property
    def span_id(self) -> int:
        return self.context.span_id

    @property
    def duration_ns(self) -> Optional[int]:
        return get_duration_ns(self.start_time_ns, self.end_time_ns)

    @property
    def is_root(self) -> bool:
        return self.parent_span_id == INVALID_SPAN_ID

    def to_dict(self) -> Dict[str, Any]:
        """Self-describing record with hex ids."""
        return {
            "trace_id": self.context.trace_id_hex,
            "span_id": self.context.span_id_hex,
            "parent_span_id": format_span_id(self.parent_span_id),
            "trace_flags": f"{int(self.context.trace_flags):02x}",
            "name": self.name,
            "start_time_ns": self.start_time_ns,
            "end_time_ns": self.end_time_ns,
            "status": self.status.name,
            "status_description": self.status_description,
            "attributes": dict(self.attributes),
            "events": [event.to_dict() for event in self.events],
            "instrumentation_scope": self.instrumentation_scope,
            "resource": dict(self.resource),
        }

    def __str__(self) -> str:
        return (
            f"SpanData{{trace_id={self.context.trace_id_hex}, span_id={self.context.span_id_hex}, "
            f"parent_span_id={format_span_id(self.parent_span_id)}, name={self.name}, "
            f"start_time_ns={self.start_time_ns}, end_time_ns={self.end_time_ns}, "
            f"status={self.status.name}, attributes={dict(self.attributes)}, "
            f"events={[event.to_dict() for event in self.events]}}}"
        )


class Span:
    """
    A timed, named unit of work.

    Spans move from ACTIVE to ENDED exactly once. While ACTIVE the span is
    owned by whoever started it and may be mutated; ending it freezes a
    SpanData snapshot and hands that snapshot to the tracer's processors.
    """

    def __init__(
        self,
        name: str,
        context: SpanContext,
        tracer: "Tracer",
        parent_span_id: int = INVALID_SPAN_ID,
        attributes: Optional[Mapping[str, Any]] = None,
        start_time_ns: Optional[int] = None,
        strict: bool = True,
    ) -> None:
        """
        Initialize span.

        Args:
            name: Span name
            context: This span's own SpanContext
            tracer: Tracer that created the span and receives it on end
            parent_span_id: Parent span id, 0 for a root span
            attributes: Initial attributes
            start_time_ns: Start timestamp (defaults to now)
            strict: Raise InvalidStateError on ended-span mutation
        """
        self.name = name
        self.context = context
        self.tracer = tracer
        self.parent_span_id = parent_span_id
        self.start_time_ns = start_time_ns if start_time_ns is not None else time.time_ns()
        self.end_time_ns: Optional[int] = None

        self.status = SpanStatus.UNSET
        self.status_description: Optional[str] = None

        self._attributes: Dict[str, AttributeValue] = _clean_attributes(attributes)
        self._events: List[Event] = []
        self._strict = strict
        self._lock = threading.Lock()
        self._snapshot: Optional[SpanData] = None

    @property
    def state(self) -> SpanState:
        return SpanState.ACTIVE if self.end_time_ns is None else SpanState.ENDED

    def is_recording(self) -> bool:
        return self.end_time_ns is None

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        """Read-only view of span attributes."""
        return MappingProxyType(self._attributes)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    @property
    def duration_ns(self) -> Optional[int]:
        """Get span duration in nanoseconds."""
        return get_duration_ns(self.start_time_ns, self.end_time_ns)

    def _check_active(self, operation: str) -> bool:
        if self.end_time_ns is None:
            return True
        logger.warning(
            "Ignoring %s on ended span '%s' (span_id=%s)",
            operation,
            self.name,
            self.context.span_id_hex,
        )
        if self._strict:
            raise InvalidStateError(
                f"Cannot {operation} on an ended span",
                {"span": self.name, "span_id": self.context.span_id_hex},
            )
        return False

    def set_attribute(self, key: str, value: AttributeValue) -> None:
        """Set an attribute on the span."""
        if not self._check_active("set_attribute"):
            return
        if _clean_attribute(key, value):
            self._attributes[key] = value

    def set_attributes(self, attributes: Mapping[str, AttributeValue]) -> None:
        if not self._check_active("set_attributes"):
            return
        self._attributes.update(_clean_attributes(attributes))

    def add_event(
        self,
        name: str,
        attributes: Optional[Mapping[str, AttributeValue]] = None,
        timestamp_ns: Optional[int] = None,
    ) -> None:
        """Add an event to the span."""
        if not self._check_active("add_event"):
            return
        self._events.append(
            Event(
                name=name,
                timestamp_ns=timestamp_ns if timestamp_ns is not None else time.time_ns(),
                attributes=MappingProxyType(_clean_attributes(attributes)),
            )
        )

    def record_exception(self, error: BaseException) -> None:
        """Record an exception event on the span and mark it failed."""
        if not self._check_active("record_exception"):
            return
        stacktrace = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
        self.add_event(
            "exception",
            {
                "exception.type": type(error).__qualname__,
                "exception.message": str(error),
                "exception.stacktrace": stacktrace,
            },
        )
        self.set_status(SpanStatus.ERROR, str(error))

    def set_status(self, status: SpanStatus, description: Optional[str] = None) -> None:
        """Set the span status."""
        if not self._check_active("set_status"):
            return
        self.status = status
        self.status_description = description if status == SpanStatus.ERROR else None

    def end(self, end_time_ns: Optional[int] = None) -> None:
        """
        End the span.

        Freezes the span into a SpanData snapshot and hands it to the tracer,
        which forwards it to every registered span processor.
        """
        with self._lock:
            if not self._check_active("end"):
                return
            self.end_time_ns = end_time_ns if end_time_ns is not None else time.time_ns()
            self._snapshot = self._freeze()

        self.tracer._on_span_end(self._snapshot)

    def to_span_data(self) -> SpanData:
        """Return the finished-span snapshot; only available once ended."""
        if self._snapshot is None:
            raise InvalidStateError(
                "Span has not ended yet",
                {"span": self.name, "span_id": self.context.span_id_hex},
            )
        return self._snapshot

    def _freeze(self) -> SpanData:
        return SpanData(
            name=self.name,
            context=self.context,
            parent_span_id=self.parent_span_id,
            start_time_ns=self.start_time_ns,
            end_time_ns=self.end_time_ns,
            status=self.status,
            status_description=self.status_description,
            attributes=MappingProxyType(dict(self._attributes)),
            events=tuple(self._events),
            instrumentation_scope=getattr(self.tracer, "instrumentation_scope", None),
            resource=MappingProxyType(dict(getattr(self.tracer, "resource", None) or {})),
        )

    def __repr__(self) -> str:
        return (
            f"Span(name={self.name!r}, trace_id={self.context.trace_id_hex}, "
            f"span_id={self.context.span_id_hex}, state={self.state.value})"
        )

    # Context manager support
    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.is_recording():
            if exc is not None:
                self.record_exception(exc)
            self.end()
        return False
