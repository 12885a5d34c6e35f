"""Tests for span creation and the ACTIVE -> ENDED state machine."""

import pytest
from opentelemetry.trace import TraceFlags

from tracelink.errors import InvalidStateError
from tracelink.processors import InMemorySpanCollector, LoggingSpanProcessor
from tracelink.tracer import SpanContext, SpanState, SpanStatus, TracerProvider


@pytest.fixture
def collector():
    return InMemorySpanCollector()


@pytest.fixture
def tracer(collector):
    return TracerProvider(collector=collector, resource={"service.name": "svc"}).get_tracer("test")


class TestSpanCreation:

    def test_root_span_has_no_parent(self, tracer):
        span = tracer.start_span("root")

        assert span.parent_span_id == 0
        assert span.context.trace_id != 0
        assert span.context.is_valid()
        assert span.context.sampled
        assert span.state is SpanState.ACTIVE

    def test_child_inherits_trace_not_span(self, tracer):
        parent = SpanContext.from_extracted(0xABC, 0xDEF, 0x01)
        child = tracer.start_span("child", parent_context=parent)

        assert child.context.trace_id == parent.trace_id
        assert child.context.span_id != parent.span_id
        assert child.parent_span_id == parent.span_id
        assert not child.context.is_remote

    def test_child_inherits_flags(self, tracer):
        parent = SpanContext.from_extracted(0xABC, 0xDEF, 0x03)
        child = tracer.start_span("child", parent_context=parent)

        assert int(child.context.trace_flags) == 0x03

    def test_parent_span_argument(self, tracer):
        parent = tracer.start_span("parent")
        child = tracer.start_span("child", parent=parent)

        assert child.context.trace_id == parent.context.trace_id
        assert child.parent_span_id == parent.context.span_id

    def test_invalid_parent_starts_new_trace(self, tracer):
        invalid = SpanContext(0, 0, TraceFlags(0))
        span = tracer.start_span("orphan", parent_context=invalid)

        assert span.parent_span_id == 0
        assert span.context.is_valid()

    def test_sibling_spans_get_distinct_ids(self, tracer):
        parent = SpanContext.root()
        ids = {tracer.start_span(f"s{i}", parent_context=parent).context.span_id for i in range(50)}

        assert len(ids) == 50
        assert parent.span_id not in ids

    def test_tracers_are_cached_per_scope(self):
        provider = TracerProvider()
        assert provider.get_tracer("a") is provider.get_tracer("a")
        assert provider.get_tracer("a") is not provider.get_tracer("b")


class TestSpanMutation:

    def test_attributes_events_and_status(self, tracer, collector):
        span = tracer.start_span("work", attributes={"initial": True})
        span.set_attribute("count", 3)
        span.set_attributes({"ratio": 0.5, "label": "x"})
        span.add_event("event", {"client.info": "127.0.0.1"}, timestamp_ns=42)
        span.set_status(SpanStatus.OK)
        span.end()

        [data] = collector.drain_all()
        assert dict(data.attributes) == {"initial": True, "count": 3, "ratio": 0.5, "label": "x"}
        assert data.events[0].name == "event"
        assert data.events[0].timestamp_ns == 42
        assert dict(data.events[0].attributes) == {"client.info": "127.0.0.1"}
        assert data.status is SpanStatus.OK
        assert data.instrumentation_scope == "test"
        assert data.resource["service.name"] == "svc"

    def test_unsupported_attribute_values_are_dropped(self, tracer, caplog):
        span = tracer.start_span("work")
        with caplog.at_level("WARNING", logger="tracelink.tracer.span"):
            span.set_attribute("obj", object())
            span.set_attribute("huge", 1 << 70)
            span.set_attribute("", "empty key")
            span.set_attribute("ok", "yes")

        assert dict(span.attributes) == {"ok": "yes"}
        assert "dropping attribute" in caplog.text

    def test_attributes_view_is_read_only(self, tracer):
        span = tracer.start_span("work")
        with pytest.raises(TypeError):
            span.attributes["x"] = 1

    def test_record_exception(self, tracer, collector):
        span = tracer.start_span("work")
        try:
            raise ValueError("boom")
        except ValueError as exc:
            span.record_exception(exc)
        span.end()

        [data] = collector.drain_all()
        assert data.status is SpanStatus.ERROR
        assert data.status_description == "boom"
        event = data.events[0]
        assert event.name == "exception"
        assert event.attributes["exception.type"] == "ValueError"
        assert "boom" in event.attributes["exception.stacktrace"]

    def test_ok_status_drops_description(self, tracer):
        span = tracer.start_span("work")
        span.set_status(SpanStatus.OK, "ignored")
        assert span.status_description is None


class TestSpanEnd:

    def test_end_records_snapshot_once(self, tracer, collector):
        span = tracer.start_span("work")
        span.end()

        assert span.state is SpanState.ENDED
        assert span.end_time_ns is not None
        assert span.duration_ns >= 0
        assert len(collector) == 1
        assert span.to_span_data() is collector.get_finished_spans()[0]

    def test_mutation_after_end_raises_and_changes_nothing(self, tracer, collector):
        span = tracer.start_span("work")
        span.set_attribute("before", 1)
        span.end()
        snapshot = collector.get_finished_spans()[0]
        end_time = span.end_time_ns

        with pytest.raises(InvalidStateError):
            span.set_attribute("after", 2)
        with pytest.raises(InvalidStateError):
            span.add_event("late")
        with pytest.raises(InvalidStateError):
            span.set_status(SpanStatus.ERROR)
        with pytest.raises(InvalidStateError):
            span.end()

        assert span.end_time_ns == end_time
        assert len(collector) == 1
        assert dict(snapshot.attributes) == {"before": 1}
        assert snapshot.events == ()
        assert snapshot.status is SpanStatus.UNSET
        assert dict(span.attributes) == {"before": 1}

    def test_lenient_mode_logs_instead_of_raising(self, collector, caplog):
        tracer = TracerProvider(collector=collector, strict_lifecycle=False).get_tracer("test")
        span = tracer.start_span("work")
        span.end()

        with caplog.at_level("WARNING", logger="tracelink.tracer.span"):
            span.set_attribute("after", 2)
            span.end()

        assert len(collector) == 1
        assert "ended span" in caplog.text
        assert dict(span.attributes) == {}

    def test_snapshot_before_end_is_an_error(self, tracer):
        span = tracer.start_span("work")
        with pytest.raises(InvalidStateError):
            span.to_span_data()

    def test_snapshot_is_detached_from_span(self, tracer, collector):
        span = tracer.start_span("work")
        span.end()
        data = collector.get_finished_spans()[0]

        with pytest.raises(TypeError):
            data.attributes["x"] = 1

    def test_context_manager_ends_span(self, tracer, collector):
        with tracer.start_span("work") as span:
            span.set_attribute("inside", True)

        assert not span.is_recording()
        assert len(collector) == 1

    def test_context_manager_records_error(self, tracer, collector):
        with pytest.raises(RuntimeError):
            with tracer.start_span("work"):
                raise RuntimeError("failed mid-request")

        [data] = collector.drain_all()
        assert data.status is SpanStatus.ERROR
        assert data.events[0].name == "exception"

    def test_context_manager_tolerates_explicit_end(self, tracer, collector):
        with tracer.start_span("work") as span:
            span.end()

        assert len(collector) == 1

    def test_failing_processor_does_not_break_end(self, collector, caplog):
        class Broken:
            def on_end(self, span_data):
                raise RuntimeError("processor bug")

            def shutdown(self):
                pass

            def force_flush(self, timeout=None):
                pass

        provider = TracerProvider()
        provider.add_span_processor(Broken())
        provider.add_span_processor(collector)

        with caplog.at_level("ERROR", logger="tracelink.tracer.provider"):
            provider.get_tracer("test").start_span("work").end()

        assert len(collector) == 1
        assert "Broken" in caplog.text

    def test_to_dict_is_self_describing(self, tracer, collector):
        parent = SpanContext.from_extracted(0xABC, 0xDEF, 0x01)
        span = tracer.start_span("work", parent_context=parent)
        span.add_event("e", {"k": "v"})
        span.end()

        record = collector.drain_all()[0].to_dict()
        assert record["trace_id"] == "00000000000000000000000000000abc"
        assert record["parent_span_id"] == "0000000000000def"
        assert record["name"] == "work"
        assert record["status"] == "UNSET"
        assert record["events"][0]["attributes"] == {"k": "v"}
        assert record["end_time_ns"] >= record["start_time_ns"]

    def test_logging_processor_summarizes_ended_span(self, caplog):
        provider = TracerProvider()
        provider.add_span_processor(LoggingSpanProcessor())

        with caplog.at_level("INFO", logger="tracelink.traces"):
            span = provider.get_tracer("test").start_span("work", attributes={"k": 1})
            span.end()

        assert "[trace] name=work" in caplog.text
        assert f"span_id={span.context.span_id_hex}" in caplog.text
        assert "attrs={'k': 1}" in caplog.text

    def test_snapshots_compare_by_value_but_are_unhashable(self, tracer, collector):
        span = tracer.start_span("work", attributes={"k": "v"})
        span.add_event("e")
        span.end()
        data = collector.drain_all()[0]

        assert data == span.to_span_data()
        with pytest.raises(TypeError):
            hash(data)
        with pytest.raises(TypeError):
            hash(data.events[0])
