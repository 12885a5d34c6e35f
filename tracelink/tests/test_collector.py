"""Tests for the in-memory span collector under concurrency."""

import threading

import pytest

from tracelink.errors import InvalidStateError
from tracelink.processors import InMemorySpanCollector
from tracelink.tracer import TracerProvider


@pytest.fixture
def collector():
    return InMemorySpanCollector()


@pytest.fixture
def tracer(collector):
    return TracerProvider(collector=collector).get_tracer("test")


def test_drain_returns_record_order_and_empties(tracer, collector):
    for name in ("a", "b", "c"):
        tracer.start_span(name).end()

    assert [s.name for s in collector.drain_all()] == ["a", "b", "c"]
    assert collector.drain_all() == []
    assert len(collector) == 0


def test_get_finished_spans_does_not_drain(tracer, collector):
    tracer.start_span("a").end()

    assert len(collector.get_finished_spans()) == 1
    assert len(collector.get_finished_spans()) == 1
    assert len(collector.drain_all()) == 1


def test_record_accepts_ended_span(collector):
    lone_tracer = TracerProvider().get_tracer("detached")
    span = lone_tracer.start_span("a")
    span.end()

    collector.record(span)

    assert collector.drain_all()[0] is span.to_span_data()


def test_record_rejects_active_span(tracer, collector):
    span = tracer.start_span("active")
    with pytest.raises(InvalidStateError):
        collector.record(span)
    assert len(collector) == 0


def test_concurrent_spans_neither_lost_nor_duplicated(tracer, collector):
    """N threads each end one span; one drain sees exactly N distinct spans."""
    workers = 64
    barrier = threading.Barrier(workers)

    def handle_request(i):
        barrier.wait()
        span = tracer.start_span(f"request-{i}")
        span.set_attribute("worker", i)
        span.end()

    threads = [threading.Thread(target=handle_request, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    drained = collector.drain_all()
    assert len(drained) == workers
    assert len({s.span_id for s in drained}) == workers
    assert collector.drain_all() == []


def test_concurrent_drains_partition_records(tracer, collector):
    """Drains racing with recorders never lose or duplicate a span."""
    workers = 8
    per_worker = 200
    done = threading.Event()
    drained = []

    def record_many():
        for _ in range(per_worker):
            tracer.start_span("work").end()

    def drain_loop():
        while not done.is_set():
            drained.extend(collector.drain_all())
        drained.extend(collector.drain_all())

    drainer = threading.Thread(target=drain_loop)
    drainer.start()
    recorders = [threading.Thread(target=record_many) for _ in range(workers)]
    for t in recorders:
        t.start()
    for t in recorders:
        t.join()
    done.set()
    drainer.join()

    assert len(drained) == workers * per_worker
    assert len({s.span_id for s in drained}) == workers * per_worker
