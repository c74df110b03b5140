import threading
from typing import List

import pytest

from leakprobe.leakprobe_events import EventBus, EventKind, EventRecord


def test_handlers_run_in_registration_order() -> None:
    bus = EventBus()
    calls: List[str] = []
    bus.subscribe(EventKind.WARNING, lambda e: calls.append("first"))
    bus.subscribe(EventKind.WARNING, lambda e: calls.append("second"))
    bus.subscribe(EventKind.ERROR, lambda e: calls.append("error"))

    record = bus.publish(EventKind.WARNING, "heap is growing")

    assert calls == ["first", "second"]
    assert record.kind is EventKind.WARNING
    assert record.message == "heap is growing"
    assert record.snapshot is None


def test_failing_handler_does_not_stop_dispatch(capsys) -> None:
    bus = EventBus()
    received: List[EventRecord] = []

    def broken(event: EventRecord) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe(EventKind.ERROR, broken)
    bus.subscribe(EventKind.ERROR, received.append)

    bus.publish(EventKind.ERROR, "workload failed")

    assert [e.message for e in received] == ["workload failed"]
    err = capsys.readouterr().err
    assert "subscriber bug" in err
    assert "error event handler" in err


def test_events_are_logged_in_order() -> None:
    bus = EventBus()
    bus.publish(EventKind.SNAPSHOT, "one")
    bus.publish(EventKind.WARNING, "two")
    bus.publish(EventKind.ERROR, "three")
    log = bus.events()
    assert [e.message for e in log] == ["one", "two", "three"]
    assert [e.kind for e in log] == [EventKind.SNAPSHOT, EventKind.WARNING, EventKind.ERROR]
    assert log[0].occurred_at <= log[1].occurred_at <= log[2].occurred_at

    bus.clear()
    assert bus.events() == ()


def test_unsubscribe() -> None:
    bus = EventBus()
    calls: List[str] = []

    def handler(event: EventRecord) -> None:
        calls.append(event.message)

    bus.subscribe(EventKind.SNAPSHOT, handler)
    bus.publish(EventKind.SNAPSHOT, "a")
    bus.unsubscribe(EventKind.SNAPSHOT, handler)
    bus.publish(EventKind.SNAPSHOT, "b")
    # Unknown handlers are ignored.
    bus.unsubscribe(EventKind.SNAPSHOT, handler)
    assert calls == ["a"]


def test_string_kinds_are_rejected() -> None:
    bus = EventBus()
    with pytest.raises(TypeError):
        bus.subscribe("warning", lambda e: None)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        bus.publish("warning", "nope")  # type: ignore[arg-type]


def test_concurrent_publishers_lose_no_events() -> None:
    bus = EventBus()
    threads, per_thread = 8, 500
    start = threading.Barrier(threads)

    def publish_many(n: int) -> None:
        start.wait()
        for i in range(per_thread):
            bus.publish(EventKind.WARNING, f"{n}-{i}")

    workers = [threading.Thread(target=publish_many, args=(n,)) for n in range(threads)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    messages = [e.message for e in bus.events()]
    assert len(messages) == threads * per_thread
    assert len(set(messages)) == threads * per_thread
