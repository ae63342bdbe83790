import json
import threading

from p2pcore.addrinfo import AddrInfo
from p2pcore.multiaddr import Multiaddr
from p2pcore.peer import decode
from p2pcore.query import (
    Context,
    QueryEvent,
    QueryEventType,
    publish_query_event,
    register_for_query_events,
    subscribes_to_query_events,
)

PID_TEXT = "QmS3zcG7LhYZYSJMhyRZvTddvbNUqtt8BJpaSs6mi1K5Va"


def test_events_cancel():
    ctx = Context()
    ctx2, events = register_for_query_events(ctx)
    assert subscribes_to_query_events(ctx2) is True
    first_batch_sent = threading.Event()
    received = []

    def publisher():
        for i in range(100):
            publish_query_event(ctx2, QueryEvent(extra=str(i)))
        first_batch_sent.set()
        for i in range(100, 1000):
            publish_query_event(ctx2, QueryEvent(extra=str(i)))

    def consumer():
        for event in events:
            received.append(event.extra)

    threads = [threading.Thread(target=publisher), threading.Thread(target=consumer)]
    for thread in threads:
        thread.start()
    assert first_batch_sent.wait(10)
    ctx.cancel()
    assert ctx2.cancelled() is True
    for thread in threads:
        thread.join(10)
        assert not thread.is_alive()
    assert len(received) >= 100
    assert received[:100] == [str(i) for i in range(100)]


def test_subscribes_to_query_events():
    ctx = Context()
    assert subscribes_to_query_events(ctx) is False
    ctx2, _ = register_for_query_events(ctx)
    assert subscribes_to_query_events(ctx2) is True
    ctx.cancel()


def test_publish_without_subscription_is_noop():
    ctx = Context()
    publish_query_event(ctx, QueryEvent(extra="x"))
    assert ctx.value(object()) is None


def test_buffered_events_delivered_after_cancel():
    ctx = Context()
    ctx2, events = register_for_query_events(ctx)
    for i in range(3):
        publish_query_event(ctx2, QueryEvent(extra=str(i)))
    ctx.cancel()
    publish_query_event(ctx2, QueryEvent(extra="late"))
    assert [e.extra for e in events] == ["0", "1", "2"]


def test_context_values_and_cancellation():
    root = Context()
    child = root.with_value("k", 1)
    assert child.value("k") == 1
    assert root.value("k") is None
    root.cancel()
    assert child.cancelled() is True


def test_query_event_json_round_trip():
    pid = decode(PID_TEXT)
    info = AddrInfo(pid, [Multiaddr("/ip4/127.0.0.1/tcp/1234")])
    event = QueryEvent(pid, QueryEventType.PROVIDER, [info], "extra")
    restored = QueryEvent.from_json(event.to_json())
    assert restored == event
    assert restored.type is QueryEventType.PROVIDER


def test_query_event_json_shape():
    event = QueryEvent(decode(PID_TEXT), QueryEventType.VALUE, [], "x")
    assert json.loads(event.to_json()) == {
        "ID": PID_TEXT,
        "Type": 5,
        "Responses": [],
        "Extra": "x",
    }


def test_query_event_from_json_empty_id():
    event = QueryEvent.from_json('{"ID": "", "Type": 2, "Responses": null, "Extra": ""}')
    assert event.id == b""
    assert event.type is QueryEventType.FINAL_PEER
    assert event.responses == []