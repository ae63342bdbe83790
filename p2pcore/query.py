"""Query events published while routing queries run, and the context that carries them."""

from __future__ import annotations

import json
import threading
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .addrinfo import AddrInfo
from .peer import PeerID, decode, encode

QUERY_EVENT_BUFFER_SIZE = 16


class QueryEventType(IntEnum):
    SENDING_QUERY = 0
    PEER_RESPONSE = 1
    FINAL_PEER = 2
    QUERY_ERROR = 3
    PROVIDER = 4
    VALUE = 5
    ADDING_PEER = 6
    DIALING_PEER = 7


@dataclass
class QueryEvent:
    """A notable event that happened during a query."""

    id: PeerID = field(default_factory=PeerID)
    type: QueryEventType | int = QueryEventType.SENDING_QUERY
    responses: list[AddrInfo] = field(default_factory=list)
    extra: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {
                "ID": encode(self.id),
                "Type": int(self.type),
                "Responses": [json.loads(info.to_json()) for info in self.responses],
                "Extra": self.extra,
            },
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, data: str | bytes) -> QueryEvent:
        obj = json.loads(data)
        if not isinstance(obj, dict):
            raise ValueError("query event JSON must be an object")
        raw_id = obj.get("ID") or ""
        pid = decode(raw_id) if raw_id else PeerID()
        raw_type = int(obj.get("Type") or 0)
        try:
            event_type: QueryEventType | int = QueryEventType(raw_type)
        except ValueError:
            event_type = raw_type
        responses = [AddrInfo.from_json(json.dumps(item)) for item in obj.get("Responses") or []]
        return cls(pid, event_type, responses, obj.get("Extra") or "")


class _CancelState:
    def __init__(self) -> None:
        self.event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self) -> None:
        with self._lock:
            if self.event.is_set():
                return
            self.event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            if not self.event.is_set():
                self._callbacks.append(callback)
                return lambda: self._unsubscribe(callback)
        callback()
        return lambda: None

    def _unsubscribe(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


class Context:
    """A cancellation signal carrying keyed values.

    Contexts derived with :meth:`with_value` share the cancellation of the
    context they came from.
    """

    __slots__ = ("_state", "_values")

    def __init__(self) -> None:
        self._state = _CancelState()
        self._values: dict[Any, Any] = {}

    def cancel(self) -> None:
        self._state.cancel()

    def cancelled(self) -> bool:
        return self._state.event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or until ``timeout``; return whether cancelled."""
        return self._state.event.wait(timeout)

    def with_value(self, key: Any, value: Any) -> Context:
        child = Context.__new__(Context)
        child._state = self._state
        child._values = {**self._values, key: value}
        return child

    def value(self, key: Any) -> Any:
        return self._values.get(key)


class QueryEventStream:
    """Receives query events until the registering context is cancelled."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._buffer: deque[QueryEvent] = deque()
        self._closed = False
        self._cond = threading.Condition(threading.RLock())

    def _close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _send(self, ctx: Context, event: QueryEvent) -> None:
        with self._cond:
            if self._closed:
                return
            unsubscribe = ctx._state.subscribe(self._wake)
            try:
                while (
                    not self._closed
                    and not ctx.cancelled()
                    and len(self._buffer) >= self._capacity
                ):
                    self._cond.wait()
                if not self._closed and len(self._buffer) < self._capacity:
                    self._buffer.append(event)
                    self._cond.notify_all()
            finally:
                unsubscribe()

    def __iter__(self) -> Iterator[QueryEvent]:
        while True:
            with self._cond:
                while not self._buffer and not self._closed:
                    self._cond.wait()
                if not self._buffer:
                    return
                event = self._buffer.popleft()
                self._cond.notify_all()
            yield event


_ROUTING_QUERY_KEY = object()


def register_for_query_events(ctx: Context) -> tuple[Context, QueryEventStream]:
    """Return a context that collects query events, and the stream they arrive on.

    The stream ends once ``ctx`` is cancelled; callers must cancel it when done.
    """
    stream = QueryEventStream(QUERY_EVENT_BUFFER_SIZE)
    ctx._state.subscribe(stream._close)
    return ctx.with_value(_ROUTING_QUERY_KEY, stream), stream


def publish_query_event(ctx: Context, event: QueryEvent) -> None:
    """Publish ``event`` to the stream registered on ``ctx``, if any."""
    stream = ctx.value(_ROUTING_QUERY_KEY)
    if stream is None:
        return
    stream._send(ctx, event)


def subscribes_to_query_events(ctx: Context) -> bool:
    return ctx.value(_ROUTING_QUERY_KEY) is not None