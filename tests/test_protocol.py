import io

import pytest

from p2pcore.protocol import (
    Negotiator,
    Router,
    Switch,
    convert_from_strings,
    convert_to_strings,
)


class _LineSwitch(Switch):
    def __init__(self):
        self._handlers = []

    def add_handler(self, protocol, handler):
        self.add_handler_with_func(protocol, lambda name: name == protocol, handler)

    def add_handler_with_func(self, protocol, match, handler):
        self._handlers.append((protocol, match, handler))

    def remove_handler(self, protocol):
        self._handlers = [h for h in self._handlers if h[0] != protocol]

    def protocols(self):
        return [name for name, _, _ in self._handlers]

    def negotiate(self, rwc):
        name = rwc.readline().decode().strip()
        for _, match, handler in self._handlers:
            if match(name):
                return name, handler
        raise LookupError(name)


def test_convert_round_trip():
    ids = convert_from_strings(["/a/1.0.0", "/b/2.0.0"])
    assert ids == ["/a/1.0.0", "/b/2.0.0"]
    assert convert_to_strings(ids) == ["/a/1.0.0", "/b/2.0.0"]


def test_convert_empty():
    assert convert_from_strings([]) == []
    assert convert_to_strings([]) == []


def test_convert_to_strings_gives_plain_str():
    result = convert_to_strings(convert_from_strings(["/x"]))
    assert result == ["/x"]
    assert type(result[0]) is str


@pytest.mark.parametrize("cls", [Router, Negotiator, Switch])
def test_interfaces_are_abstract(cls):
    with pytest.raises(TypeError):
        cls()


def test_handle_dispatches_to_negotiated_handler():
    calls = []
    switch = _LineSwitch()
    switch.add_handler("/echo", lambda proto, rwc: calls.append((proto, rwc)) or "done")
    stream = io.BytesIO(b"/echo\n")
    assert Negotiator.handle(switch, stream) == "done"
    assert calls == [("/echo", stream)]


def test_handle_passes_matched_protocol_name():
    seen = []
    switch = _LineSwitch()
    switch.add_handler_with_func(
        "/chat", lambda name: name.startswith("/chat/"), lambda proto, rwc: seen.append(proto)
    )
    Negotiator.handle(switch, io.BytesIO(b"/chat/2.0\n"))
    assert seen == ["/chat/2.0"]


def test_handle_propagates_negotiation_failure():
    switch = _LineSwitch()
    switch.add_handler("/echo", lambda proto, rwc: None)
    switch.remove_handler("/echo")
    assert switch.protocols() == []
    with pytest.raises(LookupError):
        Negotiator.handle(switch, io.BytesIO(b"/echo\n"))