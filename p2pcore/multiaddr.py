"""Self-describing network addresses."""

from __future__ import annotations

import ipaddress
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .multiformats import LIBP2P_KEY, MultiformatError, b58decode, b58encode, decode_cid, multihash_cast
from .wire import WireError, decode_uvarint, encode_uvarint

P_IP4 = 4
P_TCP = 6
P_IP6 = 41
P_DNS = 53
P_DNS4 = 54
P_DNS6 = 55
P_DNSADDR = 56
P_UDP = 273
P_CIRCUIT = 290
P_P2P = 421
P_TLS = 448
P_QUIC = 460
P_WS = 477
P_WSS = 478

_VARIABLE = -1


class MultiaddrError(ValueError):
    """Raised for malformed multiaddrs."""


@dataclass(frozen=True)
class _Protocol:
    name: str
    code: int
    size: int
    parse: Callable[[str], bytes]
    format: Callable[[bytes], str]


def _flag_parse(value: str) -> bytes:
    """Protocols without a value accept only the empty string."""
    if value:
        raise MultiaddrError(f"protocol takes no value, got {value!r}")
    return b""


def _flag_format(raw: bytes) -> str:
    """Protocols without a value carry no bytes."""
    if raw:
        raise MultiaddrError(f"protocol takes no value, got {len(raw)} bytes")
    return ""


def _ip4_parse(value: str) -> bytes:
    return ipaddress.IPv4Address(value).packed


def _ip4_format(raw: bytes) -> str:
    return str(ipaddress.IPv4Address(raw))


def _ip6_parse(value: str) -> bytes:
    return ipaddress.IPv6Address(value).packed


def _ip6_format(raw: bytes) -> str:
    return str(ipaddress.IPv6Address(raw))


def _port_parse(value: str) -> bytes:
    if not value.isdigit() or int(value) > 0xFFFF:
        raise MultiaddrError(f"invalid port {value!r}")
    return int(value).to_bytes(2, "big")


def _port_format(raw: bytes) -> str:
    return str(int.from_bytes(raw, "big"))


def _text_parse(value: str) -> bytes:
    if not value:
        raise MultiaddrError("empty name")
    return value.encode("utf-8")


def _text_format(raw: bytes) -> str:
    return raw.decode("utf-8")


def _p2p_parse(value: str) -> bytes:
    if value.startswith(("Qm", "1")):
        return multihash_cast(b58decode(value))
    cid = decode_cid(value)
    if cid.codec != LIBP2P_KEY:
        raise MultiaddrError(f"cid codec {cid.codec:#x} is not libp2p-key")
    return cid.multihash


def _p2p_format(raw: bytes) -> str:
    return b58encode(multihash_cast(raw))


_PROTOCOLS = [
    _Protocol("ip4", P_IP4, 4, _ip4_parse, _ip4_format),
    _Protocol("tcp", P_TCP, 2, _port_parse, _port_format),
    _Protocol("ip6", P_IP6, 16, _ip6_parse, _ip6_format),
    _Protocol("dns", P_DNS, _VARIABLE, _text_parse, _text_format),
    _Protocol("dns4", P_DNS4, _VARIABLE, _text_parse, _text_format),
    _Protocol("dns6", P_DNS6, _VARIABLE, _text_parse, _text_format),
    _Protocol("dnsaddr", P_DNSADDR, _VARIABLE, _text_parse, _text_format),
    _Protocol("udp", P_UDP, 2, _port_parse, _port_format),
    _Protocol("p2p-circuit", P_CIRCUIT, 0, _flag_parse, _flag_format),
    _Protocol("p2p", P_P2P, _VARIABLE, _p2p_parse, _p2p_format),
    _Protocol("tls", P_TLS, 0, _flag_parse, _flag_format),
    _Protocol("quic", P_QUIC, 0, _flag_parse, _flag_format),
    _Protocol("ws", P_WS, 0, _flag_parse, _flag_format),
    _Protocol("wss", P_WSS, 0, _flag_parse, _flag_format),
]
_BY_CODE = {proto.code: proto for proto in _PROTOCOLS}
_BY_NAME = {proto.name: proto for proto in _PROTOCOLS}
_BY_NAME["ipfs"] = _BY_CODE[P_P2P]


@dataclass(frozen=True)
class Component:
    """One protocol and its value within a multiaddr."""

    code: int
    raw_value: bytes

    @property
    def name(self) -> str:
        return _BY_CODE[self.code].name

    @property
    def value(self) -> str:
        return _BY_CODE[self.code].format(self.raw_value)

    def to_bytes(self) -> bytes:
        proto = _BY_CODE[self.code]
        prefix = encode_uvarint(self.code)
        if proto.size == _VARIABLE:
            prefix += encode_uvarint(len(self.raw_value))
        return prefix + self.raw_value

    def __str__(self) -> str:
        if _BY_CODE[self.code].size == 0:
            return f"/{self.name}"
        return f"/{self.name}/{self.value}"


def _make_component(proto: _Protocol, value: str) -> Component:
    try:
        raw = proto.parse(value)
    except (ValueError, MultiformatError) as exc:
        if isinstance(exc, MultiaddrError):
            raise
        raise MultiaddrError(f"invalid value {value!r} for {proto.name}: {exc}") from exc
    return Component(proto.code, raw)


def new_component(name: str, value: str) -> Component:
    """Build a component from a protocol name and its string value."""
    proto = _BY_NAME.get(name)
    if proto is None:
        raise MultiaddrError(f"no protocol with name {name}")
    return _make_component(proto, value)


def _parse_string(text: str) -> list[Component]:
    if not text:
        raise MultiaddrError("empty multiaddr")
    if not text.startswith("/"):
        raise MultiaddrError("multiaddr must begin with /")
    parts = iter(text.rstrip("/").split("/")[1:])
    components = []
    for name in parts:
        proto = _BY_NAME.get(name)
        if proto is None:
            raise MultiaddrError(f"no protocol with name {name}")
        if proto.size == 0:
            components.append(Component(proto.code, b""))
            continue
        value = next(parts, None)
        if value is None:
            raise MultiaddrError(f"unexpected end of multiaddr after {name}")
        components.append(_make_component(proto, value))
    if not components:
        raise MultiaddrError("empty multiaddr")
    return components


def _parse_bytes(data: bytes) -> list[Component]:
    if not data:
        raise MultiaddrError("empty multiaddr")
    components = []
    pos = 0
    try:
        while pos < len(data):
            code, pos = decode_uvarint(data, pos)
            proto = _BY_CODE.get(code)
            if proto is None:
                raise MultiaddrError(f"no protocol with code {code}")
            size = proto.size
            if size == _VARIABLE:
                size, pos = decode_uvarint(data, pos)
            raw = data[pos:pos + size]
            if len(raw) != size:
                raise MultiaddrError("truncated multiaddr component")
            pos += size
            proto.format(raw)
            components.append(Component(code, raw))
    except (WireError, UnicodeDecodeError, MultiformatError) as exc:
        raise MultiaddrError(str(exc)) from exc
    return components


class Multiaddr:
    """An immutable, non-empty sequence of address components."""

    __slots__ = ("_components",)

    def __init__(self, text: str) -> None:
        self._components = tuple(_parse_string(text))

    @classmethod
    def from_components(cls, components: Iterable[Component]) -> Multiaddr:
        items = tuple(components)
        if not items:
            raise MultiaddrError("empty multiaddr")
        obj = cls.__new__(cls)
        obj._components = items
        return obj

    @classmethod
    def from_bytes(cls, data: bytes) -> Multiaddr:
        """Parse the binary form of a multiaddr."""
        return cls.from_components(_parse_bytes(bytes(data)))

    def components(self) -> list[Component]:
        """Return the components in order."""
        return list(self._components)

    def to_bytes(self) -> bytes:
        return b"".join(component.to_bytes() for component in self._components)

    def encapsulate(self, other: Multiaddr | Component) -> Multiaddr:
        """Return this address with ``other`` appended."""
        extra = (other,) if isinstance(other, Component) else other._components
        return Multiaddr.from_components(self._components + extra)

    def split_last(self) -> tuple[Multiaddr | None, Component]:
        """Split off the last component; the rest is None if nothing remains."""
        *rest, last = self._components
        return (Multiaddr.from_components(rest) if rest else None), last

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Multiaddr):
            return NotImplemented
        return self._components == other._components

    def __hash__(self) -> int:
        return hash(self._components)

    def __str__(self) -> str:
        return "".join(str(component) for component in self._components)

    def __repr__(self) -> str:
        return f"Multiaddr({str(self)!r})"