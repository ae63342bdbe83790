"""A peer together with its addresses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .multiaddr import P_P2P, Multiaddr, new_component
from .peer import PeerID, decode, encode


class InvalidAddrError(ValueError):
    def __init__(self, message: str = "invalid p2p multiaddr") -> None:
        super().__init__(message)


@dataclass
class AddrInfo:
    """A peer ID and the addresses it can be reached at."""

    id: PeerID
    addrs: list[Multiaddr] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{{{self.id}: [{' '.join(str(a) for a in self.addrs)}]}}"

    def loggable(self) -> dict[str, Any]:
        return {"peerID": self.id.pretty(), "addrs": list(self.addrs)}

    def to_json(self) -> str:
        return json.dumps({"ID": encode(self.id), "Addrs": [str(a) for a in self.addrs]})

    @classmethod
    def from_json(cls, data: str | bytes) -> AddrInfo:
        obj = json.loads(data)
        if not isinstance(obj, dict):
            raise ValueError("addr info JSON must be an object")
        pid = decode(obj["ID"]) if "ID" in obj else PeerID()
        return cls(pid, [Multiaddr(a) for a in obj.get("Addrs") or []])


def split_addr(maddr: Multiaddr | None) -> tuple[Multiaddr | None, PeerID]:
    """Split a p2p address into its transport part and peer ID.

    The transport is None if only a /p2p part is present; the ID is empty if
    there is no /p2p part.
    """
    if maddr is None:
        return None, PeerID()
    rest, last = maddr.split_last()
    if last.code != P_P2P:
        return maddr, PeerID()
    return rest, PeerID(last.raw_value)


def addr_infos_from_p2p_addrs(*maddrs: Multiaddr | None) -> list[AddrInfo]:
    """Group p2p addresses by peer, keeping address order."""
    grouped: dict[PeerID, list[Multiaddr]] = {}
    for maddr in maddrs:
        transport, pid = split_addr(maddr)
        if not pid:
            raise InvalidAddrError()
        addrs = grouped.setdefault(pid, [])
        if transport is not None:
            addrs.append(transport)
    return [AddrInfo(pid, addrs) for pid, addrs in grouped.items()]


def addr_info_from_p2p_addr(maddr: Multiaddr | None) -> AddrInfo:
    transport, pid = split_addr(maddr)
    if not pid:
        raise InvalidAddrError()
    return AddrInfo(pid, [transport] if transport is not None else [])


def addr_info_from_string(text: str) -> AddrInfo:
    return addr_info_from_p2p_addr(Multiaddr(text))


def addr_info_to_p2p_addrs(info: AddrInfo) -> list[Multiaddr]:
    """Return each address with the peer's /p2p part appended."""
    p2p = new_component("p2p", encode(info.id))
    if not info.addrs:
        return [Multiaddr.from_components([p2p])]
    return [addr.encapsulate(p2p) for addr in info.addrs]


def addr_infos_to_ids(infos: list[AddrInfo]) -> list[PeerID]:
    return [info.id for info in infos]