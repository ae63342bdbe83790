"""Signed peer records: a peer's addresses, ordered in time by a sequence number."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from .addrinfo import AddrInfo
from .multiaddr import Multiaddr, MultiaddrError
from .peer import PeerID, id_from_bytes
from .record import Record, register_type
from .wire import decode_message, encode_message

PEER_RECORD_ENVELOPE_DOMAIN = "libp2p-peer-record"
PEER_RECORD_ENVELOPE_PAYLOAD_TYPE = b"\x03\x01"

_FIELD_PEER_ID = 1
_FIELD_SEQ = 2
_FIELD_ADDRESSES = 3
_FIELD_ADDRESS_MULTIADDR = 1

_last_timestamp = 0
_timestamp_lock = threading.Lock()


def timestamp_seq() -> int:
    """Return a strictly increasing, time-based sequence number."""
    global _last_timestamp
    now = time.time_ns()
    with _timestamp_lock:
        if now <= _last_timestamp:
            now = _last_timestamp + 1
        _last_timestamp = now
        return now


@dataclass
class PeerRecord(Record):
    """A peer's public addresses, sequenced so that newer records win.

    A record with a sequence number of zero may be ignored by other peers.
    """

    peer_id: PeerID = field(default_factory=PeerID)
    addrs: list[Multiaddr] = field(default_factory=list)
    seq: int = 0

    def domain(self) -> str:
        return PEER_RECORD_ENVELOPE_DOMAIN

    def codec(self) -> bytes:
        return PEER_RECORD_ENVELOPE_PAYLOAD_TYPE

    def marshal_record(self) -> bytes:
        """Serialise the record to its protobuf form."""
        fields: list[tuple[int, int | bytes]] = []
        if self.peer_id:
            fields.append((_FIELD_PEER_ID, bytes(self.peer_id)))
        if self.seq:
            fields.append((_FIELD_SEQ, self.seq))
        for addr in self.addrs:
            info = encode_message([(_FIELD_ADDRESS_MULTIADDR, addr.to_bytes())])
            fields.append((_FIELD_ADDRESSES, info))
        return encode_message(fields)

    def unmarshal_record(self, data: bytes) -> None:
        """Fill this record from its protobuf form; unparsable addresses are skipped."""
        raw_id = b""
        seq = 0
        addrs: list[Multiaddr] = []
        for number, value in decode_message(bytes(data)):
            if number == _FIELD_PEER_ID:
                if not isinstance(value, bytes):
                    raise ValueError("peer record peer_id has the wrong wire type")
                raw_id = value
            elif number == _FIELD_SEQ:
                if not isinstance(value, int):
                    raise ValueError("peer record seq has the wrong wire type")
                seq = value
            elif number == _FIELD_ADDRESSES:
                if not isinstance(value, bytes):
                    raise ValueError("peer record address has the wrong wire type")
                addr = _address_from_info(value)
                if addr is not None:
                    addrs.append(addr)
        self.peer_id = id_from_bytes(raw_id)
        self.addrs = addrs
        self.seq = seq


def _address_from_info(info: bytes) -> Multiaddr | None:
    raw = b""
    for number, value in decode_message(info):
        if number == _FIELD_ADDRESS_MULTIADDR and isinstance(value, bytes):
            raw = value
    try:
        return Multiaddr.from_bytes(raw)
    except MultiaddrError:
        return None


def new_peer_record() -> PeerRecord:
    """Return an empty record with a timestamp-based sequence number."""
    return PeerRecord(seq=timestamp_seq())


def peer_record_from_addr_info(info: AddrInfo) -> PeerRecord:
    """Build a record from an AddrInfo with a timestamp-based sequence number."""
    rec = new_peer_record()
    rec.peer_id = info.id
    rec.addrs = list(info.addrs)
    return rec


register_type(PeerRecord())