"""Interfaces for local storage of peer addresses, keys, metadata and protocols."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import timedelta
from types import TracebackType
from typing import Any

from .addrinfo import AddrInfo
from .envelope import Envelope
from .keys import PrivateKey, PublicKey
from .multiaddr import Multiaddr
from .peer import PeerID

ADDRESS_TTL = timedelta(hours=1)
"""Expiration time of addresses."""

TEMP_ADDR_TTL = timedelta(minutes=2)
"""TTL of a short-lived address."""

PROVIDER_ADDR_TTL = timedelta(minutes=30)
"""TTL of an address received from a provider."""

RECENTLY_CONNECTED_ADDR_TTL = timedelta(minutes=30)
"""TTL used when we recently connected to a peer."""

OWN_OBSERVED_ADDR_TTL = timedelta(minutes=30)
"""TTL of our own external addresses as observed by other peers."""

PERMANENT_ADDR_TTL = timedelta(microseconds=(2**63 - 1) // 1000)
"""TTL of a permanent address, such as a bootstrap node's."""

CONNECTED_ADDR_TTL = PERMANENT_ADDR_TTL - timedelta(microseconds=1)
"""TTL of the addresses of a directly connected peer; distinct from the permanent TTL."""


class NotFoundError(LookupError):
    """Raised when a requested item is not in the store."""

    def __init__(self, message: str = "item not found") -> None:
        super().__init__(message)


class AddrBook(ABC):
    """Holds the multiaddrs of peers."""

    @abstractmethod
    def add_addrs(self, pid: PeerID, addrs: Iterable[Multiaddr], ttl: timedelta) -> None:
        """Add addresses valid for ``ttl``; an address with a longer TTL is left alone."""

    @abstractmethod
    def set_addrs(self, pid: PeerID, addrs: Iterable[Multiaddr], ttl: timedelta) -> None:
        """Set the TTL of addresses, replacing any TTL they had."""

    @abstractmethod
    def update_addrs(self, pid: PeerID, old_ttl: timedelta, new_ttl: timedelta) -> None:
        """Give the peer's addresses that have ``old_ttl`` the TTL ``new_ttl``."""

    @abstractmethod
    def addrs(self, pid: PeerID) -> list[Multiaddr]:
        """Return all known, unexpired addresses of the peer."""

    @abstractmethod
    def clear_addrs(self, pid: PeerID) -> None:
        """Remove all stored addresses of the peer."""

    @abstractmethod
    def peers_with_addrs(self) -> list[PeerID]:
        """Return every peer with stored addresses."""


class CertifiedAddrBook(ABC):
    """Manages self-certified addresses carried in signed peer records.

    Certified addresses displace uncertified ones for the same peer, and a
    newer record replaces all addresses from an older one.
    """

    @abstractmethod
    def consume_peer_record(self, envelope: Envelope, ttl: timedelta) -> bool:
        """Add the addresses of a signed peer record, expiring after ``ttl``.

        Return False, without raising, if the record was ignored, most likely
        because a record with an equal or higher sequence number is known.
        """

    @abstractmethod
    def get_peer_record(self, pid: PeerID) -> Envelope | None:
        """Return the envelope holding the peer's record, or None if there is none."""


def get_certified_addr_book(book: AddrBook) -> CertifiedAddrBook | None:
    """Return ``book`` as a certified address book, or None if it is not one."""
    return book if isinstance(book, CertifiedAddrBook) else None


class KeyBook(ABC):
    """Tracks the keys of peers."""

    @abstractmethod
    def pub_key(self, pid: PeerID) -> PublicKey | None:
        """Return the peer's public key, if known."""

    @abstractmethod
    def add_pub_key(self, pid: PeerID, key: PublicKey) -> None:
        """Store the peer's public key."""

    @abstractmethod
    def priv_key(self, pid: PeerID) -> PrivateKey | None:
        """Return the peer's private key, if known."""

    @abstractmethod
    def add_priv_key(self, pid: PeerID, key: PrivateKey) -> None:
        """Store the peer's private key."""

    @abstractmethod
    def peers_with_keys(self) -> list[PeerID]:
        """Return every peer with stored keys."""


class PeerMetadata(ABC):
    """A key/value registry for other peer-related data."""

    @abstractmethod
    def get(self, pid: PeerID, key: str) -> Any:
        """Return the value stored under ``key``; raise NotFoundError if absent."""

    @abstractmethod
    def put(self, pid: PeerID, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` for the peer."""


class Metrics(ABC):
    """Tracks metrics across peers."""

    @abstractmethod
    def record_latency(self, pid: PeerID, latency: timedelta) -> None:
        """Record a new latency measurement."""

    @abstractmethod
    def latency_ewma(self, pid: PeerID) -> timedelta:
        """Return the exponentially weighted moving average of the peer's latency."""


class ProtoBook(ABC):
    """Tracks the protocols peers support."""

    @abstractmethod
    def get_protocols(self, pid: PeerID) -> list[str]:
        """Return the peer's protocols."""

    @abstractmethod
    def add_protocols(self, pid: PeerID, *protocols: str) -> None:
        """Add protocols to the peer's set."""

    @abstractmethod
    def set_protocols(self, pid: PeerID, *protocols: str) -> None:
        """Replace the peer's protocols."""

    @abstractmethod
    def remove_protocols(self, pid: PeerID, *protocols: str) -> None:
        """Remove protocols from the peer's set."""

    @abstractmethod
    def supports_protocols(self, pid: PeerID, *protocols: str) -> list[str]:
        """Return those of ``protocols`` that the peer supports."""

    @abstractmethod
    def first_supported_protocol(self, pid: PeerID, *protocols: str) -> str:
        """Return the first of ``protocols`` the peer supports, or an empty string."""


class Peerstore(AddrBook, KeyBook, PeerMetadata, Metrics, ProtoBook):
    """A thread-safe store of peer information; usable as a context manager."""

    @abstractmethod
    def peer_info(self, pid: PeerID) -> AddrInfo:
        """Return the peer's ID and addresses."""

    @abstractmethod
    def peers(self) -> list[PeerID]:
        """Return every peer known to any of the inner stores."""

    @abstractmethod
    def remove_peer(self, pid: PeerID) -> None:
        """Remove the peer's keys, metadata, metrics and protocols."""

    @abstractmethod
    def close(self) -> None:
        """Release the store's resources."""

    def __enter__(self) -> Peerstore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def addr_infos(store: Peerstore, peers: Iterable[PeerID]) -> list[AddrInfo]:
    """Return an AddrInfo for each of ``peers``, in order."""
    return [store.peer_info(pid) for pid in peers]