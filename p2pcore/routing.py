"""Interfaces for peer, content and value routing, and public-key lookup."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from .addrinfo import AddrInfo
from .keys import PublicKey, unmarshal_public_key
from .multiformats import Cid
from .peer import NoPublicKeyError, PeerID
from .routing_options import Option


class NotFoundError(LookupError):
    """Raised when the router cannot find the requested record."""

    def __init__(self, message: str = "routing: not found") -> None:
        super().__init__(message)


class NotSupportedError(Exception):
    """Raised when the router does not support a record type or operation."""

    def __init__(self, message: str = "routing: operation or key not supported") -> None:
        super().__init__(message)


class ContentRouting(ABC):
    """Finds out who has which content."""

    @abstractmethod
    def provide(self, cid: Cid, announce: bool) -> None:
        """Add ``cid`` to the content routing system, announcing it if asked."""

    @abstractmethod
    def find_providers(self, cid: Cid, count: int) -> Iterator[AddrInfo]:
        """Yield peers able to provide ``cid``; a count of 0 means unbounded."""


class PeerRouting(ABC):
    """Finds address information about peers."""

    @abstractmethod
    def find_peer(self, pid: PeerID) -> AddrInfo:
        """Return the addresses of ``pid``."""


class ValueStore(ABC):
    """A basic put/get store."""

    @abstractmethod
    def put_value(self, key: str, value: bytes, *options: Option) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def get_value(self, key: str, *options: Option) -> bytes:
        """Return the value under ``key``."""

    @abstractmethod
    def search_value(self, key: str, *options: Option) -> Iterator[bytes]:
        """Yield better and better values for ``key``; yield nothing if none is found."""


class Routing(ContentRouting, PeerRouting, ValueStore):
    """The combination of the routing types."""

    @abstractmethod
    def bootstrap(self) -> None:
        """Ask the routing system to get into, and stay in, a bootstrapped state."""


class PubKeyFetcher(ABC):
    """A value store that can fetch public keys more efficiently."""

    @abstractmethod
    def get_public_key(self, pid: PeerID) -> PublicKey:
        """Return the public key of ``pid``."""


def key_for_public_key(pid: bytes) -> str:
    """Return the value-store key under which the public key of ``pid`` lives."""
    return "/pk/" + bytes(pid).decode("latin-1")


def get_public_key(store: ValueStore, pid: PeerID) -> PublicKey:
    """Return the public key of ``pid``.

    A key inlined in the ID is used directly; otherwise a PubKeyFetcher's own
    lookup is used, and failing that the value stored under the key's name.
    """
    try:
        return PeerID(pid).extract_public_key()
    except NoPublicKeyError:
        pass

    if isinstance(store, PubKeyFetcher):
        return store.get_public_key(pid)
    return unmarshal_public_key(store.get_value(key_for_public_key(pid)))