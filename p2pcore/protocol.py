"""Protocol identifiers and the interfaces for routing and negotiating protocols."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, NewType

ProtocolID = NewType("ProtocolID", str)

TESTING_ID = ProtocolID("/p2p/_testing")

Handler = Callable[[str, Any], Any]
"""A handler is called with the negotiated protocol name and the stream."""


def convert_from_strings(ids: Iterable[str]) -> list[ProtocolID]:
    """Convert strings to protocol identifiers."""
    return [ProtocolID(item) for item in ids]


def convert_to_strings(ids: Iterable[ProtocolID]) -> list[str]:
    """Convert protocol identifiers to plain strings."""
    return [str(item) for item in ids]


class Router(ABC):
    """Registry of protocol handlers for incoming streams.

    Handlers are consulted in order of registration; the first eligible one wins.
    """

    @abstractmethod
    def add_handler(self, protocol: str, handler: Handler) -> None:
        """Register ``handler`` for an exact match of ``protocol``."""

    @abstractmethod
    def add_handler_with_func(
        self, protocol: str, match: Callable[[str], bool], handler: Handler
    ) -> None:
        """Register ``handler`` for every protocol for which ``match`` returns true."""

    @abstractmethod
    def remove_handler(self, protocol: str) -> None:
        """Remove the handler registered under ``protocol``, if any."""

    @abstractmethod
    def protocols(self) -> list[str]:
        """Return every registered protocol name."""


class Negotiator(ABC):
    """Agrees with the remote side on the protocol for an inbound stream."""

    @abstractmethod
    def negotiate(self, rwc: Any) -> tuple[str, Handler]:
        """Return the agreed protocol and its handler; raise if negotiation fails."""

    def handle(self, rwc: Any) -> Any:
        """Negotiate a protocol for ``rwc`` and run its handler on it."""
        protocol, handler = self.negotiate(rwc)
        return handler(protocol, rwc)


class Switch(Router, Negotiator):
    """Dispatches incoming streams to their handlers."""