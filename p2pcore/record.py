"""Record types that can travel as signed envelope payloads."""

from __future__ import annotations

from abc import ABC, abstractmethod


class PayloadTypeNotRegisteredError(LookupError):
    """Raised when no record type is registered for a payload type."""

    def __init__(self, message: str = "payload type is not registered") -> None:
        super().__init__(message)


class Record(ABC):
    """A data type that can be marshalled into an envelope payload.

    Registered record types must be constructible with no arguments.
    """

    @abstractmethod
    def domain(self) -> str:
        """Return the signature domain shared by all instances of this type."""

    @abstractmethod
    def codec(self) -> bytes:
        """Return the binary identifier used as the envelope payload type."""

    @abstractmethod
    def marshal_record(self) -> bytes:
        """Serialise this record."""

    @abstractmethod
    def unmarshal_record(self, data: bytes) -> None:
        """Fill this record from serialised bytes."""


_registry: dict[bytes, type[Record]] = {}


def register_type(prototype: Record) -> None:
    """Make the type of ``prototype`` the default for its codec."""
    _registry[bytes(prototype.codec())] = type(prototype)


def unmarshal_record_payload(payload_type: bytes, payload: bytes) -> Record:
    """Build a fresh record of the type registered for ``payload_type`` from ``payload``."""
    try:
        record_type = _registry[bytes(payload_type)]
    except KeyError:
        raise PayloadTypeNotRegisteredError() from None
    rec = record_type()
    rec.unmarshal_record(payload)
    return rec