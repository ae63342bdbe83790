"""Signed envelopes that carry a record payload for a given signature domain."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .keys import KeyCodecError, PrivateKey, PublicKey, marshal_public_key, unmarshal_public_key
from .record import Record, unmarshal_record_payload
from .wire import WireError, decode_message, encode_message, encode_uvarint

_FIELD_PUBLIC_KEY = 1
_FIELD_PAYLOAD_TYPE = 2
_FIELD_PAYLOAD = 3
_FIELD_SIGNATURE = 5


class EnvelopeError(Exception):
    """Raised when an envelope cannot be built, decoded or validated.

    When the envelope itself could be decoded it is kept in ``envelope`` so
    that it can be inspected; it must not be trusted.
    """

    def __init__(self, message: str, envelope: Envelope | None = None) -> None:
        super().__init__(message)
        self.envelope = envelope


class EmptyDomainError(EnvelopeError):
    def __init__(self, message: str = "envelope domain must not be empty") -> None:
        super().__init__(message)


class EmptyPayloadTypeError(EnvelopeError):
    def __init__(self, message: str = "payloadType must not be empty") -> None:
        super().__init__(message)


class InvalidSignatureError(EnvelopeError):
    def __init__(self, message: str = "invalid signature or incorrect domain") -> None:
        super().__init__(message)


def _make_unsigned(domain: str, payload_type: bytes, payload: bytes) -> bytes:
    """Return the length-prefixed concatenation that is signed and verified."""
    parts = (domain.encode("utf-8"), bytes(payload_type), bytes(payload))
    return b"".join(encode_uvarint(len(part)) + part for part in parts)


@dataclass(eq=True)
class Envelope:
    """An arbitrary payload signed by a peer in the context of a domain."""

    public_key: PublicKey
    payload_type: bytes
    raw_payload: bytes
    signature: bytes = field(default=b"", repr=False)
    _cached: Record | None = field(default=None, init=False, repr=False, compare=False)
    _unmarshal_error: Exception | None = field(default=None, init=False, repr=False, compare=False)
    _unmarshalled: bool = field(default=False, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def marshal(self) -> bytes:
        """Serialise the envelope to its protobuf form."""
        fields: list[tuple[int, bytes]] = [(_FIELD_PUBLIC_KEY, marshal_public_key(self.public_key))]
        for number, value in (
            (_FIELD_PAYLOAD_TYPE, self.payload_type),
            (_FIELD_PAYLOAD, self.raw_payload),
            (_FIELD_SIGNATURE, self.signature),
        ):
            if value:
                fields.append((number, bytes(value)))
        return encode_message(fields)

    def record(self) -> Record:
        """Return the payload as the record type registered for its payload type.

        The result, or the error, is computed once and cached.
        """
        with self._lock:
            if not self._unmarshalled:
                self._unmarshalled = True
                if self._cached is None:
                    try:
                        self._cached = unmarshal_record_payload(self.payload_type, self.raw_payload)
                    except Exception as exc:  # record types may raise anything
                        self._unmarshal_error = exc
        if self._unmarshal_error is not None:
            raise self._unmarshal_error
        assert self._cached is not None
        return self._cached

    def typed_record(self, dest: Record) -> None:
        """Unmarshal the payload into ``dest``, ignoring any cached record."""
        dest.unmarshal_record(self.raw_payload)

    def _validate(self, domain: str) -> None:
        unsigned = _make_unsigned(domain, self.payload_type, self.raw_payload)
        try:
            valid = self.public_key.verify(unsigned, self.signature)
        except Exception as exc:
            raise EnvelopeError(f"failed while verifying signature: {exc}") from exc
        if not valid:
            raise InvalidSignatureError()


def seal(rec: Record, private_key: PrivateKey) -> Envelope:
    """Marshal ``rec`` and sign it with ``private_key`` in the record's domain."""
    try:
        payload = bytes(rec.marshal_record())
    except Exception as exc:
        raise EnvelopeError(f"error marshaling record: {exc}") from exc

    domain = rec.domain()
    payload_type = bytes(rec.codec())
    if not domain:
        raise EmptyDomainError()
    if not payload_type:
        raise EmptyPayloadTypeError()

    signature = private_key.sign(_make_unsigned(domain, payload_type, payload))
    return Envelope(
        public_key=private_key.get_public(),
        payload_type=payload_type,
        raw_payload=payload,
        signature=signature,
    )


def unmarshal_envelope(data: bytes) -> Envelope:
    """Decode a serialised envelope without validating its signature."""
    try:
        fields = decode_message(bytes(data))
    except WireError as exc:
        raise EnvelopeError(f"malformed envelope: {exc}") from exc
    values: dict[int, bytes] = {}
    for number, value in fields:
        if isinstance(value, bytes):
            values[number] = value
    if _FIELD_PUBLIC_KEY not in values:
        raise EnvelopeError("envelope has no public key")
    try:
        key = unmarshal_public_key(values[_FIELD_PUBLIC_KEY])
    except KeyCodecError as exc:
        raise EnvelopeError(f"invalid envelope public key: {exc}") from exc
    return Envelope(
        public_key=key,
        payload_type=values.get(_FIELD_PAYLOAD_TYPE, b""),
        raw_payload=values.get(_FIELD_PAYLOAD, b""),
        signature=values.get(_FIELD_SIGNATURE, b""),
    )


def _open(data: bytes, domain: str) -> Envelope:
    try:
        envelope = unmarshal_envelope(data)
    except EnvelopeError as exc:
        raise EnvelopeError(f"failed when unmarshalling the envelope: {exc}") from exc
    try:
        envelope._validate(domain)
    except EnvelopeError as exc:
        raise EnvelopeError(f"failed to validate envelope: {exc}", envelope) from exc
    return envelope


def consume_envelope(data: bytes, domain: str) -> tuple[Envelope, Record]:
    """Decode and validate an envelope, returning it with its registered record."""
    envelope = _open(data, domain)
    try:
        rec = envelope.record()
    except Exception as exc:
        raise EnvelopeError(f"failed to unmarshal envelope payload: {exc}", envelope) from exc
    return envelope, rec


def consume_typed_envelope(data: bytes, dest_record: Record) -> Envelope:
    """Decode and validate an envelope, unmarshalling its payload into ``dest_record``."""
    envelope = _open(data, dest_record.domain())
    try:
        dest_record.unmarshal_record(envelope.raw_payload)
    except Exception as exc:
        raise EnvelopeError(f"failed to unmarshal envelope payload: {exc}", envelope) from exc
    envelope._cached = dest_record
    return envelope