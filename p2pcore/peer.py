"""Peer identities derived from public keys."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from .keys import KeyCodecError, PrivateKey, PublicKey, marshal_public_key, unmarshal_public_key
from .multiformats import (
    IDENTITY,
    LIBP2P_KEY,
    SHA2_256,
    Cid,
    MultiformatError,
    b58decode,
    b58encode,
    decode_cid,
    multihash_cast,
    multihash_decode,
    multihash_sum,
)

MAX_INLINE_KEY_LENGTH = 42


class PeerIDError(ValueError):
    """Raised for invalid peer identifiers."""


class EmptyPeerIDError(PeerIDError):
    def __init__(self, message: str = "empty peer ID") -> None:
        super().__init__(message)


class NoPublicKeyError(PeerIDError):
    def __init__(self, message: str = "public key is not embedded in peer ID") -> None:
        super().__init__(message)


class PeerID(bytes):
    """A peer identity: the multihash of the peer's public key."""

    def pretty(self) -> str:
        """Return the base58 form."""
        return encode(self)

    def __str__(self) -> str:
        return self.pretty()

    def short_string(self) -> str:
        pid = self.pretty()
        if len(pid) <= 10:
            return f"<peer.ID {pid}>"
        return f"<peer.ID {pid[:2]}*{pid[-6:]}>"

    def loggable(self) -> dict[str, Any]:
        return {"peerID": self.pretty()}

    def matches_public_key(self, pk: PublicKey) -> bool:
        """Return whether this ID was derived from ``pk``."""
        try:
            return id_from_public_key(pk) == self
        except (KeyCodecError, MultiformatError):
            return False

    def matches_private_key(self, sk: PrivateKey) -> bool:
        return self.matches_public_key(sk.get_public())

    def extract_public_key(self) -> PublicKey:
        """Return the public key inlined in this ID."""
        decoded = multihash_decode(self)
        if decoded.code != IDENTITY:
            raise NoPublicKeyError()
        return unmarshal_public_key(decoded.digest)

    def validate(self) -> None:
        if not self:
            raise EmptyPeerIDError()

    def to_json(self) -> str:
        return json.dumps(encode(self))

    @classmethod
    def from_json(cls, data: str | bytes) -> PeerID:
        value = json.loads(data)
        if not isinstance(value, str):
            raise PeerIDError("peer ID JSON must be a string")
        return decode(value)

    @classmethod
    def from_text(cls, text: str | bytes) -> PeerID:
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8")
        return decode(text)


def id_from_bytes(data: bytes) -> PeerID:
    """Build a peer ID from bytes, checking they are a multihash."""
    try:
        return PeerID(multihash_cast(data))
    except MultiformatError as exc:
        raise PeerIDError(str(exc)) from exc


def id_from_string(s: str) -> PeerID:
    return id_from_bytes(s.encode("latin-1"))


def decode(text: str) -> PeerID:
    """Parse a peer ID given as base58 multihash or as a CID."""
    try:
        if text.startswith(("Qm", "1")):
            return PeerID(multihash_cast(b58decode(text)))
        cid = decode_cid(text)
    except MultiformatError as exc:
        raise PeerIDError(f"failed to parse peer ID: {exc}") from exc
    return from_cid(cid)


def encode(pid: bytes) -> str:
    return b58encode(pid)


def from_cid(cid: Cid) -> PeerID:
    if cid.codec != LIBP2P_KEY:
        raise PeerIDError(f"can't convert CID of type {cid.codec:#x} to a peer ID")
    return PeerID(cid.multihash)


def to_cid(pid: bytes) -> Cid:
    """Return the CID of ``pid``, or an undefined CID if it is invalid."""
    try:
        mh = multihash_cast(pid)
    except MultiformatError:
        return Cid()
    return Cid(1, LIBP2P_KEY, mh)


def id_from_public_key(pk: PublicKey, enable_inlining: bool = True) -> PeerID:
    data = marshal_public_key(pk)
    alg = IDENTITY if enable_inlining and len(data) <= MAX_INLINE_KEY_LENGTH else SHA2_256
    return PeerID(multihash_sum(data, alg))


def id_from_private_key(sk: PrivateKey, enable_inlining: bool = True) -> PeerID:
    return id_from_public_key(sk.get_public(), enable_inlining)


def format_ids(ids: Iterable[PeerID]) -> str:
    return ", ".join(str(pid) for pid in ids)