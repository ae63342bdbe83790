"""Base58, multihash and CID encodings used for peer identifiers."""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass

from .wire import WireError, decode_uvarint, encode_uvarint

IDENTITY = 0x00
SHA1 = 0x11
SHA2_256 = 0x12
SHA2_512 = 0x13
SHA3_512 = 0x14
SHA3_256 = 0x16

MULTIHASH_NAMES = {
    IDENTITY: "identity",
    SHA1: "sha1",
    SHA2_256: "sha2-256",
    SHA2_512: "sha2-512",
    SHA3_512: "sha3-512",
    SHA3_256: "sha3-256",
}

_HASHERS = {
    SHA1: "sha1",
    SHA2_256: "sha256",
    SHA2_512: "sha512",
    SHA3_512: "sha3_512",
    SHA3_256: "sha3_256",
}

DAG_PB = 0x70
RAW = 0x55
LIBP2P_KEY = 0x72

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {char: index for index, char in enumerate(_B58_ALPHABET)}


class MultiformatError(ValueError):
    """Raised when data is not a valid multiformat encoding."""


def b58encode(data: bytes) -> str:
    """Encode bytes with the bitcoin base58 alphabet."""
    data = bytes(data)
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, rem = divmod(number, 58)
        digits.append(_B58_ALPHABET[rem])
    leading = len(data) - len(data.lstrip(b"\0"))
    return "1" * leading + "".join(reversed(digits))


def b58decode(text: str) -> bytes:
    """Decode a bitcoin base58 string."""
    if not text:
        raise MultiformatError("zero length string")
    number = 0
    for char in text:
        index = _B58_INDEX.get(char)
        if index is None:
            raise MultiformatError(f"invalid base58 character {char!r}")
        number = number * 58 + index
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\0" * leading + body


def _uvarint(data: bytes, offset: int) -> tuple[int, int]:
    try:
        return decode_uvarint(data, offset)
    except WireError as exc:
        raise MultiformatError(str(exc)) from exc


@dataclass(frozen=True)
class DecodedMultihash:
    """The parts of a multihash."""

    code: int
    name: str
    length: int
    digest: bytes


def multihash_sum(data: bytes, code: int) -> bytes:
    """Hash ``data`` with the function ``code`` and return the multihash."""
    data = bytes(data)
    if code == IDENTITY:
        digest = data
    elif code in _HASHERS:
        digest = hashlib.new(_HASHERS[code], data).digest()
    else:
        raise MultiformatError(f"unsupported multihash function {code:#x}")
    return encode_uvarint(code) + encode_uvarint(len(digest)) + digest


def multihash_decode(data: bytes) -> DecodedMultihash:
    """Split a multihash into its parts, validating it."""
    data = bytes(data)
    if len(data) < 2:
        raise MultiformatError("multihash too short")
    code, pos = _uvarint(data, 0)
    length, pos = _uvarint(data, pos)
    digest = data[pos:]
    if len(digest) != length:
        raise MultiformatError("multihash length inconsistent")
    name = MULTIHASH_NAMES.get(code)
    if name is None:
        raise MultiformatError(f"unknown multihash code {code:#x}")
    return DecodedMultihash(code, name, length, digest)


def multihash_cast(data: bytes) -> bytes:
    """Return ``data`` unchanged if it is a valid multihash."""
    multihash_decode(data)
    return bytes(data)


@dataclass(frozen=True)
class Cid:
    """A content identifier; the default instance is undefined."""

    version: int = 0
    codec: int = 0
    multihash: bytes = b""

    def defined(self) -> bool:
        """Return whether this CID holds a hash."""
        return bool(self.multihash)

    def to_bytes(self) -> bytes:
        """Return the binary form of the CID."""
        if self.version == 0:
            return self.multihash
        return encode_uvarint(self.version) + encode_uvarint(self.codec) + self.multihash

    def __str__(self) -> str:
        if not self.defined():
            return ""
        if self.version == 0:
            return b58encode(self.multihash)
        text = base64.b32encode(self.to_bytes()).decode("ascii")
        return "b" + text.lower().rstrip("=")


def _b32decode(text: str) -> bytes:
    padded = text.upper() + "=" * (-len(text) % 8)
    return base64.b32decode(padded)


def _cid_from_bytes(raw: bytes) -> Cid:
    if len(raw) == 34 and raw[0] == SHA2_256 and raw[1] == 0x20:
        return Cid(0, DAG_PB, raw)
    version, pos = _uvarint(raw, 0)
    if version != 1:
        raise MultiformatError(f"unsupported CID version {version}")
    codec, pos = _uvarint(raw, pos)
    return Cid(1, codec, multihash_cast(raw[pos:]))


def decode_cid(text: str) -> Cid:
    """Parse the string form of a CID."""
    if len(text) < 2:
        raise MultiformatError("cid too short")
    if len(text) == 46 and text.startswith("Qm"):
        return Cid(0, DAG_PB, multihash_cast(b58decode(text)))
    prefix, body = text[0], text[1:]
    try:
        if prefix in "bB":
            raw = _b32decode(body)
        elif prefix == "z":
            raw = b58decode(body)
        elif prefix in "fF":
            raw = bytes.fromhex(body)
        else:
            raise MultiformatError(f"unsupported multibase prefix {prefix!r}")
    except (binascii.Error, ValueError) as exc:
        if isinstance(exc, MultiformatError):
            raise
        raise MultiformatError(f"invalid multibase data: {exc}") from exc
    return _cid_from_bytes(raw)