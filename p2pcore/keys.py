"""Public and private keys with their protobuf encoding, and Ed25519 signing."""

from __future__ import annotations

import hashlib
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import IntEnum

from .wire import WireError, decode_message, encode_message


class KeyCodecError(ValueError):
    """Raised when key bytes cannot be understood."""


class KeyType(IntEnum):
    RSA = 0
    ED25519 = 1
    SECP256K1 = 2
    ECDSA = 3


class PublicKey(ABC):
    """A key that verifies signatures."""

    @property
    @abstractmethod
    def key_type(self) -> int:
        """The key type number used in the encoding."""

    @abstractmethod
    def raw(self) -> bytes:
        """Return the type-specific key bytes."""

    @abstractmethod
    def verify(self, data: bytes, signature: bytes) -> bool:
        """Return whether ``signature`` is valid for ``data``."""

    def equals(self, other: object) -> bool:
        """Return whether ``other`` is the same key."""
        return (
            isinstance(other, PublicKey)
            and int(self.key_type) == int(other.key_type)
            and self.raw() == other.raw()
        )

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((int(self.key_type), self.raw()))


class PrivateKey(ABC):
    """A key that produces signatures."""

    @abstractmethod
    def sign(self, data: bytes) -> bytes:
        """Sign ``data``."""

    @abstractmethod
    def get_public(self) -> PublicKey:
        """Return the matching public key."""


_unmarshallers: dict[int, Callable[[bytes], PublicKey]] = {}


def register_key_type(key_type: int, unmarshal: Callable[[bytes], PublicKey]) -> None:
    """Register how to build a public key of ``key_type`` from its raw bytes."""
    _unmarshallers[int(key_type)] = unmarshal


def marshal_public_key(key: PublicKey) -> bytes:
    """Encode a public key as a key-type/data message."""
    return encode_message([(1, int(key.key_type)), (2, key.raw())])


def unmarshal_public_key(data: bytes) -> PublicKey:
    """Decode a public key encoded by :func:`marshal_public_key`."""
    try:
        fields = decode_message(bytes(data))
    except WireError as exc:
        raise KeyCodecError(f"malformed public key: {exc}") from exc
    key_type = raw = None
    for field, value in fields:
        if field == 1 and isinstance(value, int):
            key_type = value
        elif field == 2 and isinstance(value, bytes):
            raw = value
    if key_type is None or raw is None:
        raise KeyCodecError("incomplete public key message")
    unmarshal = _unmarshallers.get(key_type)
    if unmarshal is None:
        raise KeyCodecError(f"unsupported key type {key_type}")
    return unmarshal(raw)


_P = 2**255 - 19
_Q = 2**252 + 27742317777372353535851937790883648493
_D = -121665 * pow(121666, _P - 2, _P) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)


def _recover_x(y: int, sign: int) -> int | None:
    if y >= _P:
        return None
    x2 = (y * y - 1) * pow(_D * y * y + 1, _P - 2, _P) % _P
    if x2 == 0:
        return None if sign else 0
    x = pow(x2, (_P + 3) // 8, _P)
    if (x * x - x2) % _P:
        x = x * _SQRT_M1 % _P
    if (x * x - x2) % _P:
        return None
    if (x & 1) != sign:
        x = _P - x
    return x


_GY = 4 * pow(5, _P - 2, _P) % _P
_GX = _recover_x(_GY, 0) or 0
_G = (_GX, _GY, 1, _GX * _GY % _P)

_Point = tuple[int, int, int, int]


def _add(a: _Point, b: _Point) -> _Point:
    aa = (a[1] - a[0]) * (b[1] - b[0]) % _P
    bb = (a[1] + a[0]) * (b[1] + b[0]) % _P
    cc = 2 * a[3] * b[3] * _D % _P
    dd = 2 * a[2] * b[2] % _P
    e, f, g, h = bb - aa, dd - cc, dd + cc, bb + aa
    return (e * f % _P, g * h % _P, f * g % _P, e * h % _P)


def _mul(scalar: int, point: _Point) -> _Point:
    result: _Point = (0, 1, 1, 0)
    while scalar:
        if scalar & 1:
            result = _add(result, point)
        point = _add(point, point)
        scalar >>= 1
    return result


def _same(a: _Point, b: _Point) -> bool:
    return (a[0] * b[2] - b[0] * a[2]) % _P == 0 and (a[1] * b[2] - b[1] * a[2]) % _P == 0


def _compress(point: _Point) -> bytes:
    zinv = pow(point[2], _P - 2, _P)
    x = point[0] * zinv % _P
    y = point[1] * zinv % _P
    return (y | (x & 1) << 255).to_bytes(32, "little")


def _decompress(data: bytes) -> _Point | None:
    y = int.from_bytes(data, "little")
    sign = y >> 255
    y &= (1 << 255) - 1
    x = _recover_x(y, sign)
    if x is None:
        return None
    return (x, y, 1, x * y % _P)


def _hash_int(data: bytes) -> int:
    return int.from_bytes(hashlib.sha512(data).digest(), "little")


class Ed25519PublicKey(PublicKey):
    """An Ed25519 verification key."""

    def __init__(self, raw: bytes) -> None:
        if len(raw) != 32:
            raise KeyCodecError("expected ed25519 public key of 32 bytes")
        self._raw = bytes(raw)

    @property
    def key_type(self) -> int:
        return KeyType.ED25519

    def raw(self) -> bytes:
        return self._raw

    def verify(self, data: bytes, signature: bytes) -> bool:
        if len(signature) != 64:
            return False
        a_point = _decompress(self._raw)
        r_point = _decompress(signature[:32])
        if a_point is None or r_point is None:
            return False
        s = int.from_bytes(signature[32:], "little")
        if s >= _Q:
            return False
        h = _hash_int(signature[:32] + self._raw + bytes(data)) % _Q
        return _same(_mul(s, _G), _add(r_point, _mul(h, a_point)))


class Ed25519PrivateKey(PrivateKey):
    """An Ed25519 signing key built from a 32-byte seed."""

    def __init__(self, seed: bytes) -> None:
        if len(seed) != 32:
            raise KeyCodecError("expected ed25519 seed of 32 bytes")
        digest = hashlib.sha512(seed).digest()
        scalar = int.from_bytes(digest[:32], "little")
        scalar &= (1 << 254) - 8
        scalar |= 1 << 254
        self._scalar = scalar
        self._prefix = digest[32:]
        self._public = Ed25519PublicKey(_compress(_mul(scalar, _G)))

    @classmethod
    def generate(cls) -> Ed25519PrivateKey:
        return cls(os.urandom(32))

    def sign(self, data: bytes) -> bytes:
        data = bytes(data)
        public = self._public.raw()
        r = _hash_int(self._prefix + data) % _Q
        r_bytes = _compress(_mul(r, _G))
        h = _hash_int(r_bytes + public + data) % _Q
        s = (r + h * self._scalar) % _Q
        return r_bytes + s.to_bytes(32, "little")

    def get_public(self) -> PublicKey:
        return self._public


register_key_type(KeyType.ED25519, Ed25519PublicKey)