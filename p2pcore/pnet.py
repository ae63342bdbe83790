"""Private-network support: pre-shared keys and private-network errors."""

from __future__ import annotations

import base64
import binascii
import os
from collections.abc import Mapping
from typing import BinaryIO

ENV_KEY = "LIBP2P_FORCE_PNET"

PSK_V1_HEADER = b"/key/swarm/psk/1.0.0/"
_ENCODING_BIN = b"/bin/"
_ENCODING_BASE16 = b"/base16/"
_ENCODING_BASE64 = b"/base64/"

PSK_LENGTH = 32

PSK = bytes


class PNetError(Exception):
    """Error raised for private-network failures."""


def new_error(message: str) -> PNetError:
    """Create a private-network error with the standard prefix."""
    return PNetError(f"privnet: {message}")


def is_pnet_error(err: BaseException) -> bool:
    """Return whether ``err`` is a private-network error."""
    return isinstance(err, PNetError)


NOT_IN_PRIVATE_NETWORK = new_error(
    "private network was not configured but is enforced by the environment"
)


def force_private_network(environ: Mapping[str, str] | None = None) -> bool:
    """Return whether the environment demands a private network."""
    env = os.environ if environ is None else environ
    return env.get(ENV_KEY) == "1"


FORCE_PRIVATE_NETWORK = force_private_network()


def _read_header(stream: BinaryIO) -> bytes:
    line = stream.readline()
    if not line.endswith(b"\n"):
        raise EOFError("unexpected end of input while reading header")
    return line.rstrip(b"\r\n")


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) < count:
        raise EOFError("unexpected end of input while reading key")
    return data


def _read_base64_chars(stream: BinaryIO, count: int) -> bytes:
    out = bytearray()
    while len(out) < count:
        char = stream.read(1)
        if not char:
            raise EOFError("unexpected end of input while reading key")
        if char not in b"\r\n":
            out += char
    return bytes(out)


def decode_v1_psk(stream: BinaryIO) -> PSK:
    """Read a multicodec-framed version 1 pre-shared key from a binary stream."""
    header = _read_header(stream)
    if header != PSK_V1_HEADER:
        raise ValueError(
            f"expected file header {PSK_V1_HEADER.decode()}, "
            f"got: {header.decode('utf-8', 'replace')}"
        )
    encoding = _read_header(stream)

    if encoding == _ENCODING_BASE16:
        text = _read_exact(stream, PSK_LENGTH * 2)
        try:
            return binascii.unhexlify(text)
        except binascii.Error as exc:
            raise ValueError(f"invalid hex key: {exc}") from exc

    if encoding == _ENCODING_BASE64:
        text = _read_base64_chars(stream, -(-PSK_LENGTH // 3) * 4)
        try:
            key = base64.b64decode(text, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64 key: {exc}") from exc
        if len(key) < PSK_LENGTH:
            raise EOFError("unexpected end of input while reading key")
        return key[:PSK_LENGTH]

    if encoding == _ENCODING_BIN:
        return _read_exact(stream, PSK_LENGTH)

    raise ValueError(f"unknown encoding: {encoding.decode('utf-8', 'replace')}")