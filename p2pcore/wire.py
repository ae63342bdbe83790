"""Minimal protocol-buffer wire encoding: unsigned varints and flat messages."""

from __future__ import annotations

from collections.abc import Iterable

VARINT = 0
FIXED64 = 1
LENGTH_DELIMITED = 2
FIXED32 = 5

_MAX_UVARINT = (1 << 64) - 1
_MAX_FIELD_NUMBER = (1 << 29) - 1

FieldValue = int | bytes


class WireError(ValueError):
    """Raised when data is not valid wire encoding."""


def encode_uvarint(value: int) -> bytes:
    """Encode a non-negative integer below 2**64 as an unsigned varint."""
    if not 0 <= value <= _MAX_UVARINT:
        raise WireError(f"value {value} does not fit in an unsigned 64-bit varint")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_uvarint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode an unsigned varint at ``offset``; return the value and the next offset."""
    value = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(data):
            raise WireError("truncated varint")
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            break
        shift += 7
        if shift > 63:
            raise WireError("varint overflows 64 bits")
    if value > _MAX_UVARINT:
        raise WireError("varint overflows 64 bits")
    return value, pos


def _check_field_number(field: int) -> None:
    if not 1 <= field <= _MAX_FIELD_NUMBER:
        raise WireError(f"invalid field number {field}")


def encode_message(fields: Iterable[tuple[int, int | bytes | bytearray | memoryview | str]]) -> bytes:
    """Encode ``(field_number, value)`` pairs.

    Integers are written as varints; bytes and strings (UTF-8) as
    length-delimited fields.
    """
    out = bytearray()
    for field, value in fields:
        _check_field_number(field)
        if isinstance(value, int):
            out += encode_uvarint(field << 3 | VARINT)
            out += encode_uvarint(value)
            continue
        if isinstance(value, str):
            raw = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
        else:
            raise TypeError(f"cannot encode field {field} of type {type(value).__name__}")
        out += encode_uvarint(field << 3 | LENGTH_DELIMITED)
        out += encode_uvarint(len(raw))
        out += raw
    return bytes(out)


def _take(data: bytes, pos: int, length: int) -> tuple[bytes, int]:
    end = pos + length
    if end > len(data):
        raise WireError("field extends past end of message")
    return bytes(data[pos:end]), end


def decode_message(data: bytes) -> list[tuple[int, FieldValue]]:
    """Decode a message into ``(field_number, value)`` pairs in wire order.

    Varint and fixed-width fields become integers, length-delimited fields bytes.
    """
    fields: list[tuple[int, FieldValue]] = []
    pos = 0
    while pos < len(data):
        key, pos = decode_uvarint(data, pos)
        field, wire_type = key >> 3, key & 0x7
        _check_field_number(field)
        value: FieldValue
        if wire_type == VARINT:
            value, pos = decode_uvarint(data, pos)
        elif wire_type == LENGTH_DELIMITED:
            length, pos = decode_uvarint(data, pos)
            value, pos = _take(data, pos, length)
        elif wire_type == FIXED64:
            raw, pos = _take(data, pos, 8)
            value = int.from_bytes(raw, "little")
        elif wire_type == FIXED32:
            raw, pos = _take(data, pos, 4)
            value = int.from_bytes(raw, "little")
        else:
            raise WireError(f"unsupported wire type {wire_type}")
        fields.append((field, value))
    return fields