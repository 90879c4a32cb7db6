"""Protocol Buffers wire-format primitives."""

import struct
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

from ..errors import ParseError, TruncatedError
from ..models.base import WireType

_UINT64 = 1 << 64


def read_varint(data: bytes, pos: int) -> Tuple[int, int]:
    """Read a base-128 varint starting at ``pos``.

    Returns:
        (value, position after the varint)
    """
    result = 0
    shift = 0
    start = pos
    while True:
        if pos >= len(data):
            raise TruncatedError("Varint runs past end of input", offset=start)
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 70:
            raise ParseError("Varint longer than 10 bytes", offset=start)


def encode_varint(value: int) -> bytes:
    """Encode an integer as a varint; negative values use 64-bit two's complement."""
    if value < 0:
        value += _UINT64
    out = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            out.append(bits | 0x80)
        else:
            out.append(bits)
            return bytes(out)


def to_signed64(value: int) -> int:
    return value - _UINT64 if value >= (1 << 63) else value


def encode_key(tag: int, wire_type: int) -> bytes:
    return encode_varint((tag << 3) | wire_type)


def encode_field(tag: int, wire_type: int, payload: bytes) -> bytes:
    """Encode one field from its raw payload (length prefix added for LEN)."""
    if wire_type == WireType.LEN:
        return encode_key(tag, wire_type) + encode_varint(len(payload)) + payload
    return encode_key(tag, wire_type) + payload


def pack_double(value: float) -> bytes:
    return struct.pack("<d", value)


def pack_float(value: float) -> bytes:
    return struct.pack("<f", value)


def unpack_double(raw: bytes) -> float:
    return struct.unpack("<d", raw)[0]


def unpack_float(raw: bytes) -> float:
    return struct.unpack("<f", raw)[0]


@dataclass
class RawField:
    """One field as read from the wire.

    ``value`` is the integer for varints and the payload bytes otherwise.
    ``raw`` is the payload exactly as it appeared (varint bytes included).
    """
    tag: int
    wire_type: int
    value: Union[int, bytes]
    raw: bytes


_FIXED_SIZES = {WireType.I64: 8, WireType.I32: 4}


def iter_fields(data: bytes) -> Iterator[RawField]:
    """Iterate over the top-level fields of an encoded message."""
    pos = 0
    end = len(data)
    while pos < end:
        key_start = pos
        key, pos = read_varint(data, pos)
        tag = key >> 3
        wire_type = key & 0x07
        if tag == 0:
            raise ParseError("Invalid field number 0", offset=key_start)

        if wire_type == WireType.VARINT:
            start = pos
            value, pos = read_varint(data, pos)
            yield RawField(tag, wire_type, value, bytes(data[start:pos]))
        elif wire_type in _FIXED_SIZES:
            size = _FIXED_SIZES[wire_type]
            if pos + size > end:
                raise TruncatedError(f"Field {tag} needs {size} bytes", offset=pos)
            raw = bytes(data[pos:pos + size])
            pos += size
            yield RawField(tag, wire_type, raw, raw)
        elif wire_type == WireType.LEN:
            length, pos = read_varint(data, pos)
            if pos + length > end:
                raise TruncatedError(
                    f"Field {tag} declares {length} bytes but only {end - pos} remain",
                    offset=pos,
                )
            raw = bytes(data[pos:pos + length])
            pos += length
            yield RawField(tag, wire_type, raw, raw)
        else:
            raise ParseError(f"Unsupported wire type {wire_type} for field {tag}", offset=key_start)
