"""AV1 OBU headers, LEB128 integers and low-overhead bitstreams."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

MAX_TEMPORAL_UNIT_SIZE = 3 * 1024 * 1024
MAX_OBUS_PER_TEMPORAL_UNIT = 10

_UINT32_MAX = 0xFFFFFFFF


class AV1Error(ValueError):
    """Raised when AV1 data cannot be decoded."""


class OBUType(IntEnum):
    """OBU types."""

    SEQUENCE_HEADER = 1


@dataclass(frozen=True)
class OBUHeader:
    """OBU header."""

    type: int
    has_size: bool

    @classmethod
    def unmarshal(cls, buf: bytes) -> OBUHeader:
        """Decode the header at the start of an OBU."""
        if len(buf) < 1:
            raise AV1Error("not enough bytes")
        first = buf[0]
        if first >> 7:
            raise AV1Error("forbidden bit is set")
        obu_type = first >> 3
        if (first >> 2) & 0b1:
            raise AV1Error("extension flag is not supported yet")
        return cls(type=obu_type, has_size=bool((first >> 1) & 0b1))


def leb128_decode(buf: bytes) -> tuple[int, int]:
    """Decode a LEB128 unsigned integer; return the value and the bytes consumed."""
    value = 0
    consumed = 0
    for i in range(8):
        if consumed >= len(buf):
            raise AV1Error("not enough bytes")
        byte = buf[consumed]
        consumed += 1
        value = (value | ((byte & 0b01111111) << (i * 7))) & _UINT32_MAX
        if not byte & 0b10000000:
            break
    return value, consumed


def _check_uint32(value: int) -> None:
    if not 0 <= value <= _UINT32_MAX:
        raise ValueError("value does not fit in 32 bits")


def leb128_size(value: int) -> int:
    """Return the number of bytes of ``value`` in LEB128 form."""
    _check_uint32(value)
    size = 1
    value >>= 7
    while value > 0:
        size += 1
        value >>= 7
    return size


def leb128_encode(value: int) -> bytes:
    """Encode ``value`` in LEB128 form."""
    _check_uint32(value)
    out = bytearray()
    while True:
        byte = value & 0b01111111
        value >>= 7
        if value <= 0:
            out.append(byte)
            return bytes(out)
        out.append(byte | 0b10000000)


def bitstream_unmarshal(buf: bytes) -> list[bytes]:
    """Split a low-overhead bitstream into OBUs."""
    view = memoryview(bytes(buf))
    obus = []
    pos = 0
    while True:
        rest = view[pos:]
        header = OBUHeader.unmarshal(rest)
        if not header.has_size:
            raise AV1Error("OBU size not present")
        size, n = leb128_decode(rest[1:])
        obu_len = 1 + n + size
        if len(rest) < obu_len:
            raise AV1Error("not enough bytes")
        obus.append(bytes(rest[:obu_len]))
        pos += obu_len
        if pos == len(view):
            return obus


def bitstream_marshal(obus: list[bytes]) -> bytes:
    """Join OBUs into a low-overhead bitstream, adding sizes where missing."""
    headers = [OBUHeader.unmarshal(obu) for obu in obus]
    parts = []
    for obu, header in zip(obus, headers):
        if header.has_size:
            parts.append(bytes(obu))
        else:
            parts.append(bytes([obu[0] | 0b00000010]))
            parts.append(leb128_encode(len(obu) - 1))
            parts.append(bytes(obu[1:]))
    return b"".join(parts)


def is_random_access(tu: list[bytes]) -> bool:
    """Return whether a temporal unit holds a sequence header."""
    for obu in tu:
        try:
            header = OBUHeader.unmarshal(obu)
        except AV1Error:
            continue
        if header.type == OBUType.SEQUENCE_HEADER:
            return True
    return False