"""G.711 A-law and MU-law conversion to and from 16-bit big-endian LPCM."""

from __future__ import annotations

import struct


def _alaw_decode_table() -> list[int]:
    table = []
    for code in range(256):
        v = code ^ 0x55
        mantissa = v & 0x0F
        exponent = (v & 0x70) >> 4
        if exponent:
            mantissa = (mantissa * 2 + 1 + 32) << (exponent + 2)
        else:
            mantissa = (mantissa * 2 + 1) << 3
        table.append(mantissa if v & 0x80 else (-mantissa) & 0xFFFF)
    return table


def _mulaw_decode_table() -> list[int]:
    table = []
    for code in range(256):
        v = ~code
        tmp = (((v & 0x0F) << 3) + 0x84) << ((v & 0x70) >> 4)
        if v & 0x80:
            table.append((0x84 - tmp) & 0xFFFF)
        else:
            table.append((tmp - 0x84) & 0xFFFF)
    return table


def _invert_table(decode: list[int], mask: int) -> bytes:
    res = bytearray(16384)
    res[8192] = mask
    negative_mask = mask ^ 0x80
    j = 1

    for i in range(127):
        v1 = decode[i ^ mask]
        v2 = decode[(i + 1) ^ mask]
        v = ((v1 + v2 + 4) & 0xFFFF) >> 3
        while j < v:
            res[8192 - j] = i ^ negative_mask
            res[8192 + j] = i ^ mask
            j += 1

    while j < 8192:
        res[8192 - j] = 127 ^ negative_mask
        res[8192 + j] = 127 ^ mask
        j += 1

    res[0] = res[1]
    return bytes(res)


_ALAW_DECODE = _alaw_decode_table()
_MULAW_DECODE = _mulaw_decode_table()
_ALAW_ENCODE = _invert_table(_ALAW_DECODE, 0xD5)
_MULAW_ENCODE = _invert_table(_MULAW_DECODE, 0xFF)
_ALAW_DECODE_BYTES = [v.to_bytes(2, "big") for v in _ALAW_DECODE]
_MULAW_DECODE_BYTES = [v.to_bytes(2, "big") for v in _MULAW_DECODE]


def _decode(data: bytes, table: list[bytes]) -> bytes:
    return b"".join(table[code] for code in data)


def _encode(samples: bytes, table: bytes) -> bytes:
    if len(samples) % 2:
        raise ValueError("wrong sample size")
    values = struct.unpack(f">{len(samples) // 2}H", samples)
    return bytes(table[((v + 32768) & 0xFFFF) >> 2] for v in values)


def alaw_decode(data: bytes) -> bytes:
    """Decode A-law samples into 16-bit big-endian LPCM samples."""
    return _decode(data, _ALAW_DECODE_BYTES)


def alaw_encode(samples: bytes) -> bytes:
    """Encode 16-bit big-endian LPCM samples with A-law."""
    return _encode(samples, _ALAW_ENCODE)


def mulaw_decode(data: bytes) -> bytes:
    """Decode MU-law samples into 16-bit big-endian LPCM samples."""
    return _decode(data, _MULAW_DECODE_BYTES)


def mulaw_encode(samples: bytes) -> bytes:
    """Encode 16-bit big-endian LPCM samples with MU-law."""
    return _encode(samples, _MULAW_ENCODE)