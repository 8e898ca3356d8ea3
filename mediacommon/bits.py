"""Bit-level reading and writing over byte buffers."""

from __future__ import annotations

_UINT32_MASK = 0xFFFFFFFF


class BitstreamError(ValueError):
    """Raised when a bit buffer is too short or holds an invalid value."""


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _half_toward_zero(value: int) -> int:
    return -((-value) // 2) if value < 0 else value // 2


class BitReader:
    """Reads big-endian bit fields from a byte buffer, starting at bit ``pos``."""

    def __init__(self, data: bytes | bytearray | memoryview, pos: int = 0) -> None:
        self.data = data
        self.pos = pos

    @property
    def remaining(self) -> int:
        """Number of bits left to read."""
        return len(self.data) * 8 - self.pos

    def has_space(self, n: int) -> None:
        """Raise BitstreamError unless at least ``n`` bits are left."""
        if n > self.remaining:
            raise BitstreamError("not enough bits")

    def read_bits(self, n: int) -> int:
        """Read ``n`` bits as an unsigned integer."""
        if n < 0:
            raise ValueError("bit count must not be negative")
        self.has_space(n)
        if n == 0:
            return 0
        start = self.pos >> 3
        end = (self.pos + n + 7) >> 3
        chunk = int.from_bytes(self.data[start:end], "big")
        shift = (end - start) * 8 - (self.pos & 0x07) - n
        self.pos += n
        return (chunk >> shift) & ((1 << n) - 1)

    def _read_bit(self) -> int:
        bit = (self.data[self.pos >> 3] >> (7 - (self.pos & 0x07))) & 0x01
        self.pos += 1
        return bit

    def read_golomb_unsigned(self) -> int:
        """Read an unsigned Exp-Golomb coded value."""
        leading_zeros = 0
        while True:
            if self.remaining == 0:
                raise BitstreamError("not enough bits")
            if self._read_bit():
                break
            leading_zeros += 1
            if leading_zeros > 32:
                raise BitstreamError("invalid value")

        if self.remaining < leading_zeros:
            raise BitstreamError("not enough bits")

        code = self.read_bits(leading_zeros)
        return ((1 << leading_zeros) - 1 + code) & _UINT32_MASK

    def read_golomb_signed(self) -> int:
        """Read a signed Exp-Golomb coded value."""
        value = _to_int32(self.read_golomb_unsigned())
        if value & 0x01:
            return _half_toward_zero(_to_int32(value + 1))
        return _half_toward_zero(_to_int32(-value))

    def read_flag(self) -> bool:
        """Read a single bit as a boolean."""
        self.has_space(1)
        return self._read_bit() == 1


class BitWriter:
    """Writes big-endian bit fields into a zero-filled buffer of ``size`` bytes."""

    def __init__(self, size: int) -> None:
        self.buffer = bytearray(size)
        self.pos = 0

    def write_bits(self, value: int, n: int) -> None:
        """Write the low ``n`` bits of ``value``."""
        if n < 0:
            raise ValueError("bit count must not be negative")
        if n > len(self.buffer) * 8 - self.pos:
            raise BitstreamError("not enough bits")
        value &= (1 << n) - 1
        for offset in range(n):
            if (value >> (n - 1 - offset)) & 1:
                self.buffer[self.pos >> 3] |= 0x80 >> (self.pos & 0x07)
            self.pos += 1

    def to_bytes(self) -> bytes:
        """Return the written buffer."""
        return bytes(self.buffer)