import pytest

from mediacommon.bits import BitReader, BitstreamError, BitWriter

SAMPLE = bytes([0xA8, 0xC7, 0xD6, 0xAA, 0xBB, 0x10])
FIELDS = [(0x2A, 6), (0x0C, 6), (0x1F, 6), (0x5A, 8), (0xAAEC4, 20)]


def test_read_bits():
    reader = BitReader(SAMPLE)
    assert [reader.read_bits(n) for _, n in FIELDS] == [v for v, _ in FIELDS]
    assert reader.pos == 46


def test_read_bits_error():
    reader = BitReader(bytes([0xA8]))
    assert reader.read_bits(6) == 0x2A
    with pytest.raises(BitstreamError, match="not enough bits"):
        reader.read_bits(6)


def test_read_bits_from_offset():
    reader = BitReader(SAMPLE, 6)
    assert reader.read_bits(6) == 0x0C


def test_has_space():
    reader = BitReader(bytes(2), 10)
    assert reader.remaining == 6
    with pytest.raises(BitstreamError, match="not enough bits"):
        reader.has_space(7)


def test_read_golomb_unsigned():
    reader = BitReader(bytes([0x38]))
    assert reader.read_golomb_unsigned() == 6


@pytest.mark.parametrize(
    "data, message",
    [
        (bytes([0x00]), "not enough bits"),
        (bytes([0x00, 0x01]), "not enough bits"),
        (bytes([0x00, 0x00, 0x00, 0x00, 0x01]), "invalid value"),
    ],
)
def test_read_golomb_unsigned_errors(data, message):
    with pytest.raises(BitstreamError, match=message):
        BitReader(data).read_golomb_unsigned()


@pytest.mark.parametrize("data, expected", [(bytes([0x38]), -3), (bytes([0b00100100]), 2)])
def test_read_golomb_signed(data, expected):
    assert BitReader(data).read_golomb_signed() == expected


def test_read_golomb_signed_errors():
    with pytest.raises(BitstreamError, match="not enough bits"):
        BitReader(bytes([0x00])).read_golomb_signed()


def test_read_flag():
    assert BitReader(bytes([0xFF])).read_flag() is True


def test_read_flag_error():
    with pytest.raises(BitstreamError, match="not enough bits"):
        BitReader(b"").read_flag()


def test_write_bits():
    writer = BitWriter(6)
    for value, n in FIELDS:
        writer.write_bits(value, n)
    assert writer.to_bytes() == SAMPLE


def test_write_bits_overflow():
    writer = BitWriter(1)
    writer.write_bits(0x3, 6)
    with pytest.raises(BitstreamError, match="not enough bits"):
        writer.write_bits(0x3, 3)


def test_write_then_read_roundtrip():
    writer = BitWriter(4)
    writer.write_bits(5, 3)
    writer.write_bits(0x1234, 16)
    writer.write_bits(1, 1)
    reader = BitReader(writer.to_bytes())
    assert reader.read_bits(3) == 5
    assert reader.read_bits(16) == 0x1234
    assert reader.read_flag() is True