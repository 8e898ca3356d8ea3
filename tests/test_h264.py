import pytest

from mediacommon.h264 import (
    MAX_ACCESS_UNIT_SIZE,
    AnnexBNoInitialDelimiterError,
    AnnexBNoNALUsError,
    AVCCNoNALUsError,
    H264Error,
    NALUType,
    annexb_marshal,
    annexb_unmarshal,
    avcc_marshal,
    avcc_unmarshal,
    emulation_prevention_remove,
    is_random_access,
    nalu_type_name,
)


def test_nalu_type_names():
    assert not nalu_type_name(10).startswith("unknown")
    assert nalu_type_name(50).startswith("unknown")
    assert nalu_type_name(50) == "unknown (50)"
    assert nalu_type_name(NALUType.IDR) == "IDR"
    assert nalu_type_name(28) == "FU-A"


EMULATION_CASES = [
    (
        "base",
        bytes([0, 0, 0, 0, 0, 1, 0, 0, 2, 0, 0, 3]),
        bytes([0, 0, 3, 0, 0, 0, 3, 1, 0, 0, 3, 2, 0, 0, 3, 3]),
    ),
    (
        "double emulation byte",
        bytes([0, 0, 0, 0, 0]),
        bytes([0, 0, 3, 0, 0, 3, 0]),
    ),
    (
        "terminal emulation byte",
        bytes([0, 0]),
        bytes([0, 0, 3]),
    ),
]


@pytest.mark.parametrize("name,unproc,proc", EMULATION_CASES)
def test_emulation_prevention_remove(name, unproc, proc):
    assert emulation_prevention_remove(proc) == unproc


ANNEXB_CASES = [
    (
        "2 zeros",
        bytes([0, 0, 1, 0xAA, 0xBB, 0, 0, 1, 0xCC, 0xDD, 0, 0, 1, 0xEE, 0xFF]),
        bytes(
            [0, 0, 0, 1, 0xAA, 0xBB, 0, 0, 0, 1, 0xCC, 0xDD, 0, 0, 0, 1, 0xEE, 0xFF]
        ),
        [bytes([0xAA, 0xBB]), bytes([0xCC, 0xDD]), bytes([0xEE, 0xFF])],
    ),
    (
        "3 zeros",
        bytes(
            [0, 0, 0, 1, 0xAA, 0xBB, 0, 0, 0, 1, 0xCC, 0xDD, 0, 0, 0, 1, 0xEE, 0xFF]
        ),
        bytes(
            [0, 0, 0, 1, 0xAA, 0xBB, 0, 0, 0, 1, 0xCC, 0xDD, 0, 0, 0, 1, 0xEE, 0xFF]
        ),
        [bytes([0xAA, 0xBB]), bytes([0xCC, 0xDD]), bytes([0xEE, 0xFF])],
    ),
    (
        "2 or 3 zeros",
        bytes(
            [0, 0, 0, 1, 9, 240]
            + [0, 0, 0, 1, 39, 66, 224, 21, 169, 24, 60, 23, 252, 184, 3, 80, 96,
               16, 107, 108, 43, 94, 247, 192, 64]
            + [0, 0, 0, 1, 40, 222, 9, 200]
            + [0, 0, 1, 6, 0, 7, 131, 236, 119]
            + [0, 0, 0, 0, 1, 3, 0, 64, 128]
            + [0, 0, 1, 6, 5, 17, 3, 135, 244, 78, 205, 10, 75, 220, 161, 148, 58,
               195, 212, 155, 23, 31, 0, 128]
        ),
        bytes(
            [0, 0, 0, 1, 9, 240]
            + [0, 0, 0, 1, 39, 66, 224, 21, 169, 24, 60, 23, 252, 184, 3, 80, 96,
               16, 107, 108, 43, 94, 247, 192, 64]
            + [0, 0, 0, 1, 40, 222, 9, 200]
            + [0, 0, 0, 1, 6, 0, 7, 131, 236, 119, 0]
            + [0, 0, 0, 1, 3, 0, 64, 128]
            + [0, 0, 0, 1, 6, 5, 17, 3, 135, 244, 78, 205, 10, 75, 220, 161, 148,
               58, 195, 212, 155, 23, 31, 0, 128]
        ),
        [
            bytes([9, 240]),
            bytes([39, 66, 224, 21, 169, 24, 60, 23, 252, 184, 3, 80, 96, 16, 107,
                   108, 43, 94, 247, 192, 64]),
            bytes([40, 222, 9, 200]),
            bytes([6, 0, 7, 131, 236, 119, 0]),
            bytes([3, 0, 64, 128]),
            bytes([6, 5, 17, 3, 135, 244, 78, 205, 10, 75, 220, 161, 148, 58, 195,
                   212, 155, 23, 31, 0, 128]),
        ],
    ),
    (
        "AUs end with zeros",
        bytes(
            [0, 0, 0, 1, 0xAA, 0xBB, 0]
            + [0, 0, 0, 1, 0xCC, 0xDD, 0, 0, 0]
            + [0, 0, 0, 1, 0xEE, 0xFF, 0, 0]
            + [0, 0, 1, 0x1A, 0x1B, 0x1C]
        ),
        bytes(
            [0, 0, 0, 1, 0xAA, 0xBB, 0]
            + [0, 0, 0, 1, 0xCC, 0xDD, 0, 0, 0]
            + [0, 0, 0, 1, 0xEE, 0xFF, 0]
            + [0, 0, 0, 1, 0x1A, 0x1B, 0x1C]
        ),
        [
            bytes([0xAA, 0xBB, 0]),
            bytes([0xCC, 0xDD, 0, 0, 0]),
            bytes([0xEE, 0xFF, 0]),
            bytes([0x1A, 0x1B, 0x1C]),
        ],
    ),
]


@pytest.mark.parametrize("name,encin,encout,dec", ANNEXB_CASES)
def test_annexb_unmarshal(name, encin, encout, dec):
    assert annexb_unmarshal(encin) == dec


@pytest.mark.parametrize("name,encin,encout,dec", ANNEXB_CASES)
def test_annexb_marshal(name, encin, encout, dec):
    assert annexb_marshal(dec) == encout


def test_annexb_unmarshal_empty():
    with pytest.raises(AnnexBNoNALUsError):
        annexb_unmarshal(bytes([0, 0, 0, 1, 0, 0, 0, 1]))
    assert annexb_unmarshal(bytes([0, 0, 0, 1, 0, 0, 0, 1, 1])) == [bytes([1])]


def test_annexb_no_initial_delimiter():
    with pytest.raises(AnnexBNoInitialDelimiterError):
        annexb_unmarshal(bytes([0xAA, 0xBB, 0, 0, 1, 0xCC]))


def test_annexb_too_big():
    buf = bytes([0, 0, 0, 1]) + b"\x01" * (MAX_ACCESS_UNIT_SIZE + 1)
    with pytest.raises(H264Error, match="too big"):
        annexb_unmarshal(buf)


AVCC_CASES = [
    ("single", bytes([0, 0, 0, 3, 0xAA, 0xBB, 0xCC]), [bytes([0xAA, 0xBB, 0xCC])]),
    (
        "multiple",
        bytes([0, 0, 0, 2, 0xAA, 0xBB, 0, 0, 0, 2, 0xCC, 0xDD, 0, 0, 0, 2, 0xEE, 0xFF]),
        [bytes([0xAA, 0xBB]), bytes([0xCC, 0xDD]), bytes([0xEE, 0xFF])],
    ),
]


@pytest.mark.parametrize("name,enc,dec", AVCC_CASES)
def test_avcc_unmarshal(name, enc, dec):
    assert avcc_unmarshal(enc) == dec


@pytest.mark.parametrize("name,enc,dec", AVCC_CASES)
def test_avcc_marshal(name, enc, dec):
    assert avcc_marshal(dec) == enc


def test_avcc_unmarshal_empty():
    with pytest.raises(AVCCNoNALUsError):
        avcc_unmarshal(bytes([0, 0, 0, 0]))
    assert avcc_unmarshal(bytes([0, 0, 0, 0, 0, 0, 0, 3, 1, 2, 3])) == [bytes([1, 2, 3])]


def test_avcc_invalid_length():
    with pytest.raises(H264Error, match="invalid length"):
        avcc_unmarshal(bytes([0, 0, 0, 5, 1, 2]))
    with pytest.raises(H264Error, match="invalid length"):
        avcc_unmarshal(bytes([0, 0, 1]))


def test_avcc_too_big():
    size = MAX_ACCESS_UNIT_SIZE + 1
    with pytest.raises(H264Error, match="too big"):
        avcc_unmarshal(size.to_bytes(4, "big"))


def test_avcc_too_many_nalus():
    buf = bytes([0, 0, 0, 1, 0x41]) * 26
    with pytest.raises(H264Error, match="exceeds maximum"):
        avcc_unmarshal(buf)


def test_avcc_round_trip():
    nalus = [bytes([0x67, 1, 2]), bytes([0x65, 3])]
    assert avcc_unmarshal(avcc_marshal(nalus)) == nalus


def test_is_random_access():
    assert is_random_access([bytes([0x05]), bytes([0x07])]) is True
    assert is_random_access([bytes([0x01])]) is False