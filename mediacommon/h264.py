"""H264 NALU types, Annex-B and AVCC access unit formats."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from enum import IntEnum

MAX_ACCESS_UNIT_SIZE = 8 * 1024 * 1024
MAX_NALUS_PER_ACCESS_UNIT = 25

_START_CODE_3 = b"\x00\x00\x01"
_START_CODE_4 = b"\x00\x00\x00\x01"


class H264Error(ValueError):
    """Raised when H264 data cannot be decoded."""


class AnnexBNoNALUsError(H264Error):
    """Raised when an Annex-B unit holds no NALU."""


class AnnexBNoInitialDelimiterError(H264Error):
    """Raised when an Annex-B unit does not begin with a start code."""


class AVCCNoNALUsError(H264Error):
    """Raised when an AVCC unit holds no NALU."""


class NALUType(IntEnum):
    """NALU types (ITU-T Rec. H.264, Table 7-1, plus RTP types)."""

    NON_IDR = 1
    DATA_PARTITION_A = 2
    DATA_PARTITION_B = 3
    DATA_PARTITION_C = 4
    IDR = 5
    SEI = 6
    SPS = 7
    PPS = 8
    ACCESS_UNIT_DELIMITER = 9
    END_OF_SEQUENCE = 10
    END_OF_STREAM = 11
    FILLER_DATA = 12
    SPS_EXTENSION = 13
    PREFIX = 14
    SUBSET_SPS = 15
    RESERVED16 = 16
    RESERVED17 = 17
    RESERVED18 = 18
    SLICE_LAYER_WITHOUT_PARTITIONING = 19
    SLICE_EXTENSION = 20
    SLICE_EXTENSION_DEPTH = 21
    RESERVED22 = 22
    RESERVED23 = 23
    STAP_A = 24
    STAP_B = 25
    MTAP16 = 26
    MTAP24 = 27
    FU_A = 28
    FU_B = 29


_NALU_TYPE_LABELS = {
    NALUType.NON_IDR: "NonIDR",
    NALUType.DATA_PARTITION_A: "DataPartitionA",
    NALUType.DATA_PARTITION_B: "DataPartitionB",
    NALUType.DATA_PARTITION_C: "DataPartitionC",
    NALUType.IDR: "IDR",
    NALUType.SEI: "SEI",
    NALUType.SPS: "SPS",
    NALUType.PPS: "PPS",
    NALUType.ACCESS_UNIT_DELIMITER: "AccessUnitDelimiter",
    NALUType.END_OF_SEQUENCE: "EndOfSequence",
    NALUType.END_OF_STREAM: "EndOfStream",
    NALUType.FILLER_DATA: "FillerData",
    NALUType.SPS_EXTENSION: "SPSExtension",
    NALUType.PREFIX: "Prefix",
    NALUType.SUBSET_SPS: "SubsetSPS",
    NALUType.RESERVED16: "Reserved16",
    NALUType.RESERVED17: "Reserved17",
    NALUType.RESERVED18: "Reserved18",
    NALUType.SLICE_LAYER_WITHOUT_PARTITIONING: "SliceLayerWithoutPartitioning",
    NALUType.SLICE_EXTENSION: "SliceExtension",
    NALUType.SLICE_EXTENSION_DEPTH: "SliceExtensionDepth",
    NALUType.RESERVED22: "Reserved22",
    NALUType.RESERVED23: "Reserved23",
    NALUType.STAP_A: "STAP-A",
    NALUType.STAP_B: "STAP-B",
    NALUType.MTAP16: "MTAP-16",
    NALUType.MTAP24: "MTAP-24",
    NALUType.FU_A: "FU-A",
    NALUType.FU_B: "FU-B",
}


def nalu_type_name(value: int) -> str:
    """Return the label of a NALU type, or ``unknown (N)``."""
    label = _NALU_TYPE_LABELS.get(value)
    return label if label is not None else f"unknown ({value})"


def emulation_prevention_remove(nalu: bytes) -> bytes:
    """Remove emulation prevention bytes (0x00 0x00 0x03) from a NALU."""
    out = bytearray()
    start = 0
    i = 2
    length = len(nalu)
    while i < length:
        if nalu[i - 2] == 0 and nalu[i - 1] == 0 and nalu[i] == 3:
            out += nalu[start:i]
            start = i + 1
            i += 3
        else:
            i += 1
    out += nalu[start:]
    return bytes(out)


def _too_big(size: int) -> H264Error:
    return H264Error(
        f"access unit size ({size}) is too big, maximum is {MAX_ACCESS_UNIT_SIZE}"
    )


def _has_initial_delimiter(buf: bytes) -> bool:
    if len(buf) < 4:
        return False
    return (buf[0] == 0 and buf[1] == 0 and buf[2] == 0 and buf[3] == 1) or buf[2] == 1


def annexb_unmarshal(buf: bytes) -> list[bytes]:
    """Split an access unit in Annex-B format into NALUs."""
    data = bytes(buf)
    nalus: list[bytes] = []
    au_size = 0
    start = 0
    i = 0

    while True:
        p = data.find(_START_CODE_3, i)
        if p < 0:
            break
        if p > i and data[p - 1] == 0:
            boundary, code_len = p - 1, 4
        else:
            boundary, code_len = p, 3
        if boundary > start:
            au_size += boundary - start
            if au_size > MAX_ACCESS_UNIT_SIZE:
                raise _too_big(au_size)
            nalus.append(data[start:boundary])
        i = boundary + code_len
        start = i

    if len(data) > start:
        if au_size + len(data) - start > MAX_ACCESS_UNIT_SIZE:
            raise _too_big(au_size + len(data) - start)
        nalus.append(data[start:])

    if not nalus:
        raise AnnexBNoNALUsError("Annex-B unit doesn't contain any NALU")
    if not _has_initial_delimiter(data):
        raise AnnexBNoInitialDelimiterError("initial delimiter not found")
    return nalus


def annexb_marshal(nalus: Sequence[bytes]) -> bytes:
    """Join NALUs into the Annex-B format, each after a 4-byte start code."""
    return b"".join(_START_CODE_4 + bytes(nalu) for nalu in nalus)


def avcc_unmarshal(buf: bytes) -> list[bytes]:
    """Split an access unit in AVCC format into NALUs."""
    data = bytes(buf)
    nalus: list[bytes] = []
    au_size = 0
    pos = 0

    while True:
        if len(data) - pos < 4:
            raise H264Error("invalid length")
        (length,) = struct.unpack_from(">I", data, pos)
        pos += 4

        if length != 0:
            if au_size + length > MAX_ACCESS_UNIT_SIZE:
                raise _too_big(au_size + length)
            if len(data) - pos < length:
                raise H264Error("invalid length")
            au_size += length
            nalus.append(data[pos : pos + length])
            pos += length

        if pos == len(data):
            break

    if not nalus:
        raise AVCCNoNALUsError("AVCC unit doesn't contain any NALU")
    if len(nalus) > MAX_NALUS_PER_ACCESS_UNIT:
        raise H264Error(
            f"NALU count ({len(nalus)}) exceeds maximum allowed "
            f"({MAX_NALUS_PER_ACCESS_UNIT})"
        )
    return nalus


def avcc_marshal(nalus: Sequence[bytes]) -> bytes:
    """Join NALUs into the AVCC format, each after a 4-byte length."""
    return b"".join(struct.pack(">I", len(nalu)) + bytes(nalu) for nalu in nalus)


def is_random_access(au: Sequence[bytes]) -> bool:
    """Return whether the access unit holds an IDR NALU."""
    return any((nalu[0] & 0x1F) == NALUType.IDR for nalu in au)