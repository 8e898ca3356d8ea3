"""Decoding timestamp extraction for H264 access units."""

from __future__ import annotations

from collections.abc import Sequence

from mediacommon.h264 import H264Error, NALUType, emulation_prevention_remove
from mediacommon.h264_sps import SPS
from mediacommon.bits import BitReader

_MAX_REORDERED_FRAMES = 100

# (3 * max_size(golomb) + 2 + 2) * 4 / 3: enough bytes to reach pic_order_cnt_lsb.
_MAX_BYTES_TO_GET_POC = 22

_UINT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _poc_modulus(sps: SPS) -> int:
    shift = sps.log2_max_pic_order_cnt_lsb_minus4 + 4
    return (1 << shift) & _UINT32_MASK if shift < 32 else 0


def _poc_mask(sps: SPS) -> int:
    return (_poc_modulus(sps) - 1) & _UINT32_MASK


def _picture_order_count(nalu: bytes, sps: SPS, idr: bool) -> int:
    payload = emulation_prevention_remove(bytes(nalu[1 : 1 + _MAX_BYTES_TO_GET_POC]))
    reader = BitReader(payload)

    reader.read_golomb_unsigned()  # first_mb_in_slice
    reader.read_golomb_unsigned()  # slice_type
    reader.read_golomb_unsigned()  # pic_parameter_set_id
    reader.read_bits(sps.log2_max_frame_num_minus4 + 4)  # frame_num

    if idr:
        reader.read_golomb_unsigned()  # idr_pic_id

    return reader.read_bits(sps.log2_max_pic_order_cnt_lsb_minus4 + 4)


def _picture_order_count_diff(a: int, b: int, sps: SPS) -> int:
    max_val = _poc_modulus(sps)
    d = (a - b) & _UINT32_MASK & _poc_mask(sps)
    if d > max_val // 2:
        return _to_int32(d - max_val)
    return _to_int32(d)


class DTSExtractor:
    """Computes decoding timestamps of access units from their presentation timestamps."""

    def __init__(self) -> None:
        self._sps_bytes: bytes | None = None
        self._sps: SPS | None = None
        self._prev_dts_filled = False
        self._prev_dts = 0
        self._expected_poc = 0
        self._reordered_frames = 0
        self._pause_dts = 0
        self._poc_increment = 2

    def _extract_inner(self, au: Sequence[bytes], pts: int) -> tuple[int, bool]:
        idr: bytes | None = None
        non_idr: bytes | None = None
        # nal_ref_idc != 0 means the NALU is needed to reconstruct reference pictures.
        non_zero_nal_ref_idc_found = False

        for nalu in au:
            typ = nalu[0] & 0x1F
            non_zero_nal_ref_idc_found = non_zero_nal_ref_idc_found or (nalu[0] & 0x60) > 0

            if typ == NALUType.SPS:
                raw = bytes(nalu)
                if raw != self._sps_bytes:
                    try:
                        sps = SPS.unmarshal(raw)
                    except ValueError as err:
                        raise H264Error(f"invalid SPS: {err}") from err
                    self._sps_bytes = raw
                    self._sps = sps
                    self._reordered_frames = 0
                    self._poc_increment = 2
            elif typ == NALUType.IDR:
                idr = nalu
            elif typ == NALUType.NON_IDR:
                non_idr = nalu

        sps = self._sps
        if sps is None:
            raise H264Error("SPS not received yet")

        if sps.pic_order_cnt_type == 2 or not sps.frame_mbs_only_flag:
            return pts, False

        if sps.pic_order_cnt_type == 1:
            raise H264Error("pic_order_cnt_type = 1 is not supported yet")

        if idr is not None:
            self._pause_dts = 0
            self._expected_poc = _picture_order_count(idr, sps, True)

            if not self._prev_dts_filled or self._reordered_frames == 0:
                return pts, False

            return (
                self._prev_dts
                + _trunc_div(pts - self._prev_dts, self._reordered_frames + 1),
                False,
            )

        if non_idr is not None:
            self._expected_poc = (
                (self._expected_poc + self._poc_increment) & _UINT32_MASK & _poc_mask(sps)
            )

            if self._pause_dts > 0:
                self._pause_dts -= 1
                return self._prev_dts + 90, True

            poc = _picture_order_count(non_idr, sps, False)

            if self._poc_increment == 2 and poc % 2 != 0:
                self._poc_increment = 1
                self._expected_poc //= 2

            poc_diff = _trunc_div(
                _picture_order_count_diff(poc, self._expected_poc, sps),
                self._poc_increment,
            )
            limit = -(self._reordered_frames + 1)

            # B-frames immediately following an IDR frame
            if poc_diff < limit:
                increase = limit - poc_diff
                if self._reordered_frames + increase > _MAX_REORDERED_FRAMES:
                    raise H264Error(
                        f"too many reordered frames ({self._reordered_frames + increase})"
                    )
                self._reordered_frames += increase
                self._pause_dts = increase
                return self._prev_dts + 90, True

            if poc_diff == limit:
                return pts, False

            if poc_diff > self._reordered_frames:
                increase = poc_diff - self._reordered_frames
                if self._reordered_frames + increase > _MAX_REORDERED_FRAMES:
                    raise H264Error(
                        f"too many reordered frames ({self._reordered_frames + increase})"
                    )
                self._reordered_frames += increase
                self._pause_dts = increase - 1
                return self._prev_dts + 90, False

            return (
                self._prev_dts
                + _trunc_div(
                    pts - self._prev_dts, poc_diff + self._reordered_frames + 1
                ),
                False,
            )

        if not non_zero_nal_ref_idc_found:
            return self._prev_dts, False

        raise H264Error("access unit doesn't contain an IDR or non-IDR NALU")

    def extract(self, au: Sequence[bytes], pts: int) -> int:
        """Return the DTS of an access unit with the given PTS."""
        dts, skip_checks = self._extract_inner(au, pts)

        if not skip_checks and dts > pts:
            raise H264Error("DTS is greater than PTS")

        self._prev_dts = dts
        self._prev_dts_filled = True
        return dts