"""H264 sequence parameter set decoding."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from mediacommon.bits import BitReader
from mediacommon.h264 import H264Error, NALUType, emulation_prevention_remove

_MAX_REF_FRAMES = 255
_UINT32_MASK = 0xFFFFFFFF

_HIGH_PROFILES = frozenset({100, 110, 122, 244, 44, 83, 86, 118, 128, 138, 139, 134, 135})


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _trunc_mod(value: int, modulus: int) -> int:
    """Remainder with the sign of the dividend."""
    rem = abs(value) % modulus
    return -rem if value < 0 else rem


def _read_scaling_list(reader: BitReader, size: int) -> tuple[list[int], bool]:
    last_scale = 8
    next_scale = 8
    scaling_list: list[int] = []
    use_default = False

    for j in range(size):
        if next_scale != 0:
            delta_scale = reader.read_golomb_signed()
            next_scale = _trunc_mod(_to_int32(last_scale + delta_scale + 256), 256)
            use_default = j == 0 and next_scale == 0

        value = last_scale if next_scale == 0 else next_scale
        scaling_list.append(value)
        last_scale = value

    return scaling_list, use_default


@dataclass
class SPSHRD:
    """Hypothetical reference decoder parameters."""

    cpb_cnt_minus1: int = 0
    bit_rate_scale: int = 0
    cpb_size_scale: int = 0
    bit_rate_value_minus1: list[int] = field(default_factory=list)
    cpb_size_value_minus1: list[int] = field(default_factory=list)
    cbr_flag: list[bool] = field(default_factory=list)
    initial_cpb_removal_delay_length_minus1: int = 0
    cpb_removal_delay_length_minus1: int = 0
    dpb_output_delay_length_minus1: int = 0
    time_offset_length: int = 0

    @classmethod
    def _read(cls, reader: BitReader) -> SPSHRD:
        h = cls()
        h.cpb_cnt_minus1 = reader.read_golomb_unsigned()

        reader.has_space(8)
        if h.cpb_cnt_minus1 > 31:
            raise H264Error("invalid cpb_cnt_minus1")

        h.bit_rate_scale = reader.read_bits(4)
        h.cpb_size_scale = reader.read_bits(4)

        for _ in range(h.cpb_cnt_minus1 + 1):
            h.bit_rate_value_minus1.append(reader.read_golomb_unsigned())
            h.cpb_size_value_minus1.append(reader.read_golomb_unsigned())
            h.cbr_flag.append(reader.read_flag())

        reader.has_space(5 + 5 + 5 + 5)
        h.initial_cpb_removal_delay_length_minus1 = reader.read_bits(5)
        h.cpb_removal_delay_length_minus1 = reader.read_bits(5)
        h.dpb_output_delay_length_minus1 = reader.read_bits(5)
        h.time_offset_length = reader.read_bits(5)
        return h


@dataclass
class SPSTimingInfo:
    """Timing information."""

    num_units_in_tick: int = 0
    time_scale: int = 0
    fixed_frame_rate_flag: bool = False

    @classmethod
    def _read(cls, reader: BitReader) -> SPSTimingInfo:
        reader.has_space(32 + 32 + 1)
        return cls(
            num_units_in_tick=reader.read_bits(32),
            time_scale=reader.read_bits(32),
            fixed_frame_rate_flag=reader.read_flag(),
        )


@dataclass
class SPSBitstreamRestriction:
    """Bitstream restriction information."""

    motion_vectors_over_pic_boundaries_flag: bool = False
    max_bytes_per_pic_denom: int = 0
    max_bits_per_mb_denom: int = 0
    log2_max_mv_length_horizontal: int = 0
    log2_max_mv_length_vertical: int = 0
    max_num_reorder_frames: int = 0
    max_dec_frame_buffering: int = 0

    @classmethod
    def _read(cls, reader: BitReader) -> SPSBitstreamRestriction:
        r = cls()
        r.motion_vectors_over_pic_boundaries_flag = reader.read_flag()
        r.max_bytes_per_pic_denom = reader.read_golomb_unsigned()
        r.max_bits_per_mb_denom = reader.read_golomb_unsigned()
        r.log2_max_mv_length_horizontal = reader.read_golomb_unsigned()
        r.log2_max_mv_length_vertical = reader.read_golomb_unsigned()
        r.max_num_reorder_frames = reader.read_golomb_unsigned()
        r.max_dec_frame_buffering = reader.read_golomb_unsigned()
        return r


@dataclass
class SPSVUI:
    """Video usability information."""

    aspect_ratio_info_present_flag: bool = False
    aspect_ratio_idc: int = 0
    sar_width: int = 0
    sar_height: int = 0
    overscan_info_present_flag: bool = False
    overscan_appropriate_flag: bool = False
    video_signal_type_present_flag: bool = False
    video_format: int = 0
    video_full_range_flag: bool = False
    colour_description_present_flag: bool = False
    colour_primaries: int = 0
    transfer_characteristics: int = 0
    matrix_coefficients: int = 0
    chroma_loc_info_present_flag: bool = False
    chroma_sample_loc_type_top_field: int = 0
    chroma_sample_loc_type_bottom_field: int = 0
    timing_info: SPSTimingInfo | None = None
    nal_hrd: SPSHRD | None = None
    vcl_hrd: SPSHRD | None = None
    low_delay_hrd_flag: bool = False
    pic_struct_present_flag: bool = False
    bitstream_restriction: SPSBitstreamRestriction | None = None

    @classmethod
    def _read(cls, reader: BitReader) -> SPSVUI:
        v = cls()
        v.aspect_ratio_info_present_flag = reader.read_flag()
        if v.aspect_ratio_info_present_flag:
            v.aspect_ratio_idc = reader.read_bits(8)
            if v.aspect_ratio_idc == 255:  # Extended_SAR
                reader.has_space(32)
                v.sar_width = reader.read_bits(16)
                v.sar_height = reader.read_bits(16)

        v.overscan_info_present_flag = reader.read_flag()
        if v.overscan_info_present_flag:
            v.overscan_appropriate_flag = reader.read_flag()

        v.video_signal_type_present_flag = reader.read_flag()
        if v.video_signal_type_present_flag:
            reader.has_space(5)
            v.video_format = reader.read_bits(3)
            v.video_full_range_flag = reader.read_flag()
            v.colour_description_present_flag = reader.read_flag()
            if v.colour_description_present_flag:
                reader.has_space(24)
                v.colour_primaries = reader.read_bits(8)
                v.transfer_characteristics = reader.read_bits(8)
                v.matrix_coefficients = reader.read_bits(8)

        v.chroma_loc_info_present_flag = reader.read_flag()
        if v.chroma_loc_info_present_flag:
            v.chroma_sample_loc_type_top_field = reader.read_golomb_unsigned()
            v.chroma_sample_loc_type_bottom_field = reader.read_golomb_unsigned()

        if reader.read_flag():
            v.timing_info = SPSTimingInfo._read(reader)

        nal_hrd_present = reader.read_flag()
        if nal_hrd_present:
            v.nal_hrd = SPSHRD._read(reader)

        vcl_hrd_present = reader.read_flag()
        if vcl_hrd_present:
            v.vcl_hrd = SPSHRD._read(reader)

        if nal_hrd_present or vcl_hrd_present:
            v.low_delay_hrd_flag = reader.read_flag()

        v.pic_struct_present_flag = reader.read_flag()

        if reader.read_flag():
            v.bitstream_restriction = SPSBitstreamRestriction._read(reader)

        return v


@dataclass
class SPSFrameCropping:
    """Frame cropping offsets."""

    left_offset: int = 0
    right_offset: int = 0
    top_offset: int = 0
    bottom_offset: int = 0

    @classmethod
    def _read(cls, reader: BitReader) -> SPSFrameCropping:
        return cls(
            left_offset=reader.read_golomb_unsigned(),
            right_offset=reader.read_golomb_unsigned(),
            top_offset=reader.read_golomb_unsigned(),
            bottom_offset=reader.read_golomb_unsigned(),
        )


@dataclass
class SPS:
    """H264 sequence parameter set (ITU-T Rec. H.264, 7.3.2.1.1)."""

    profile_idc: int = 0
    constraint_set0_flag: bool = False
    constraint_set1_flag: bool = False
    constraint_set2_flag: bool = False
    constraint_set3_flag: bool = False
    constraint_set4_flag: bool = False
    constraint_set5_flag: bool = False
    level_idc: int = 0
    id: int = 0

    chroma_format_idc: int = 0
    separate_colour_plane_flag: bool = False
    bit_depth_luma_minus8: int = 0
    bit_depth_chroma_minus8: int = 0
    qpprime_y_zero_transform_bypass_flag: bool = False

    scaling_list_4x4: list[list[int]] = field(default_factory=list)
    use_default_scaling_matrix_4x4_flag: list[bool] = field(default_factory=list)
    scaling_list_8x8: list[list[int]] = field(default_factory=list)
    use_default_scaling_matrix_8x8_flag: list[bool] = field(default_factory=list)

    log2_max_frame_num_minus4: int = 0
    pic_order_cnt_type: int = 0
    log2_max_pic_order_cnt_lsb_minus4: int = 0
    delta_pic_order_always_zero_flag: bool = False
    offset_for_non_ref_pic: int = 0
    offset_for_top_to_bottom_field: int = 0
    offset_for_ref_frames: list[int] = field(default_factory=list)

    max_num_ref_frames: int = 0
    gaps_in_frame_num_value_allowed_flag: bool = False
    pic_width_in_mbs_minus1: int = 0
    pic_height_in_map_units_minus1: int = 0
    frame_mbs_only_flag: bool = False
    mb_adaptive_frame_field_flag: bool = False
    direct_8x8_inference_flag: bool = False
    frame_cropping: SPSFrameCropping | None = None
    vui: SPSVUI | None = None

    @classmethod
    def unmarshal(cls, buf: bytes) -> SPS:
        """Decode a SPS NALU, header byte included."""
        if len(buf) < 1:
            raise H264Error("not enough bits")
        if (buf[0] & 0x1F) != NALUType.SPS:
            raise H264Error("not a SPS")

        data = emulation_prevention_remove(bytes(buf[1:]))
        if len(data) < 3:
            raise H264Error("not enough bits")

        s = cls()
        s.profile_idc = data[0]
        flags = data[1]
        s.constraint_set0_flag = bool((flags >> 7) & 1)
        s.constraint_set1_flag = bool((flags >> 6) & 1)
        s.constraint_set2_flag = bool((flags >> 5) & 1)
        s.constraint_set3_flag = bool((flags >> 4) & 1)
        s.constraint_set4_flag = bool((flags >> 3) & 1)
        s.constraint_set5_flag = bool((flags >> 2) & 1)
        s.level_idc = data[2]

        reader = BitReader(data[3:])
        s.id = reader.read_golomb_unsigned()

        if s.profile_idc in _HIGH_PROFILES:
            s._read_high_profile_fields(reader)
        else:
            s.chroma_format_idc = 1
            s.separate_colour_plane_flag = False
            s.bit_depth_luma_minus8 = 0
            s.bit_depth_chroma_minus8 = 0
            s.qpprime_y_zero_transform_bypass_flag = False

        s.log2_max_frame_num_minus4 = reader.read_golomb_unsigned()
        s.pic_order_cnt_type = reader.read_golomb_unsigned()

        if s.pic_order_cnt_type == 0:
            s.log2_max_pic_order_cnt_lsb_minus4 = reader.read_golomb_unsigned()
        elif s.pic_order_cnt_type == 1:
            s.delta_pic_order_always_zero_flag = reader.read_flag()
            s.offset_for_non_ref_pic = reader.read_golomb_signed()
            s.offset_for_top_to_bottom_field = reader.read_golomb_signed()
            count = reader.read_golomb_unsigned()
            if count > _MAX_REF_FRAMES:
                raise H264Error(
                    f"num_ref_frames_in_pic_order_cnt_cycle exceeds {_MAX_REF_FRAMES}"
                )
            s.offset_for_ref_frames = [reader.read_golomb_signed() for _ in range(count)]
        elif s.pic_order_cnt_type != 2:
            raise H264Error(f"invalid pic_order_cnt_type: {s.pic_order_cnt_type}")

        s.max_num_ref_frames = reader.read_golomb_unsigned()
        s.gaps_in_frame_num_value_allowed_flag = reader.read_flag()
        s.pic_width_in_mbs_minus1 = reader.read_golomb_unsigned()
        s.pic_height_in_map_units_minus1 = reader.read_golomb_unsigned()
        s.frame_mbs_only_flag = reader.read_flag()

        if not s.frame_mbs_only_flag:
            s.mb_adaptive_frame_field_flag = reader.read_flag()

        s.direct_8x8_inference_flag = reader.read_flag()

        if reader.read_flag():
            s.frame_cropping = SPSFrameCropping._read(reader)

        if reader.read_flag():
            s.vui = SPSVUI._read(reader)

        return s

    def _read_high_profile_fields(self, reader: BitReader) -> None:
        self.chroma_format_idc = reader.read_golomb_unsigned()
        if self.chroma_format_idc == 3:
            self.separate_colour_plane_flag = reader.read_flag()

        self.bit_depth_luma_minus8 = reader.read_golomb_unsigned()
        self.bit_depth_chroma_minus8 = reader.read_golomb_unsigned()
        self.qpprime_y_zero_transform_bypass_flag = reader.read_flag()

        if not reader.read_flag():  # seq_scaling_matrix_present_flag
            return

        count = 8 if self.chroma_format_idc != 3 else 12
        for i in range(count):
            if not reader.read_flag():  # seq_scaling_list_present_flag
                continue
            if i < 6:
                scaling_list, use_default = _read_scaling_list(reader, 16)
                self.scaling_list_4x4.append(scaling_list)
                self.use_default_scaling_matrix_4x4_flag.append(use_default)
            else:
                scaling_list, use_default = _read_scaling_list(reader, 64)
                self.scaling_list_8x8.append(scaling_list)
                self.use_default_scaling_matrix_8x8_flag.append(use_default)

    def _chroma_array_type(self) -> int:
        return 0 if self.separate_colour_plane_flag else self.chroma_format_idc

    def width(self) -> int:
        """Return the video width."""
        sub_width_c = 0
        if not self.separate_colour_plane_flag:
            sub_width_c = {1: 2, 2: 2, 3: 1}.get(self.chroma_format_idc, 0)

        crop_unit_x = 0 if self._chroma_array_type() == 0 else sub_width_c
        pic_width = (self.pic_width_in_mbs_minus1 + 1) * 16

        if self.frame_cropping is not None:
            crop = self.frame_cropping.left_offset + self.frame_cropping.right_offset
            return (pic_width - crop_unit_x * crop) & _UINT32_MASK
        return pic_width & _UINT32_MASK

    def height(self) -> int:
        """Return the video height."""
        sub_height_c = 0
        if not self.separate_colour_plane_flag:
            sub_height_c = {1: 2, 2: 1, 3: 1}.get(self.chroma_format_idc, 0)

        field_factor = 1 if self.frame_mbs_only_flag else 2
        if self._chroma_array_type() == 0:
            crop_unit_y = field_factor
        else:
            crop_unit_y = sub_height_c * field_factor

        frame_height_in_mbs = field_factor * (self.pic_height_in_map_units_minus1 + 1)

        if self.frame_cropping is not None:
            crop = self.frame_cropping.top_offset + self.frame_cropping.bottom_offset
            return (16 * frame_height_in_mbs - crop_unit_y * crop) & _UINT32_MASK
        return (frame_height_in_mbs * 16) & _UINT32_MASK

    def fps(self) -> float:
        """Return the frames per second, or 0 when no timing information is present."""
        if self.vui is None or self.vui.timing_info is None:
            return 0.0
        timing = self.vui.timing_info
        if timing.num_units_in_tick == 0:
            return math.inf if timing.time_scale > 0 else math.nan
        return timing.time_scale / (2 * timing.num_units_in_tick)