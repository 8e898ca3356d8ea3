"""AV1 sequence header OBU decoding."""

from __future__ import annotations

from dataclasses import dataclass, field

from mediacommon.av1 import AV1Error, OBUHeader, leb128_decode
from mediacommon.bits import BitReader

CP_BT_709 = 1
CP_UNSPECIFIED = 2

TC_UNSPECIFIED = 2
TC_SRGB = 13

MC_IDENTITY = 0
MC_UNSPECIFIED = 2

CSP_UNKNOWN = 0

SELECT_SCREEN_CONTENT_TOOLS = 2
SELECT_INTEGER_MV = 2


@dataclass
class ColorConfig:
    """The color_config() part of a sequence header."""

    high_bit_depth: bool = False
    twelve_bit: bool = False
    bit_depth: int = 0
    mono_chrome: bool = False
    color_description_present_flag: bool = False
    color_primaries: int = 0
    transfer_characteristics: int = 0
    matrix_coefficients: int = 0
    color_range: bool = False
    subsampling_x: bool = False
    subsampling_y: bool = False
    chroma_sample_position: int = 0

    @classmethod
    def _read(cls, seq_profile: int, reader: BitReader) -> ColorConfig:
        c = cls()
        c.high_bit_depth = reader.read_flag()

        if seq_profile == 2 and c.high_bit_depth:
            c.twelve_bit = reader.read_flag()
            c.bit_depth = 12 if c.twelve_bit else 10
        elif seq_profile <= 2:
            c.bit_depth = 10 if c.high_bit_depth else 8

        c.mono_chrome = False if seq_profile == 1 else reader.read_flag()

        c.color_description_present_flag = reader.read_flag()
        if c.color_description_present_flag:
            reader.has_space(24)
            c.color_primaries = reader.read_bits(8)
            c.transfer_characteristics = reader.read_bits(8)
            c.matrix_coefficients = reader.read_bits(8)
        else:
            c.color_primaries = CP_UNSPECIFIED
            c.transfer_characteristics = TC_UNSPECIFIED
            c.matrix_coefficients = MC_UNSPECIFIED

        if c.mono_chrome:
            c.color_range = reader.read_flag()
            c.subsampling_x = True
            c.subsampling_y = True
            c.chroma_sample_position = CSP_UNKNOWN
        elif (
            c.color_primaries == CP_BT_709
            and c.transfer_characteristics == TC_SRGB
            and c.matrix_coefficients == MC_IDENTITY
        ):
            c.color_range = True
            c.subsampling_x = False
            c.subsampling_y = False
        else:
            c.color_range = reader.read_flag()
            if seq_profile == 0:
                c.subsampling_x, c.subsampling_y = True, True
            elif seq_profile == 1:
                c.subsampling_x, c.subsampling_y = False, False
            elif c.bit_depth == 12:
                c.subsampling_x = reader.read_flag()
                c.subsampling_y = reader.read_flag() if c.subsampling_x else False
            else:
                c.subsampling_x, c.subsampling_y = True, False

            if c.subsampling_x and c.subsampling_y:
                c.chroma_sample_position = reader.read_bits(2)

        return c


@dataclass
class TimingInfo:
    """The timing_info() part of a sequence header."""

    num_units_in_display_tick: int = 0
    time_scale: int = 0
    equal_picture_interval: bool = False
    num_ticks_per_picture_minus1: int = 0

    @classmethod
    def _read(cls, reader: BitReader) -> TimingInfo:
        reader.has_space(65)
        t = cls()
        t.num_units_in_display_tick = reader.read_bits(32)
        t.time_scale = reader.read_bits(32)
        t.equal_picture_interval = reader.read_flag()
        if t.equal_picture_interval:
            t.num_ticks_per_picture_minus1 = reader.read_golomb_unsigned()
        return t


@dataclass
class SequenceHeader:
    """AV1 sequence header OBU."""

    seq_profile: int = 0
    still_picture: bool = False
    reduced_still_picture_header: bool = False
    timing_info: TimingInfo | None = None
    decoder_model_info_present_flag: bool = False
    initial_display_delay_present_flag: bool = False
    operating_points_cnt_minus1: int = 0
    operating_point_idc: list[int] = field(default_factory=list)
    seq_level_idx: list[int] = field(default_factory=list)
    seq_tier: list[bool] = field(default_factory=list)
    decoder_model_present_for_this_op: list[bool] = field(default_factory=list)
    initial_display_present_for_this_op: list[bool] = field(default_factory=list)
    initial_display_delay_minus1: list[int] = field(default_factory=list)
    max_frame_width_minus1: int = 0
    max_frame_height_minus1: int = 0
    frame_id_numbers_present_flag: bool = False
    delta_frame_id_length_minus2: int = 0
    additional_frame_id_length_minus1: int = 0
    use_128x128_superblock: bool = False
    enable_filter_intra: bool = False
    enable_intra_edge_filter: bool = False
    enable_interintra_compound: bool = False
    enable_masked_compound: bool = False
    enable_warped_motion: bool = False
    enable_dual_filter: bool = False
    enable_order_hint: bool = False
    enable_jnt_comp: bool = False
    enable_ref_frame_mvs: bool = False
    seq_choose_screen_content_tools: bool = False
    seq_force_screen_content_tools: int = 0
    seq_choose_integer_mv: bool = False
    seq_force_integer_mv: int = 0
    order_hint_bits_minus1: int = 0
    enable_superres: bool = False
    enable_cdef: bool = False
    enable_restoration: bool = False
    color_config: ColorConfig = field(default_factory=ColorConfig)
    film_grain_params_present: bool = False

    @classmethod
    def unmarshal(cls, buf: bytes) -> SequenceHeader:
        """Decode a sequence header OBU, header included."""
        obu_header = OBUHeader.unmarshal(buf)
        payload = bytes(buf[1:])

        if obu_header.has_size:
            size, n = leb128_decode(payload)
            payload = payload[n:]
            if len(payload) != size:
                raise AV1Error(
                    f"wrong buffer size: expected {size}, got {len(payload)}"
                )

        reader = BitReader(payload)
        h = cls()

        reader.has_space(5)
        h.seq_profile = reader.read_bits(3)
        h.still_picture = reader.read_flag()
        h.reduced_still_picture_header = reader.read_flag()

        if h.reduced_still_picture_header:
            h._read_reduced_operating_point(reader)
        else:
            h._read_operating_points(reader)

        h._read_frame_size(reader)
        h._read_tools(reader)

        reader.has_space(3)
        h.enable_superres = reader.read_flag()
        h.enable_cdef = reader.read_flag()
        h.enable_restoration = reader.read_flag()

        h.color_config = ColorConfig._read(h.seq_profile, reader)

        reader.has_space(1)
        h.film_grain_params_present = reader.read_flag()
        return h

    def _read_reduced_operating_point(self, reader: BitReader) -> None:
        self.timing_info = None
        self.decoder_model_info_present_flag = False
        self.initial_display_delay_present_flag = False
        self.operating_points_cnt_minus1 = 0
        self.operating_point_idc = [0]
        reader.has_space(5)
        self.seq_level_idx = [reader.read_bits(5)]
        self.seq_tier = [False]
        self.decoder_model_present_for_this_op = [False]
        self.initial_display_present_for_this_op = [False]

    def _read_operating_points(self, reader: BitReader) -> None:
        if reader.read_flag():
            self.timing_info = TimingInfo._read(reader)
            self.decoder_model_info_present_flag = reader.read_flag()
            if self.decoder_model_info_present_flag:
                raise AV1Error("decoder_model_info_present_flag is not supported yet")
        else:
            self.timing_info = None
            self.decoder_model_info_present_flag = False

        reader.has_space(6)
        self.initial_display_delay_present_flag = reader.read_flag()
        self.operating_points_cnt_minus1 = reader.read_bits(5)

        self.operating_point_idc = []
        self.seq_level_idx = []
        self.seq_tier = []
        self.decoder_model_present_for_this_op = []
        self.initial_display_present_for_this_op = []
        self.initial_display_delay_minus1 = []

        for _ in range(self.operating_points_cnt_minus1 + 1):
            reader.has_space(17)
            self.operating_point_idc.append(reader.read_bits(12))
            level = reader.read_bits(5)
            self.seq_level_idx.append(level)
            self.seq_tier.append(reader.read_flag() if level > 7 else False)
            self.decoder_model_present_for_this_op.append(False)

            if self.initial_display_delay_present_flag:
                if reader.read_flag():
                    reader.read_bits(4)
                raise AV1Error(
                    "initial_display_delay_present_flag is not supported yet"
                )

            self.initial_display_present_for_this_op.append(False)
            self.initial_display_delay_minus1.append(0)

    def _read_frame_size(self, reader: BitReader) -> None:
        reader.has_space(8)
        width_bits = reader.read_bits(4) + 1
        height_bits = reader.read_bits(4) + 1

        reader.has_space(width_bits + height_bits)
        self.max_frame_width_minus1 = reader.read_bits(width_bits)
        self.max_frame_height_minus1 = reader.read_bits(height_bits)

        if self.reduced_still_picture_header:
            self.frame_id_numbers_present_flag = False
        else:
            self.frame_id_numbers_present_flag = reader.read_flag()
            if self.frame_id_numbers_present_flag:
                reader.has_space(7)
                self.delta_frame_id_length_minus2 = reader.read_bits(4)
                self.additional_frame_id_length_minus1 = reader.read_bits(3)

    def _read_tools(self, reader: BitReader) -> None:
        reader.has_space(3)
        self.use_128x128_superblock = reader.read_flag()
        self.enable_filter_intra = reader.read_flag()
        self.enable_intra_edge_filter = reader.read_flag()

        if self.reduced_still_picture_header:
            self.enable_interintra_compound = False
            self.enable_masked_compound = False
            self.enable_warped_motion = False
            self.enable_dual_filter = False
            self.enable_order_hint = False
            self.enable_jnt_comp = False
            self.enable_ref_frame_mvs = False
            self.seq_force_screen_content_tools = SELECT_SCREEN_CONTENT_TOOLS
            self.seq_force_integer_mv = SELECT_INTEGER_MV
            return

        reader.has_space(5)
        self.enable_interintra_compound = reader.read_flag()
        self.enable_masked_compound = reader.read_flag()
        self.enable_warped_motion = reader.read_flag()
        self.enable_dual_filter = reader.read_flag()
        self.enable_order_hint = reader.read_flag()

        if self.enable_order_hint:
            reader.has_space(2)
            self.enable_jnt_comp = reader.read_flag()
            self.enable_ref_frame_mvs = reader.read_flag()

        self.seq_choose_screen_content_tools = reader.read_flag()
        if self.seq_choose_screen_content_tools:
            self.seq_force_screen_content_tools = SELECT_SCREEN_CONTENT_TOOLS
        else:
            self.seq_force_screen_content_tools = reader.read_bits(1)

        if self.seq_force_screen_content_tools > 0:
            self.seq_choose_integer_mv = reader.read_flag()
            if self.seq_choose_integer_mv:
                self.seq_force_integer_mv = SELECT_INTEGER_MV
            else:
                self.seq_force_integer_mv = reader.read_bits(1)
        else:
            self.seq_force_integer_mv = SELECT_INTEGER_MV

        if self.enable_order_hint:
            self.order_hint_bits_minus1 = reader.read_bits(3)

    def width(self) -> int:
        """Return the video width."""
        return self.max_frame_width_minus1 + 1

    def height(self) -> int:
        """Return the video height."""
        return self.max_frame_height_minus1 + 1