# mediacommon

Pure-Python helpers for reading and writing common audio and video codec
bitstreams. No runtime dependencies; Python 3.10 and later.

## Modules

- `mediacommon.bits`: `BitReader(data, pos=0)` reads big-endian bit fields
  (`read_bits`, `read_flag`, `read_golomb_unsigned`, `read_golomb_signed`,
  `has_space`); `BitWriter(size)` writes bit fields into a zero-filled buffer
  (`write_bits`, `to_bytes`). Running out of bits raises `BitstreamError`.
- `mediacommon.ac3`: `SyncInfo.unmarshal(frame)` gives `frame_size()` and
  `sample_rate()`; `BSI.unmarshal(buf)` gives `channel_count()`.
  `SAMPLES_PER_FRAME` is 1536.
- `mediacommon.g711`: `alaw_decode` / `alaw_encode` and `mulaw_decode` /
  `mulaw_encode`, converting between 8-bit G.711 codes and 16-bit big-endian
  LPCM samples. Encoding an odd number of bytes raises `ValueError`.
- `mediacommon.av1`: `OBUHeader.unmarshal`, the `OBUType` enum,
  `leb128_decode` / `leb128_encode` / `leb128_size`, `bitstream_unmarshal`
  (splits a low-overhead bitstream into OBUs), `bitstream_marshal` (joins OBUs,
  adding size fields where missing) and `is_random_access` (true when a
  temporal unit holds a sequence header).
- `mediacommon.av1_sequence_header`: `SequenceHeader.unmarshal(obu)` with
  `width()` and `height()`, plus the `ColorConfig` and `TimingInfo` parts.
- `mediacommon.h264`: the `NALUType` enum and `nalu_type_name`,
  `emulation_prevention_remove`, `annexb_unmarshal` / `annexb_marshal`,
  `avcc_unmarshal` / `avcc_marshal` and `is_random_access` (true when an access
  unit holds an IDR NALU).
- `mediacommon.h264_sps`: `SPS.unmarshal(nalu)` with `width()`, `height()` and
  `fps()`, plus the VUI, HRD, timing, cropping and bitstream restriction parts.
- `mediacommon.h264_dts`: `DTSExtractor`, whose `extract(au, pts)` works out
  the decoding timestamp of each access unit from its presentation timestamp
  (timestamps in a 90 kHz clock).

## Examples

```python
from mediacommon.h264 import annexb_unmarshal, avcc_marshal, is_random_access

nalus = annexb_unmarshal(b"\x00\x00\x00\x01\x65\x88\x84\x00")
avcc = avcc_marshal(nalus)      # b"\x00\x00\x00\x04\x65\x88\x84\x00"
print(is_random_access(nalus))  # True: the access unit holds an IDR NALU
```

```python
from mediacommon.h264_sps import SPS

sps = SPS.unmarshal(bytes.fromhex(
    "6764000cac3b50b04b420000030002000003003d08"
))
print(sps.width(), sps.height(), sps.fps())  # 352 288 15.0
```

```python
from mediacommon.h264_dts import DTSExtractor

extractor = DTSExtractor()
for au, pts in access_units:  # each au is a list of NALUs
    dts = extractor.extract(au, pts)
```

```python
from mediacommon.g711 import mulaw_decode, mulaw_encode

lpcm = mulaw_decode(b"\x01\x02\x03")
encoded = mulaw_encode(lpcm)
```

```python
from mediacommon.av1 import leb128_decode, leb128_encode

encoded = leb128_encode(1234567)          # b"\x87\xad\x4b"
value, consumed = leb128_decode(encoded)  # (1234567, 3)
```

## Errors

Malformed input raises an exception specific to the codec, each a subclass of
`ValueError`: `BitstreamError`, `AC3Error`, `AV1Error` or `H264Error` (with
`AnnexBNoNALUsError`, `AnnexBNoInitialDelimiterError` and `AVCCNoNALUsError`).

## What it does not do

- It parses headers and framing only; it does not decode or encode pictures or
  AC-3 audio, and it cannot write an SPS or an AV1 sequence header.
- AV1 sequence headers with decoder model info or initial display delays, and
  OBUs with the extension flag set, are rejected with `AV1Error`.
- `DTSExtractor` rejects streams with `pic_order_cnt_type = 1`; for type 2 or
  interlaced streams it returns the PTS unchanged.
- There is no command-line tool and no container (MP4, MPEG-TS) support.

## Running the tests

```
pip install -e .[test]
pytest
```