from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np

WAV_HEADER_SIZE = 44
FMT_CHUNK_SIZE = 16
PCM_FORMAT_TAG = 1
BITS_PER_SAMPLE = 16
STEREO_CHANNELS = 2
INT16_MIN = -32768
INT16_MAX = 32767


@dataclass(frozen=True)
class WavHeader:
    riff_size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0


def _u16_le(value: int) -> bytes:
    return int(value).to_bytes(2, "little")


def _u32_le(value: int) -> bytes:
    return int(value).to_bytes(4, "little")


def _read_u16_le(data: bytes, offset: int) -> tuple[int, int]:
    if offset + 2 > len(data):
        raise ValueError("Unexpected EOF while reading u16.")
    return int.from_bytes(data[offset : offset + 2], "little"), offset + 2


def _read_u32_le(data: bytes, offset: int) -> tuple[int, int]:
    if offset + 4 > len(data):
        raise ValueError("Unexpected EOF while reading u32.")
    return int.from_bytes(data[offset : offset + 4], "little"), offset + 4


def clamp_to_int16(samples: np.ndarray) -> np.ndarray:
    return np.clip(samples, INT16_MIN, INT16_MAX).astype(np.int16)


def build_header(frame_count: int, sample_rate: int, channels: int = STEREO_CHANNELS) -> bytes:
    block_align = channels * BITS_PER_SAMPLE // 8
    data_size = block_align * frame_count
    return b"".join(
        [
            b"RIFF",
            _u32_le(36 + data_size),
            b"WAVE",
            b"fmt ",
            _u32_le(FMT_CHUNK_SIZE),
            _u16_le(PCM_FORMAT_TAG),
            _u16_le(channels),
            _u32_le(sample_rate),
            _u32_le(sample_rate * block_align),
            _u16_le(block_align),
            _u16_le(BITS_PER_SAMPLE),
            b"data",
            _u32_le(data_size),
        ]
    )


def encode_wav(left: np.ndarray, right: np.ndarray, sample_rate: int) -> bytes:
    if left.shape != right.shape:
        raise ValueError("left and right must have the same number of frames.")
    if sample_rate <= 0:
        raise ValueError("sample_rate must be > 0.")
    frames = np.empty((left.shape[0], STEREO_CHANNELS), dtype="<i2")
    frames[:, 0] = clamp_to_int16(left)
    frames[:, 1] = clamp_to_int16(right)
    return build_header(left.shape[0], sample_rate) + frames.tobytes()


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_wav(path: str | Path, left: np.ndarray, right: np.ndarray, sample_rate: int) -> Path:
    """Encode and write atomically; a failed write leaves no file behind."""
    payload = encode_wav(left, right, sample_rate)
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output.name}.", suffix=".tmp", dir=output.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        # mkstemp creates 0600; give the result the mode a plain open() would.
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, output)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return output


def read_wav_header(data: bytes) -> WavHeader:
    if len(data) < WAV_HEADER_SIZE:
        raise ValueError("WAV data is shorter than the 44-byte header.")
    if data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        raise ValueError("Invalid RIFF/WAVE signature.")
    if data[12:16] != b"fmt ":
        raise ValueError("Missing fmt chunk.")
    if data[36:40] != b"data":
        raise ValueError("Missing data chunk.")

    riff_size, _ = _read_u32_le(data, 4)
    fmt_size, offset = _read_u32_le(data, 16)
    if fmt_size != FMT_CHUNK_SIZE:
        raise ValueError(f"Unsupported fmt chunk size: {fmt_size}")
    format_tag, offset = _read_u16_le(data, offset)
    channels, offset = _read_u16_le(data, offset)
    sample_rate, offset = _read_u32_le(data, offset)
    byte_rate, offset = _read_u32_le(data, offset)
    block_align, offset = _read_u16_le(data, offset)
    bits_per_sample, offset = _read_u16_le(data, offset)
    data_size, _ = _read_u32_le(data, 40)

    return WavHeader(
        riff_size=riff_size,
        format_tag=format_tag,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )
