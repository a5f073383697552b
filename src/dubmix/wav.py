"""
Canonical 16-bit PCM WAV serialization.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .errors import CorruptAudioData
from .models import AudioBuffer

logger = logging.getLogger("dubmix")

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    """Fields of the fixed 44-byte header."""

    channel_count: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align


def pcm16_samples(buffer: AudioBuffer) -> np.ndarray:
    """Clamp, scale asymmetrically and truncate toward zero to int16, shape (frames, channels)."""
    clamped = np.clip(buffer.samples.astype(np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype(np.int16).T


def encode_wav(buffer: AudioBuffer) -> bytes:
    """Serialize ``buffer`` to a 16-bit little-endian interleaved WAV file."""
    channels = buffer.channel_count
    block_align = channels * BITS_PER_SAMPLE // 8
    data_size = buffer.frame_count * block_align
    header = _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        channels,
        buffer.sample_rate,
        buffer.sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )
    payload = np.ascontiguousarray(pcm16_samples(buffer)).astype("<i2").tobytes()
    return header + payload


def write_wav(buffer: AudioBuffer, path: str | Path) -> Path:
    """Encode ``buffer`` and write it to ``path``."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(encode_wav(buffer))
    logger.debug(f"Wrote {buffer.duration:.2f}s WAV -> {out}")
    return out


def split_wav(data: bytes) -> tuple[WavHeader, bytes]:
    """Parse a canonical 44-byte-header WAV into its header fields and data chunk."""
    if len(data) < HEADER_SIZE:
        raise CorruptAudioData("WAV data shorter than header", detail=f"{len(data)} bytes")
    (
        riff,
        _chunk_size,
        wave,
        fmt,
        fmt_size,
        format_tag,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits,
        data_tag,
        data_size,
    ) = _HEADER.unpack_from(data)
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data":
        raise CorruptAudioData("not a canonical RIFF/WAVE header")
    if fmt_size != 16 or format_tag != PCM_FORMAT_TAG or bits != BITS_PER_SAMPLE:
        raise CorruptAudioData(
            "unsupported WAV encoding",
            detail=f"fmt size {fmt_size}, tag {format_tag}, {bits} bits",
        )
    payload = data[HEADER_SIZE : HEADER_SIZE + data_size]
    if len(payload) != data_size:
        raise CorruptAudioData(
            "WAV data chunk truncated", detail=f"expected {data_size}, got {len(payload)}"
        )
    header = WavHeader(channels, sample_rate, byte_rate, block_align, bits, data_size)
    return header, payload
