"""
Pitch-preserving time stretch by fixed-hop granular overlap-add.

Grains of GRAIN_SIZE frames are read from the input every ``hop * factor``
frames and written to the output every ``hop`` frames (50% overlap). Each
grain keeps its spectral content at the original sample rate, so only the
grain cadence changes the duration, not the pitch.
"""

import logging
import math

import numpy as np

from .errors import EmptyBuffer, InputTooShort
from .models import AudioBuffer

logger = logging.getLogger("dubmix")

GRAIN_SIZE = 2048
# Flat attenuation against overshoot where the window overlap is imperfect.
OUTPUT_GAIN = 0.9


def hann_window(size: int) -> np.ndarray:
    """Periodic raised-cosine window; copies spaced size/2 apart sum to 1."""
    n = np.arange(size, dtype=np.float64)
    return 0.5 - 0.5 * np.cos(2.0 * np.pi * n / size)


def stretched_length(frame_count: int, factor: float) -> int:
    return int(math.floor(frame_count / factor))


def time_stretch(
    buffer: AudioBuffer, factor: float, grain_size: int = GRAIN_SIZE
) -> AudioBuffer:
    """
    Change the duration of ``buffer`` by ``factor`` without shifting pitch.

    ``factor`` is source duration / target duration: above 1 speeds up,
    below 1 slows down, exactly 1 returns the input unchanged. Only channel 0
    is processed; the result repeats it on every channel.
    """
    if not math.isfinite(factor) or factor <= 0:
        raise ValueError(f"stretch factor must be a positive finite number, got {factor}")
    if factor == 1.0:
        return buffer
    if grain_size < 2:
        raise ValueError(f"grain_size must be at least 2, got {grain_size}")

    source = buffer.channel(0).astype(np.float64)
    n = source.shape[0]
    if n < grain_size:
        raise InputTooShort(
            "buffer shorter than one stretch grain",
            detail=f"{n} frames < grain of {grain_size}",
        )

    out_len = stretched_length(n, factor)
    if out_len <= 0:
        raise EmptyBuffer("time stretch produced no frames", detail=f"factor {factor}")

    hop_out = grain_size // 2
    hop_in = int(math.floor(hop_out * factor))
    window = hann_window(grain_size)
    output = np.zeros(out_len, dtype=np.float64)

    r = 0
    w = 0
    grains = 0
    while r + grain_size <= n and w + grain_size <= out_len:
        output[w : w + grain_size] += source[r : r + grain_size] * window
        w += hop_out
        r += hop_in
        grains += 1

    output *= OUTPUT_GAIN
    logger.debug(
        f"time_stretch factor={factor:.4f} frames {n} -> {out_len} "
        f"({grains} grains, hop_in={hop_in})"
    )
    return buffer.with_samples(np.tile(output, (buffer.channel_count, 1)))


def stretch_to_duration(
    buffer: AudioBuffer, seconds: float, grain_size: int = GRAIN_SIZE
) -> AudioBuffer:
    """Stretch ``buffer`` so that it lasts ``seconds``."""
    if seconds <= 0:
        raise ValueError(f"target duration must be positive, got {seconds}")
    return time_stretch(buffer, buffer.duration / seconds, grain_size=grain_size)
