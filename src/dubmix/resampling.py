"""
Linear-interpolation resampling.

``resample`` converts between sample rates without changing duration.
``varispeed`` plays a buffer faster or slower the way a device playback rate
does: duration and pitch both change. Only the preview path uses it.
"""

import math

import numpy as np

from .models import AudioBuffer


def _interpolate(samples: np.ndarray, positions: np.ndarray) -> np.ndarray:
    frames = samples.shape[1]
    if frames == 0:
        return np.zeros((samples.shape[0], positions.shape[0]), dtype=np.float32)
    xp = np.arange(frames, dtype=np.float64)
    return np.vstack([np.interp(positions, xp, row) for row in samples])


def resample(buffer: AudioBuffer, sample_rate: int) -> AudioBuffer:
    """Return ``buffer`` converted to ``sample_rate`` Hz."""
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if sample_rate == buffer.sample_rate:
        return buffer
    out_frames = int(round(buffer.frame_count * sample_rate / buffer.sample_rate))
    positions = np.arange(out_frames, dtype=np.float64) * (buffer.sample_rate / sample_rate)
    return AudioBuffer(sample_rate, _interpolate(buffer.samples, positions))


def varispeed(buffer: AudioBuffer, rate: float) -> AudioBuffer:
    """Play ``buffer`` at ``rate`` times normal speed (pitch follows the rate)."""
    if not math.isfinite(rate) or rate <= 0:
        raise ValueError(f"playback rate must be a positive finite number, got {rate}")
    if rate == 1.0:
        return buffer
    out_frames = int(math.floor(buffer.frame_count / rate))
    positions = np.arange(out_frames, dtype=np.float64) * rate
    return buffer.with_samples(_interpolate(buffer.samples, positions))
