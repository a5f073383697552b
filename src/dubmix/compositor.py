"""
Timeline composition: fit every dubbed segment into its slot and mix.
"""

import logging
import math
from collections.abc import Iterable

import numpy as np
from tqdm import tqdm

from .errors import EmptyBuffer, InputTooShort
from .models import AudioBuffer, DubSegment, Timeline
from .resampling import resample
from .stretch import GRAIN_SIZE, time_stretch

logger = logging.getLogger("dubmix")

DEFAULT_SLOT_TOLERANCE = 0.05  # seconds


def fit_segment_audio(
    audio: AudioBuffer,
    slot_duration: float,
    slot_tolerance: float = DEFAULT_SLOT_TOLERANCE,
    grain_size: int = GRAIN_SIZE,
) -> AudioBuffer:
    """Stretch ``audio`` to ``slot_duration`` unless it already fits within tolerance."""
    diff = abs(audio.duration - slot_duration)
    if diff <= slot_tolerance:
        return audio
    factor = audio.duration / slot_duration
    return time_stretch(audio, factor, grain_size=grain_size)


def _match_channels(samples: np.ndarray, channel_count: int) -> np.ndarray:
    if samples.shape[0] == channel_count:
        return samples
    if samples.shape[0] != 1:
        samples = samples.mean(axis=0, keepdims=True)
    return np.repeat(samples, channel_count, axis=0)


def _master_frames(original: AudioBuffer, segments: list[DubSegment]) -> int:
    # A tiny epsilon keeps exact products like 10.0 * 24000 from rounding up a frame.
    frames = original.frame_count
    if segments:
        max_end = max(seg.end for seg in segments)
        frames = max(frames, math.ceil(max_end * original.sample_rate - 1e-9))
    return frames


def composite(
    original: AudioBuffer,
    segments: Iterable[DubSegment],
    slot_tolerance: float = DEFAULT_SLOT_TOLERANCE,
    background_volume: float = 0.0,
    grain_size: int = GRAIN_SIZE,
    progress: bool = False,
) -> AudioBuffer:
    """
    Mix the original bed and all dub segments into one master buffer.

    Each segment's audio is stretched (pitch preserved) to its slot when its
    duration is off by more than ``slot_tolerance`` seconds, then summed into
    the master at its start frame. Segments without audio stay silent. The
    original is only audible when ``background_volume`` > 0. No gain
    normalization is applied; the WAV encoder clamps.
    """
    segments = list(segments)
    sample_rate = original.sample_rate
    frames = _master_frames(original, segments)
    if frames <= 0:
        raise EmptyBuffer("timeline has no duration")

    master = np.zeros((original.channel_count, frames), dtype=np.float64)
    if background_volume > 0:
        master[:, : original.frame_count] += original.samples * background_volume

    silent: list = []
    unfitted: list = []
    for seg in tqdm(segments, desc="Mix segments", disable=not progress):
        if seg.audio is None:
            silent.append(seg.id)
            continue

        audio = seg.audio
        if audio.sample_rate != sample_rate:
            logger.debug(
                f"Segment {seg.id}: resampling {audio.sample_rate}Hz -> {sample_rate}Hz"
            )
            audio = resample(audio, sample_rate)

        slot = seg.slot_duration
        try:
            fitted = fit_segment_audio(audio, slot, slot_tolerance, grain_size)
        except (InputTooShort, EmptyBuffer) as e:
            logger.warning(f"Segment {seg.id}: cannot stretch ({e}); placing unstretched")
            unfitted.append(seg.id)
            fitted = audio.slice_frames(0, int(round(slot * sample_rate)))
        if fitted is not audio:
            logger.debug(
                f"Segment {seg.id}: {audio.duration:.3f}s -> {fitted.duration:.3f}s "
                f"(slot {slot:.3f}s)"
            )

        start_frame = int(round(seg.start * sample_rate))
        put = min(fitted.frame_count, frames - start_frame)
        if put <= 0:
            continue
        data = _match_channels(fitted.samples[:, :put], master.shape[0])
        master[:, start_frame : start_frame + put] += data

    if silent:
        logger.info(f"{len(silent)} segment(s) without audio rendered as silence: {silent}")
    if unfitted:
        logger.warning(f"{len(unfitted)} segment(s) placed unstretched: {unfitted}")

    return AudioBuffer(sample_rate, master)


def composite_timeline(timeline: Timeline, **kwargs) -> AudioBuffer:
    """Composite a Timeline (see ``composite`` for keyword arguments)."""
    return composite(timeline.original, timeline.segments, **kwargs)
