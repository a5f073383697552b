"""
Data models for the dubbing mix core.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import numpy as np


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Decoded audio: one float32 row of samples per channel."""

    sample_rate: int  # Hz
    samples: np.ndarray  # shape (channels, frames)

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        data = np.array(self.samples, dtype=np.float32)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        if data.ndim != 2 or data.shape[0] < 1:
            raise ValueError(f"samples must have shape (channels, frames), got {data.shape}")
        data.setflags(write=False)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
        object.__setattr__(self, "samples", data)

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds, always derived from frame_count and sample_rate."""
        return self.frame_count / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]

    def slice_frames(self, start: int, end: int) -> "AudioBuffer":
        return AudioBuffer(self.sample_rate, self.samples[:, start:end])

    def with_samples(self, samples: np.ndarray) -> "AudioBuffer":
        return AudioBuffer(self.sample_rate, samples)

    @classmethod
    def silent(cls, frame_count: int, sample_rate: int, channel_count: int = 1) -> "AudioBuffer":
        return cls(sample_rate, np.zeros((channel_count, frame_count), dtype=np.float32))

    @classmethod
    def from_channels(cls, channels: Sequence[Sequence[float]], sample_rate: int) -> "AudioBuffer":
        lengths = {len(ch) for ch in channels}
        if len(lengths) > 1:
            raise ValueError(f"all channels must have the same length, got {sorted(lengths)}")
        return cls(sample_rate, np.asarray(channels, dtype=np.float32))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AudioBuffer):
            return NotImplemented
        return (
            self.sample_rate == other.sample_rate
            and self.samples.shape == other.samples.shape
            and bool(np.array_equal(self.samples, other.samples))
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"AudioBuffer(sample_rate={self.sample_rate}, channels={self.channel_count}, "
            f"frames={self.frame_count})"
        )


@dataclass(frozen=True)
class DubSegment:
    """A transcribed line with its slot on the timeline and optional dubbed audio."""

    id: int | str
    start: float  # seconds
    end: float  # seconds
    source_text: str = ""
    translated_text: str | None = None
    audio: AudioBuffer | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"segment {self.id}: start must be >= 0, got {self.start}")
        if not self.start < self.end:
            raise ValueError(
                f"segment {self.id}: start ({self.start}) must be before end ({self.end})"
            )

    @property
    def slot_duration(self) -> float:
        return self.end - self.start

    def with_translation(self, text: str | None) -> "DubSegment":
        return replace(self, translated_text=text)

    def with_audio(self, audio: AudioBuffer | None) -> "DubSegment":
        return replace(self, audio=audio)


@dataclass(frozen=True)
class Timeline:
    """The reference waveform plus every dub segment placed against it."""

    original: AudioBuffer
    segments: tuple[DubSegment, ...] = ()

    def __post_init__(self) -> None:
        segments = tuple(self.segments)
        seen: set = set()
        for seg in segments:
            if seg.id in seen:
                raise ValueError(f"duplicate segment id: {seg.id!r}")
            seen.add(seg.id)
        object.__setattr__(self, "segments", segments)

    @property
    def duration(self) -> float:
        ends = [seg.end for seg in self.segments]
        return max([self.original.duration, *ends])
