"""
Real-time preview scheduling.

The preview fits segments to their slots with a plain playback-rate change
(``resampling.varispeed``), so pitch moves with speed. The offline export
path uses the pitch-preserving ``stretch.time_stretch`` instead; the two are
expected to sound slightly different.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from .compositor import DEFAULT_SLOT_TOLERANCE
from .models import AudioBuffer, DubSegment
from .resampling import varispeed

logger = logging.getLogger("dubmix")

BED_VOICE = "bed"


class PlaybackSink(Protocol):
    """An output device that can start and stop individual voices."""

    def start(self, voice_id: str, buffer: AudioBuffer) -> None: ...

    def stop(self, voice_id: str) -> None: ...


@dataclass(frozen=True)
class ScheduledVoice:
    voice_id: str
    delay: float  # seconds after play() is called
    buffer: AudioBuffer
    rate: float = 1.0


def preview_rate(audio: AudioBuffer, slot_duration: float, slot_tolerance: float) -> float:
    if abs(audio.duration - slot_duration) <= slot_tolerance:
        return 1.0
    return audio.duration / slot_duration


def plan_playback(
    original: AudioBuffer,
    segments: Iterable[DubSegment],
    offset: float = 0.0,
    background_volume: float = 0.0,
    slot_tolerance: float = DEFAULT_SLOT_TOLERANCE,
) -> list[ScheduledVoice]:
    """Work out which voices start when, for playback beginning at ``offset`` seconds."""
    offset = max(0.0, offset)
    voices: list[ScheduledVoice] = []

    if background_volume > 0:
        skip = int(round(offset * original.sample_rate))
        if skip < original.frame_count:
            bed = original.slice_frames(skip, original.frame_count)
            bed = bed.with_samples(bed.samples * background_volume)
            voices.append(ScheduledVoice(BED_VOICE, 0.0, bed))

    for seg in segments:
        if seg.audio is None or seg.end <= offset:
            continue
        rate = preview_rate(seg.audio, seg.slot_duration, slot_tolerance)
        audio = varispeed(seg.audio, rate)
        voice_id = f"segment-{seg.id}"
        if seg.start < offset:
            # Seeked into the middle of this segment.
            skip = int(round((offset - seg.start) * audio.sample_rate))
            if skip >= audio.frame_count:
                continue
            remainder = audio.slice_frames(skip, audio.frame_count)
            voices.append(ScheduledVoice(voice_id, 0.0, remainder, rate))
        else:
            voices.append(ScheduledVoice(voice_id, seg.start - offset, audio, rate))
    return voices


class PlaybackScheduler:
    """
    Schedules the bed and every segment against the event loop clock.

    Must be used from inside a running asyncio loop. ``seek`` and ``stop``
    cancel every pending start and stop every voice already playing.
    """

    def __init__(
        self,
        original: AudioBuffer,
        segments: Iterable[DubSegment],
        sink: PlaybackSink,
        background_volume: float = 0.0,
        slot_tolerance: float = DEFAULT_SLOT_TOLERANCE,
    ) -> None:
        self.original = original
        self.segments = list(segments)
        self.sink = sink
        self.background_volume = background_volume
        self.slot_tolerance = slot_tolerance
        self.duration = max([original.duration, *(seg.end for seg in self.segments)])
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handles: list[asyncio.TimerHandle] = []
        self._active: set[str] = set()
        self._origin = 0.0
        self._paused_at = 0.0
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def position(self) -> float:
        """Current timeline position in seconds."""
        if not self._playing or self._loop is None:
            return self._paused_at
        return min(self._loop.time() - self._origin, self.duration)

    def play(self, offset: float = 0.0) -> None:
        self.stop()
        offset = min(max(0.0, offset), self.duration)
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._origin = loop.time() - offset
        self._paused_at = offset

        voices = plan_playback(
            self.original,
            self.segments,
            offset,
            background_volume=self.background_volume,
            slot_tolerance=self.slot_tolerance,
        )
        for voice in voices:
            self._handles.append(loop.call_later(voice.delay, self._start_voice, voice))
        self._handles.append(loop.call_later(self.duration - offset, self._finish))
        self._playing = True
        logger.debug(f"Preview from {offset:.2f}s: {len(voices)} voice(s) scheduled")

    def seek(self, offset: float) -> None:
        """Jump to ``offset``; keeps playing if playback was running."""
        if self._playing:
            self.play(offset)
        else:
            self._paused_at = min(max(0.0, offset), self.duration)

    def stop(self) -> None:
        if self._playing:
            self._paused_at = self.position
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        for voice_id in sorted(self._active):
            self.sink.stop(voice_id)
        self._active.clear()
        self._playing = False

    def _start_voice(self, voice: ScheduledVoice) -> None:
        self._active.add(voice.voice_id)
        self.sink.start(voice.voice_id, voice.buffer)

    def _finish(self) -> None:
        self.stop()
        self._paused_at = 0.0
