"""
Leading/trailing silence removal for synthesized speech.
"""

import numpy as np

from .models import AudioBuffer

DEFAULT_THRESHOLD = 0.005


def trim_silence(buffer: AudioBuffer, threshold: float = DEFAULT_THRESHOLD) -> AudioBuffer:
    """
    Drop near-silent frames from both ends, judged on channel 0.

    An all-quiet (or empty) buffer comes back unchanged; trimming never
    produces an empty buffer.
    """
    loud = np.flatnonzero(np.abs(buffer.channel(0)) >= threshold)
    if loud.size == 0:
        return buffer
    start = int(loud[0])
    end = int(loud[-1]) + 1
    if start == 0 and end == buffer.frame_count:
        return buffer
    return buffer.slice_frames(start, end)
