"""
dubmix - fit translated speech into the original timeline and export WAV.

- Decoding raw PCM16 speech payloads and container audio (via pydub)
- Trimming leading/trailing silence from synthesized clips
- Pitch-preserving granular time stretch
- Compositing dubbed segments into their slots on a master buffer
- Canonical 16-bit WAV export
- Real-time preview scheduling
"""

from .compositor import composite, composite_timeline, fit_segment_audio
from .decoding import decode_base64_speech, decode_container, decode_raw_pcm16, decode_speech
from .errors import CorruptAudioData, DubMixError, EmptyBuffer, InputTooShort, UnsupportedFormat
from .models import AudioBuffer, DubSegment, Timeline
from .stretch import time_stretch
from .trimming import trim_silence
from .wav import encode_wav, write_wav

__version__ = "0.1.0"

__all__ = [
    "AudioBuffer",
    "DubSegment",
    "Timeline",
    "decode_raw_pcm16",
    "decode_container",
    "decode_speech",
    "decode_base64_speech",
    "trim_silence",
    "time_stretch",
    "composite",
    "composite_timeline",
    "fit_segment_audio",
    "encode_wav",
    "write_wav",
    "DubMixError",
    "CorruptAudioData",
    "UnsupportedFormat",
    "InputTooShort",
    "EmptyBuffer",
]
