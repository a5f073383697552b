"""
Decoding of raw PCM speech payloads and generic audio containers.
"""

import base64
import binascii
import io
import logging
from pathlib import Path

import numpy as np
from pydub import AudioSegment

from .errors import CorruptAudioData, EmptyBuffer, UnsupportedFormat
from .models import AudioBuffer
from .trimming import DEFAULT_THRESHOLD, trim_silence
from .wav import pcm16_samples

logger = logging.getLogger("dubmix")

SPEECH_SAMPLE_RATE = 24000


def decode_raw_pcm16(data: bytes, sample_rate: int) -> AudioBuffer:
    """Interpret ``data`` as little-endian signed 16-bit mono samples."""
    if len(data) % 2:
        raise CorruptAudioData(
            "raw PCM16 byte length is not a multiple of 2", detail=f"{len(data)} bytes"
        )
    if not data:
        raise EmptyBuffer("raw PCM16 payload is empty")
    pcm = np.frombuffer(data, dtype="<i2")
    return AudioBuffer(sample_rate, pcm.astype(np.float32) / 32768.0)


def audio_segment_to_buffer(segment: AudioSegment) -> AudioBuffer:
    """Convert a pydub segment (any integer sample width) to float samples."""
    scale = float(1 << (8 * segment.sample_width - 1))
    interleaved = np.array(segment.get_array_of_samples(), dtype=np.float64)
    frames = interleaved.reshape(-1, segment.channels).T / scale
    return AudioBuffer(segment.frame_rate, frames)


def buffer_to_audio_segment(buffer: AudioBuffer) -> AudioSegment:
    """Convert a buffer to a 16-bit pydub segment."""
    data = np.ascontiguousarray(pcm16_samples(buffer)).astype("<i2").tobytes()
    return AudioSegment(
        data=data,
        sample_width=2,
        frame_rate=buffer.sample_rate,
        channels=buffer.channel_count,
    )


def _sniff_format(data: bytes) -> str | None:
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return "wav"
    return None


def decode_container(data: bytes) -> AudioBuffer:
    """
    Decode compressed or container audio (mp3/wav/mp4/...) through pydub.

    WAV payloads are parsed directly; other formats need an ffmpeg binary.
    Any decoder failure is raised as UnsupportedFormat with the cause chained.
    """
    fmt = _sniff_format(data)
    try:
        segment = AudioSegment.from_file(io.BytesIO(data), format=fmt)
    except Exception as e:
        raise UnsupportedFormat(
            "container decoder could not parse audio",
            detail=str(e) or e.__class__.__name__,
        ) from e
    buffer = audio_segment_to_buffer(segment)
    logger.debug(
        f"Decoded container: {buffer.channel_count}ch {buffer.sample_rate}Hz "
        f"{buffer.duration:.2f}s"
    )
    return buffer


def decode_file(path: str | Path) -> AudioBuffer:
    """Decode the media file at ``path`` (audio track of any container)."""
    return decode_container(Path(path).read_bytes())


def decode_speech(
    data: bytes,
    sample_rate: int = SPEECH_SAMPLE_RATE,
    trim: bool = True,
    threshold: float = DEFAULT_THRESHOLD,
) -> AudioBuffer:
    """
    Decode synthesized speech of uncertain encoding.

    Raw PCM16 is tried first, the container decoder is the fallback. Payloads
    with a RIFF/WAVE header are not ambiguous and go straight to the
    container decoder. The result is trimmed of leading/trailing silence
    unless ``trim`` is False.
    """
    if _sniff_format(data) == "wav":
        buffer = decode_container(data)
        return trim_silence(buffer, threshold) if trim else buffer
    try:
        buffer = decode_raw_pcm16(data, sample_rate)
    except (CorruptAudioData, EmptyBuffer) as pcm_error:
        logger.debug(f"Speech payload is not raw PCM16 ({pcm_error}); trying container decoder")
        try:
            buffer = decode_container(data)
        except UnsupportedFormat as e:
            raise UnsupportedFormat(
                "speech audio is neither raw PCM16 nor a known container",
                detail=f"raw PCM: {pcm_error}; container: {e.detail}",
            ) from e
    if trim:
        buffer = trim_silence(buffer, threshold)
    return buffer


def decode_base64_speech(
    payload: str,
    sample_rate: int = SPEECH_SAMPLE_RATE,
    trim: bool = True,
    threshold: float = DEFAULT_THRESHOLD,
) -> AudioBuffer:
    """Decode a base64 speech payload as returned by the TTS collaborator."""
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptAudioData("speech payload is not valid base64", detail=str(e)) from e
    return decode_speech(data, sample_rate=sample_rate, trim=trim, threshold=threshold)
