"""
Tests for segment manifests and settings.
"""

import base64
import json
import struct

import pytest

from dubmix.config import MixSettings
from dubmix.manifest import load_manifest, parse_segments
from dubmix.models import AudioBuffer
from dubmix.wav import encode_wav


def pcm_b64(*values: int) -> str:
    return base64.b64encode(struct.pack(f"<{len(values)}h", *values)).decode()


def test_load_manifest_with_inline_and_file_audio(tmp_path):
    """Entries may carry base64 speech or point to an audio file."""
    clip = AudioBuffer(16000, [0.25] * 80)
    (tmp_path / "clips").mkdir()
    (tmp_path / "clips" / "seg_0002.wav").write_bytes(encode_wav(clip))
    manifest = {
        "segments": [
            {
                "id": 1,
                "start": 0.0,
                "end": 1.5,
                "originalText": "Hello there",
                "translatedText": "Olá",
                "audio_base64": pcm_b64(0, 9000, -9000, 0),
            },
            {
                "id": 2,
                "start": 2.0,
                "end": 3.0,
                "source_text": "Second line",
                "audio_path": "clips/seg_0002.wav",
            },
            {"id": 3, "start": 3.0, "end": 4.0, "source_text": "No audio yet"},
        ]
    }
    path = tmp_path / "segments.json"
    path.write_text(json.dumps(manifest), encoding="utf-8")

    segments = load_manifest(path)

    assert [s.id for s in segments] == [1, 2, 3]
    assert segments[0].source_text == "Hello there"
    assert segments[0].translated_text == "Olá"
    assert segments[0].audio.sample_rate == 24000
    assert segments[0].audio.frame_count == 2
    assert segments[1].audio.sample_rate == 16000
    assert segments[1].audio.frame_count == 80
    assert segments[2].audio is None


def test_undecodable_audio_becomes_silence():
    """A broken payload yields a segment without audio instead of an error."""
    segments = parse_segments([{"id": "x", "start": 0.0, "end": 1.0, "audio_base64": "@@@"}])
    assert segments[0].audio is None


def test_missing_audio_file_becomes_silence(tmp_path):
    """An unreadable audio path is treated like missing audio."""
    data = [{"start": 0.0, "end": 1.0, "audio_path": "missing.wav"}]
    segments = parse_segments(data, base_dir=tmp_path)
    assert segments[0].id == 0
    assert segments[0].audio is None


def test_settings_control_speech_rate_and_trim():
    """Speech sample rate and trimming come from the settings."""
    settings = MixSettings(speech_sample_rate=16000, trim_speech=False)
    segments = parse_segments(
        [{"id": 1, "start": 0.0, "end": 1.0, "audio_base64": pcm_b64(0, 9000, 0)}],
        settings=settings,
    )
    assert segments[0].audio.sample_rate == 16000
    assert segments[0].audio.frame_count == 3


def test_invalid_manifest_shape():
    """Manifests must be a list or an object with a segments list."""
    with pytest.raises(ValueError):
        parse_segments({"segments": {"id": 1}})


def test_entry_without_timing_is_rejected():
    """Each entry needs both start and end."""
    with pytest.raises(ValueError, match="segment 1: missing 'start'/'end'"):
        parse_segments([{"id": "a", "start": 0.0, "end": 1.0}, {"id": "b", "end": 2.0}])


def test_non_object_entry_is_rejected():
    """Entries must be JSON objects."""
    with pytest.raises(ValueError, match="segment 0"):
        parse_segments([[0.0, 1.0]])
    with pytest.raises(ValueError, match="must be numbers"):
        parse_segments([{"start": None, "end": 1.0}])


def test_settings_from_env():
    """DUBMIX_* variables override defaults."""
    settings = MixSettings.from_env(
        {
            "DUBMIX_SLOT_TOLERANCE": "0.1",
            "DUBMIX_GRAIN_SIZE": "1024",
            "DUBMIX_TRIM_SPEECH": "no",
            "DUBMIX_BACKGROUND_VOLUME": "",
        }
    )
    assert settings.slot_tolerance == 0.1
    assert settings.grain_size == 1024
    assert settings.trim_speech is False
    assert settings.background_volume == 0.0
    assert settings.speech_sample_rate == 24000


def test_settings_from_env_rejects_bad_values():
    """Malformed values name the offending variable."""
    with pytest.raises(ValueError, match="DUBMIX_GRAIN_SIZE"):
        MixSettings.from_env({"DUBMIX_GRAIN_SIZE": "big"})
    with pytest.raises(ValueError):
        MixSettings.from_env({"DUBMIX_SLOT_TOLERANCE": "-1"})
