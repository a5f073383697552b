"""
Tests for the command-line entry point.
"""

import base64
import json

import numpy as np

from dubmix.cli import main, parse_args
from dubmix.decoding import decode_file
from dubmix.models import AudioBuffer
from dubmix.wav import encode_wav

SR = 24000


def speech_b64(seconds: float) -> str:
    frames = int(seconds * SR)
    t = np.arange(frames) / SR
    pcm = (0.5 * np.sin(2 * np.pi * 375 * t) * 32767).astype("<i2")
    return base64.b64encode(pcm.tobytes()).decode()


def test_parse_args_defaults():
    """Timing defaults match the mix settings."""
    args = parse_args(["--input", "in.mp4", "--segments", "s.json"])
    assert args.output == "output_dubbed.wav"
    assert args.slot_tolerance == 0.05
    assert args.background_volume == 0.0
    assert args.grain_size == 2048
    assert not args.no_trim


def test_main_writes_mix(tmp_path):
    """End to end: original + manifest -> WAV with the original's length."""
    original = tmp_path / "original.wav"
    original.write_bytes(encode_wav(AudioBuffer.silent(10 * SR, SR)))
    manifest = tmp_path / "segments.json"
    manifest.write_text(
        json.dumps(
            [
                {"id": 1, "start": 2.0, "end": 4.0, "audio_base64": speech_b64(3.0)},
                {"id": 2, "start": 5.0, "end": 6.0, "audio_base64": "broken!"},
            ]
        ),
        encoding="utf-8",
    )
    output = tmp_path / "out" / "mix.wav"

    code = main(["--input", str(original), "--segments", str(manifest), "--output", str(output)])

    assert code == 0
    assert output.stat().st_size == 44 + 10 * SR * 2
    mix = decode_file(output)
    voiced = np.flatnonzero(np.abs(mix.channel(0)) > 0.01)
    assert voiced[0] >= 2 * SR
    assert voiced[-1] < 4 * SR


def test_main_reports_missing_input(tmp_path):
    """A missing original exits with status 1."""
    manifest = tmp_path / "segments.json"
    manifest.write_text("[]", encoding="utf-8")
    code = main(["--input", str(tmp_path / "nope.wav"), "--segments", str(manifest)])
    assert code == 1


def test_main_reports_malformed_manifest(tmp_path):
    """A segment without a start time exits with status 1."""
    original = tmp_path / "original.wav"
    original.write_bytes(encode_wav(AudioBuffer.silent(SR, SR)))
    manifest = tmp_path / "segments.json"
    manifest.write_text(json.dumps([{"id": 1, "end": 1.0}]), encoding="utf-8")
    output = tmp_path / "mix.wav"
    code = main(["--input", str(original), "--segments", str(manifest), "--output", str(output)])
    assert code == 1
    assert not output.exists()


def test_main_exports_other_formats_through_pydub(tmp_path):
    """A non-.wav output suffix selects the pydub exporter."""
    original = tmp_path / "original.wav"
    original.write_bytes(encode_wav(AudioBuffer.silent(2 * SR, SR)))
    manifest = tmp_path / "segments.json"
    manifest.write_text(
        json.dumps([{"id": 1, "start": 0.5, "end": 1.5, "audio_base64": speech_b64(1.0)}]),
        encoding="utf-8",
    )
    output = tmp_path / "mix.raw"

    code = main(["--input", str(original), "--segments", str(manifest), "--output", str(output)])

    assert code == 0
    pcm = np.frombuffer(output.read_bytes(), dtype="<i2")
    assert pcm.shape == (2 * SR,)
    voiced = np.flatnonzero(np.abs(pcm) > 300)
    assert voiced[0] >= SR // 2
    assert voiced[-1] < 3 * SR // 2
