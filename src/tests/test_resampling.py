"""
Tests for sample-rate conversion and varispeed.
"""

import numpy as np
import pytest

from dubmix.models import AudioBuffer
from dubmix.resampling import resample, varispeed


def test_resample_keeps_duration():
    """Converting 48 kHz to 24 kHz halves the frames, not the duration."""
    buf = AudioBuffer(48000, np.linspace(-1, 1, 4800))
    out = resample(buf, 24000)
    assert out.sample_rate == 24000
    assert out.frame_count == 2400
    assert out.duration == pytest.approx(buf.duration)


def test_resample_same_rate_is_identity():
    """No conversion when the rate already matches."""
    buf = AudioBuffer(24000, [0.1, 0.2])
    assert resample(buf, 24000) is buf


def test_varispeed_shortens_and_raises_pitch():
    """Double speed halves the length and doubles the tone frequency."""
    sr = 8000
    t = np.arange(sr) / sr
    buf = AudioBuffer(sr, np.sin(2 * np.pi * 200 * t))
    out = varispeed(buf, 2.0)
    assert out.frame_count == sr // 2
    spectrum = np.abs(np.fft.rfft(out.channel(0)))
    freqs = np.fft.rfftfreq(out.frame_count, 1 / sr)
    assert freqs[np.argmax(spectrum)] == pytest.approx(400, abs=4)


def test_varispeed_rejects_bad_rate():
    """Rates must be positive."""
    with pytest.raises(ValueError):
        varispeed(AudioBuffer(8000, [0.0]), 0.0)
