"""
Mix settings with environment overrides.
"""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields

from .compositor import DEFAULT_SLOT_TOLERANCE
from .decoding import SPEECH_SAMPLE_RATE
from .stretch import GRAIN_SIZE
from .trimming import DEFAULT_THRESHOLD

ENV_PREFIX = "DUBMIX_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


@dataclass
class MixSettings:
    """Values the mix core consumes but does not own."""

    speech_sample_rate: int = SPEECH_SAMPLE_RATE
    slot_tolerance: float = DEFAULT_SLOT_TOLERANCE
    background_volume: float = 0.0
    grain_size: int = GRAIN_SIZE
    silence_threshold: float = DEFAULT_THRESHOLD
    trim_speech: bool = True

    def __post_init__(self) -> None:
        if self.speech_sample_rate <= 0:
            raise ValueError("speech_sample_rate must be positive")
        if self.slot_tolerance < 0:
            raise ValueError("slot_tolerance must be >= 0")
        if self.background_volume < 0:
            raise ValueError("background_volume must be >= 0")
        if self.grain_size < 2:
            raise ValueError("grain_size must be at least 2")
        if self.silence_threshold < 0:
            raise ValueError("silence_threshold must be >= 0")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MixSettings":
        """Build settings from DUBMIX_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            raw = env.get(name)
            if raw is None or not raw.strip():
                continue
            cast: Callable[[str], object]
            if f.type in (bool, "bool"):
                cast = _parse_bool
            elif f.type in (int, "int"):
                cast = int
            else:
                cast = float
            try:
                kwargs[f.name] = cast(raw.strip())
            except ValueError as e:
                kind = getattr(f.type, "__name__", f.type)
                raise ValueError(f"{name} must be {kind}, got {raw!r}") from e
        return cls(**kwargs)
