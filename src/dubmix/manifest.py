"""
JSON segment manifests: the hand-off format from the speech workflow.

A manifest is ``{"segments": [...]}`` or a bare list. Each entry carries
``id``, ``start``, ``end``, ``source_text``, ``translated_text`` and at most one
of ``audio_base64`` (raw 24 kHz PCM16 or container bytes) or ``audio_path``
(relative to the manifest file).
"""

import json
import logging
from pathlib import Path
from typing import Any

from .config import MixSettings
from .decoding import decode_base64_speech, decode_speech
from .errors import DubMixError
from .models import AudioBuffer, DubSegment

logger = logging.getLogger("dubmix")

_ALIASES = {
    "source_text": ("source_text", "originalText", "text"),
    "translated_text": ("translated_text", "translatedText"),
}


def _pick(entry: dict[str, Any], key: str) -> Any:
    for name in _ALIASES[key]:
        if name in entry:
            return entry[name]
    return None


def _load_audio(
    entry: dict[str, Any], base_dir: Path, settings: MixSettings
) -> AudioBuffer | None:
    if entry.get("audio_base64"):
        return decode_base64_speech(
            entry["audio_base64"],
            sample_rate=settings.speech_sample_rate,
            trim=settings.trim_speech,
            threshold=settings.silence_threshold,
        )
    if entry.get("audio_path"):
        path = base_dir / entry["audio_path"]
        return decode_speech(
            path.read_bytes(),
            sample_rate=settings.speech_sample_rate,
            trim=settings.trim_speech,
            threshold=settings.silence_threshold,
        )
    return None


def parse_segments(
    data: Any, base_dir: Path | None = None, settings: MixSettings | None = None
) -> list[DubSegment]:
    """Build DubSegments from decoded manifest JSON."""
    settings = settings or MixSettings()
    base_dir = base_dir or Path.cwd()
    entries = data.get("segments", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError("manifest must be a list of segments or {'segments': [...]}")

    segments: list[DubSegment] = []
    failures: list = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"segment {i}: entry must be an object, got {type(entry).__name__}")
        if "start" not in entry or "end" not in entry:
            raise ValueError(f"segment {i}: missing 'start'/'end'")
        seg_id = entry.get("id", i)
        try:
            start, end = float(entry["start"]), float(entry["end"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"segment {i}: 'start'/'end' must be numbers") from e
        seg = DubSegment(
            id=seg_id,
            start=start,
            end=end,
            source_text=_pick(entry, "source_text") or "",
            translated_text=_pick(entry, "translated_text"),
        )
        try:
            audio = _load_audio(entry, base_dir, settings)
        except (DubMixError, OSError) as e:
            # No audio for this segment; the mix renders it as silence.
            logger.warning(f"Segment {seg_id}: could not decode audio: {e}")
            failures.append(seg_id)
            audio = None
        segments.append(seg.with_audio(audio))

    if failures:
        logger.warning(
            f"{len(failures)} segment(s) without usable audio (rendered as silence): {failures}"
        )
    return segments


def load_manifest(path: str | Path, settings: MixSettings | None = None) -> list[DubSegment]:
    """Read a manifest file and decode any audio it references."""
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    return parse_segments(data, base_dir=p.parent, settings=settings)

