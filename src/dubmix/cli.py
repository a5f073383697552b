"""
Command-line interface: mix dubbed segments onto the original timeline.
"""

import argparse
import logging
import pathlib
import sys

from dotenv import load_dotenv
from pydub.exceptions import CouldntEncodeError

from .compositor import composite
from .config import MixSettings
from .decoding import buffer_to_audio_segment, decode_file
from .errors import DubMixError, UnsupportedFormat
from .manifest import load_manifest
from .models import AudioBuffer
from .wav import write_wav

logger = logging.getLogger("dubmix")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(
    argv: list[str] | None = None, settings: MixSettings | None = None
) -> argparse.Namespace:
    """Parse command line arguments."""
    settings = settings or MixSettings()
    ap = argparse.ArgumentParser(description="Fit dubbed segments into their slots and export WAV")

    # IO
    ap.add_argument("--input", required=True, help="Original audio/video file")
    ap.add_argument(
        "--segments",
        required=True,
        help="Segment manifest JSON. Fields: id,start,end,source_text,translated_text,"
        "audio_base64|audio_path",
    )
    ap.add_argument(
        "--output",
        default="output_dubbed.wav",
        help="Mixed audio file; non-.wav suffixes are exported through pydub/ffmpeg",
    )

    # Timing / mix
    ap.add_argument(
        "--slot-tolerance",
        type=float,
        default=settings.slot_tolerance,
        help="No stretch if |clip - slot| <= tolerance (seconds)",
    )
    ap.add_argument(
        "--background-volume",
        type=float,
        default=settings.background_volume,
        help="Gain of the original track under the dub (0 mutes it)",
    )
    ap.add_argument(
        "--grain-size", type=int, default=settings.grain_size, help="Stretch grain in frames"
    )
    ap.add_argument(
        "--no-trim", action="store_true", help="Keep leading/trailing silence of synthesized clips"
    )

    # Logging
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return ap.parse_args(argv)


def export_mix(mix: AudioBuffer, path: str | pathlib.Path) -> pathlib.Path:
    """Write ``mix`` as WAV, or in the format named by the file suffix via pydub."""
    out = pathlib.Path(path)
    fmt = out.suffix.lower().lstrip(".")
    if fmt in ("", "wav"):
        return write_wav(mix, out)
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        buffer_to_audio_segment(mix).export(str(out), format=fmt).close()
    except CouldntEncodeError as e:
        raise UnsupportedFormat(f"could not export {fmt} audio", detail=str(e)) from e
    return out


def run_mix(args: argparse.Namespace, settings: MixSettings) -> pathlib.Path:
    """Decode, composite and write the mix described by ``args``."""
    if args.no_trim:
        settings.trim_speech = False

    original = decode_file(args.input)
    logger.info(
        f"Original: {original.duration:.2f}s, {original.channel_count}ch @ {original.sample_rate}Hz"
    )
    segments = load_manifest(args.segments, settings)
    voiced = sum(1 for s in segments if s.audio is not None)
    logger.info(f"Loaded {len(segments)} segments ({voiced} with audio) from {args.segments}")

    mix = composite(
        original,
        segments,
        slot_tolerance=args.slot_tolerance,
        background_volume=args.background_volume,
        grain_size=args.grain_size,
        progress=True,
    )
    out = export_mix(mix, args.output)
    logger.info(f"Exported mixed audio ({mix.duration:.2f}s) -> {out}")
    return out


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    # Look for .env in the project root (parent of src directory)
    project_root = pathlib.Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    settings = MixSettings.from_env()
    args = parse_args(argv, settings)
    setup_logging(args.verbose)

    try:
        run_mix(args, settings)
    except (DubMixError, OSError, ValueError) as e:
        logger.error(f"Mix failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
