"""
CLI entry point for the spectrogram renderer.

Usage:
    spectrograph <audio_file> [options]
    python -m spectrograph <audio_file> [options]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from spectrograph.config import PROFILES, SpectrogramConfig
from spectrograph.errors import SpectrographError
from spectrograph.io.exporter import SpectrogramExporter
from spectrograph.io.source import open_waveform
from spectrograph.scheduler import TimeSliceScheduler
from spectrograph.session import RenderSession


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  block {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  block {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spectrograph",
        description="Render a scrolling spectrogram image from an audio file",
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, flac, ogg; mp3 with --no-streaming)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output path (default: <audio>_spectrogram.png)",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=sorted(PROFILES),
        help="Size profile (low: 640x160, medium: 1024x256, high: 2048x512)",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Image height (overrides profile)")
    parser.add_argument(
        "-b", "--block-size-unit", type=int, default=None,
        help="Half the samples per block (overrides profile)",
    )

    # Input
    parser.add_argument(
        "--no-streaming", action="store_true",
        help="Decode the whole file with librosa instead of reading blocks from disk",
    )
    parser.add_argument(
        "--sample-rate", type=int, default=None,
        help="Resample to this rate when decoding (only with --no-streaming)",
    )

    # Output
    parser.add_argument(
        "-f", "--format", type=str, default="png",
        choices=list(SpectrogramExporter.FORMATS),
        help="Output format (default: png)",
    )
    parser.add_argument(
        "--metadata", action="store_true",
        help="Also write a JSON sidecar next to the image",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    try:
        config = SpectrogramConfig.from_profile(
            args.profile,
            width=args.width,
            height=args.height,
            block_size_unit=args.block_size_unit,
            sample_rate=args.sample_rate,
            streaming=False if args.no_streaming else None,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output = args.output
    if output is None:
        suffix = ".npy" if args.format == "numpy" else ".png"
        output = args.audio.with_name(f"{args.audio.stem}_spectrogram{suffix}")

    print(f"Rendering spectrogram: {args.audio}")
    t0 = time.time()

    try:
        source = open_waveform(
            args.audio,
            streaming=config.streaming,
            sample_rate=config.sample_rate,
        )
        with RenderSession(source, block_size_unit=config.block_size_unit) as session:
            session.set_image_size(config.width, config.height)

            print(f"  Channels: {session.channel_count}")
            print(f"  Duration: {session.total_samples / max(session.sample_rate, 1):.1f}s")
            print(f"  Blocks: {session.get_total_blocks()} x {session.block_size} samples")
            print(f"  Image: {config.width}x{config.height}")

            session.add_listener(
                lambda: _progress_bar(session.blocks_processed, session.get_total_blocks())
            )

            scheduler = TimeSliceScheduler()
            scheduler.add_client(session)
            while scheduler.clients:
                scheduler.run_once()
                if not session.is_complete():
                    _progress_bar(session.blocks_processed, session.get_total_blocks())

            exporter = SpectrogramExporter()
            written = exporter.export(session.get_image(), output, format=args.format)
            if args.metadata:
                exporter.export_metadata(session, written.with_suffix(".json"))
    except SpectrographError as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nDone! Took {time.time() - t0:.1f}s")
    print(f"  Output: {written}")


if __name__ == "__main__":
    main()
