"""Command-line interface for progressive transcription.

WHY: Users need a simple way to transcribe a recording from the terminal
and get captions, a plain transcript and IIIF annotations in one go. The
CLI wires together audio loading, the recognizer, the streaming engine,
the formatter registry and file saving behind a single command.

HOW: Uses argparse to accept an input file, the engine mode, window
settings, recognizer URL, output format selection and output directory.
Runs the async pipeline via asyncio.run(). Status messages go to stderr;
output files are saved next to the source (or to --output-dir).

RULES:
- Positional argument: input audio file path
- --mode batch (default) sweeps the file as fast as the recognizer allows;
  --mode progressive replays it at real-time cadence, printing each partial
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-transcript-2.txt)
- Status output goes to stderr (not stdout)
- Exit code 1 on errors, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from progressive_stt.audio import SUPPORTED_EXTENSIONS, is_supported_audio, load_audio
from progressive_stt.config import ConfigError, load_streaming_config
from progressive_stt.core.engine import SmartProgressiveStreamingHandler
from progressive_stt.core.ir import PartialTranscription, Transcript
from progressive_stt.formatters import FORMATTERS
from progressive_stt.formatters.base import FormatterOutput
from progressive_stt.recognizer.client import HTTPRecognizer


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Return {stem}{suffix} in output_dir, adding -2, -3... on conflict.

    The counter goes before the extension: "lecture-transcript-2.txt",
    "lecture-2.vtt".
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _describe_partial(partial: PartialTranscription) -> str:
    marker = "final" if partial.is_final else "partial"
    text = partial.fixed_text
    if partial.active_text:
        text = "{} [{}]".format(text, partial.active_text).strip()
    return "  {:7.2f}s {}: {}".format(partial.timestamp, marker, text)


def _parse_format_keys(formats: Optional[str]) -> List[str]:
    if not formats:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in formats.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            raise ValueError("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


async def _transcribe(
    engine: SmartProgressiveStreamingHandler,
    audio,
    mode: str,
) -> PartialTranscription:
    """Run the engine in the chosen mode and return the last emission."""
    stream = engine.transcribe_progressive(audio) if mode == "progressive" else engine.transcribe_batch(audio)
    last: Optional[PartialTranscription] = None
    async for partial in stream:
        _status(_describe_partial(partial))
        last = partial
    if last is None:
        return await engine.transcribe_batch_latest(audio)
    return last


async def _run_pipeline(args: argparse.Namespace) -> List[Path]:
    """Execute the full transcription pipeline and return the saved paths.

    Raises:
        ValueError: Bad input file, output directory, format or settings
            (includes ConfigError and AudioFormatError).
        RecognizerError: The recognizer failed.
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        raise ValueError("File not found: {}".format(input_path))
    if not is_supported_audio(input_path):
        raise ValueError(
            "Unsupported file type '{}'. Supported formats: {}".format(
                input_path.suffix.lower(), ", ".join(sorted(SUPPORTED_EXTENSIONS))
            )
        )

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        raise ValueError("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_format_keys(args.formats)
    config = load_streaming_config(
        emission_interval_seconds=args.emission_interval,
        max_window_seconds=args.max_window,
        sentence_buffer_seconds=args.sentence_buffer,
        sample_rate=args.sample_rate,
    )

    _status("Loading audio...")
    audio = load_audio(input_path, sample_rate=config.sample_rate)
    _status("  {:.2f}s of audio at {} Hz".format(len(audio) / config.sample_rate, config.sample_rate))

    async with HTTPRecognizer(
        base_url=args.recognizer_url,
        sample_rate=config.sample_rate,
        language=args.language,
    ) as recognizer:
        engine = SmartProgressiveStreamingHandler(recognizer, config)
        _status("Transcribing ({} mode)...".format(args.mode))
        last = await _transcribe(engine, audio, args.mode)

    transcript = Transcript.from_partial(last, input_path.name, language=args.language)
    _status("  {} words, {:.2f}s".format(len(transcript.words), transcript.duration_s))

    _status("Formatting output...")
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(transcript):
            saved_path = _save_output(output, input_path.stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="progressive_stt",
        description="Transcribe an audio file through a windowed speech recognizer and "
                    "produce WebVTT captions, a plain transcript and IIIF annotations.",
    )

    parser.add_argument("input_file", help="Path to the audio file to transcribe (16 kHz mono WAV/FLAC/OGG).")

    parser.add_argument(
        "--mode",
        choices=("batch", "progressive"),
        default="batch",
        help="batch: sweep the file window by window; progressive: replay it in "
             "real time, emitting a partial every interval (default: %(default)s).",
    )
    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    parser.add_argument(
        "--recognizer-url",
        default=None,
        help="Base URL of the transcription server (default: $RECOGNIZER_BASE_URL).",
    )
    parser.add_argument("--language", default="en", help="Spoken language, BCP 47 (default: %(default)s).")
    parser.add_argument("--sample-rate", type=int, default=None, help="Expected sample rate in Hz.")
    parser.add_argument("--max-window", type=float, default=None, help="Longest unlocked window in seconds.")
    parser.add_argument(
        "--sentence-buffer",
        type=float,
        default=None,
        help="Trailing seconds of each window whose words stay provisional.",
    )
    parser.add_argument(
        "--emission-interval",
        type=float,
        default=None,
        help="Seconds between emissions in progressive mode.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m progressive_stt``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except ConfigError as e:
        print("Error: invalid settings: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
