"""CLI wrapper for the WebVTT caption library.

WHY: Word-level JSON from any recognizer can be turned into a .vtt file
without running the transcription engine, and existing .vtt files can be
inspected as JSON cues. Supports `python -m webvtt_captions`.

HOW: Reads the input (file path or "-" for stdin). If it looks like WebVTT
it is parsed and dumped as JSON cues; otherwise it is read as timed-word
JSON, segmented, and serialised to WebVTT.

RULES:
- Usage:
    python -m webvtt_captions words.json output.vtt
    python -m webvtt_captions words.json              (VTT to stdout)
    python -m webvtt_captions captions.vtt            (JSON cues to stdout)
    cat words.json | python -m webvtt_captions - output.vtt
- Accepted word JSON: a list of words, a list of segments with nested
  "words", or an object with a top-level "words" list.
- Exit codes: 0 = success, 1 = error.
- Progress messages go to stderr; output goes to stdout if no output file.
"""

import argparse
import dataclasses
import json
import sys
from typing import Any, List, Optional

from .codec import looks_like_webvtt, parse_webvtt_cues, serialize_webvtt_cues
from .core import segment_words_into_webvtt_cues
from .models import TimedWord
from .presets import DEFAULT_OPTIONS


def extract_words(data: Any) -> List[TimedWord]:
    """Pull timed words out of the JSON shapes recognizers commonly emit."""
    if isinstance(data, dict):
        data = data.get("words", [])
    if not isinstance(data, list):
        return []

    words = []  # type: List[TimedWord]
    for item in data:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("words"), list):
            words.extend(TimedWord.from_dict(w) for w in item["words"] if isinstance(w, dict))
        elif any(key in item for key in ("text", "word")):
            words.append(TimedWord.from_dict(item))
    return words


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webvtt_captions",
        description="Segment timed-word JSON into WebVTT captions, or dump a WebVTT file as JSON cues.",
    )
    parser.add_argument("input", help="Input file (timed-word JSON or WebVTT), or '-' for stdin.")
    parser.add_argument("output", nargs="?", default=None, help="Output file (default: stdout).")
    parser.add_argument("--max-cue-chars", type=int, default=DEFAULT_OPTIONS.max_cue_chars)
    parser.add_argument("--max-cue-duration", type=float, default=DEFAULT_OPTIONS.max_cue_duration_seconds)
    parser.add_argument("--min-cue-duration", type=float, default=DEFAULT_OPTIONS.min_cue_duration_seconds)
    parser.add_argument("--max-words-per-cue", type=int, default=DEFAULT_OPTIONS.max_words_per_cue)
    parser.add_argument("--max-gap", type=float, default=DEFAULT_OPTIONS.max_inter_word_gap_seconds)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the caption CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    if args.input == "-":
        raw = sys.stdin.read()
    else:
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            print("Error: {}".format(e), file=sys.stderr)
            sys.exit(1)

    if looks_like_webvtt(raw):
        cues = parse_webvtt_cues(raw)
        output = json.dumps([cue.to_dict() for cue in cues], indent=2, ensure_ascii=False) + "\n"
        summary = "Parsed {} cues".format(len(cues))
    else:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            print("Error: Could not parse JSON input: {}".format(e), file=sys.stderr)
            sys.exit(1)

        words = extract_words(data)
        if not words:
            print("Error: No words found in input", file=sys.stderr)
            sys.exit(1)

        options = dataclasses.replace(
            DEFAULT_OPTIONS,
            max_cue_chars=args.max_cue_chars,
            max_cue_duration_seconds=args.max_cue_duration,
            min_cue_duration_seconds=args.min_cue_duration,
            max_words_per_cue=args.max_words_per_cue,
            max_inter_word_gap_seconds=args.max_gap,
        )
        cues = segment_words_into_webvtt_cues(words, options)
        output = serialize_webvtt_cues(cues)
        summary = "Wrote {} cues".format(len(cues))

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print("{} to {}".format(summary, args.output), file=sys.stderr)
    else:
        sys.stdout.write(output)


if __name__ == "__main__":
    main()
