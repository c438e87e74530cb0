"""WebVTT caption library: word-to-cue segmentation and the WebVTT codec.

WHY: Both the progressive transcription engine (live caption preview) and
the export formatters need the same caption logic. This package keeps it in
one pure, stateless library with a small public API, so it can be used
without the engine or any recognizer.

HOW: segment_words_into_webvtt_cues() turns timed words into cues;
parse_webvtt_cues() / serialize_webvtt_cues() convert cues to and from
WebVTT text. Segmentation limits and language heuristics are passed in as a
CaptionSegmentationOptions value.

RULES:
- Every public function is pure — no global state, safe to call concurrently.
- The presets are frozen constants; derive variants with dataclasses.replace().
- Python 3.9 compatible (no match/case, no X | Y unions at runtime).
"""

from .codec import (
    format_timestamp,
    is_webvtt_body,
    is_webvtt_format,
    looks_like_webvtt,
    parse_timestamp,
    parse_webvtt_cues,
    serialize_webvtt_cues,
)
from .core import normalize_cue_text, segment_words_into_webvtt_cues
from .models import TimedWord, WebVttCue
from .presets import (
    CONNECTOR_WORDS,
    DEFAULT_OPTIONS,
    ENGLISH_RULES,
    BoundaryRules,
    CaptionSegmentationOptions,
)

__all__ = [
    "segment_words_into_webvtt_cues",
    "parse_webvtt_cues",
    "serialize_webvtt_cues",
    "is_webvtt_format",
    "is_webvtt_body",
    "looks_like_webvtt",
    "parse_timestamp",
    "format_timestamp",
    "normalize_cue_text",
    "TimedWord",
    "WebVttCue",
    "CaptionSegmentationOptions",
    "BoundaryRules",
    "DEFAULT_OPTIONS",
    "ENGLISH_RULES",
    "CONNECTOR_WORDS",
]
