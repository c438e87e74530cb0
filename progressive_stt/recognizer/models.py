"""Recognizer result dataclass and raw-output normalisation.

WHY: Every recognizer backend (in-process model, HTTP server, test fake)
returns its own loosely-typed payload. The engine needs one well-typed
result per window with sane word timestamps, so that locking arithmetic
never meets NaN, negative, or reversed times.

HOW: TranscriptionWindowResult maps 1:1 to the recognizer contract
(text, words, latency, audio duration, real-time factor). from_raw()
accepts a mapping or an object with attributes and normalises it.
normalize_words() is the shared word cleaner.

RULES:
- Text comes from utterance_text, then text; always stripped
- Words with non-string or blank text are dropped
- Non-finite or negative times become 0; end_time is raised to start_time
- Non-finite confidence is dropped (None)
- Word times are window-relative; the engine shifts them to session time
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from webvtt_captions.core import to_finite_non_negative
from webvtt_captions.models import TimedWord


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def normalize_word(raw: Any) -> TimedWord | None:
    """Normalise one raw recognizer word, or return None if it has no text.

    Accepts ``text``/``word`` for the text and ``start_time``/``start``,
    ``end_time``/``end`` for timing, as either mapping keys or attributes.
    """
    if raw is None:
        return None

    text = _field(raw, "text")
    if text is None:
        text = _field(raw, "word")
    text = text.strip() if isinstance(text, str) else ""
    if not text:
        return None

    start_raw = _field(raw, "start_time")
    if start_raw is None:
        start_raw = _field(raw, "start")
    end_raw = _field(raw, "end_time")
    if end_raw is None:
        end_raw = _field(raw, "end")

    start = to_finite_non_negative(start_raw)
    end = to_finite_non_negative(end_raw)
    confidence = _field(raw, "confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, numbers.Real) or not math.isfinite(confidence):
        confidence = None

    return TimedWord(
        text=text,
        start_time=start,
        end_time=end if end >= start else start,
        confidence=float(confidence) if confidence is not None else None,
    )


def normalize_words(raw_words: Any) -> list[TimedWord]:
    """Normalise a raw word list; anything that is not a list/tuple yields []."""
    if not isinstance(raw_words, (list, tuple)):
        return []
    words = []
    for raw in raw_words:
        word = normalize_word(raw)
        if word is not None:
            words.append(word)
    return words


def transcription_text(raw: Any) -> str:
    """Pick the transcript text from a raw result (utterance_text, then text)."""
    if raw is None:
        return ""
    for name in ("utterance_text", "text"):
        value = _field(raw, name)
        if isinstance(value, str):
            return value.strip()
    return ""


@dataclass
class TranscriptionWindowResult:
    """Recognizer output for one audio window.

    Attributes:
        text: Full transcript text of the window.
        words: Word timeline, times relative to the window start.
        latency_seconds: Wall-clock time spent in the recognizer.
        audio_duration_seconds: Duration of the submitted window.
        rtf: Real-time factor (audio duration / latency).
    """

    text: str
    words: list[TimedWord] = field(default_factory=list)
    latency_seconds: float = 0.0
    audio_duration_seconds: float = 0.0
    rtf: float = 0.0

    @classmethod
    def from_raw(
        cls,
        raw: Any,
        latency_seconds: float | None = None,
        audio_duration_seconds: float | None = None,
    ) -> TranscriptionWindowResult:
        """Build a normalised result from a raw recognizer payload.

        Timing fields present in the payload (``latencySeconds``/
        ``latency_seconds`` etc.) are used unless explicit values are given.
        rtf is recomputed from duration and latency when the payload has none.
        """
        if latency_seconds is None:
            latency_seconds = to_finite_non_negative(
                _first_present(raw, "latency_seconds", "latencySeconds")
            )
        if audio_duration_seconds is None:
            audio_duration_seconds = to_finite_non_negative(
                _first_present(raw, "audio_duration_seconds", "audioDurationSeconds", "duration")
            )
        rtf = to_finite_non_negative(_first_present(raw, "rtf"))
        if not rtf and latency_seconds > 0 and audio_duration_seconds > 0:
            rtf = audio_duration_seconds / latency_seconds

        return cls(
            text=transcription_text(raw),
            words=normalize_words(_field(raw, "words") if raw is not None else None),
            latency_seconds=latency_seconds,
            audio_duration_seconds=audio_duration_seconds,
            rtf=rtf,
        )


def _first_present(raw: Any, *names: str) -> Any:
    if raw is None:
        return None
    for name in names:
        value = _field(raw, name)
        if value is not None:
            return value
    return None
