"""Shared test fixtures for the progressive_stt and webvtt_captions suites.

WHY: Several test modules need the same reference word timeline and the
same scripted recognizer. Centralizing them here avoids duplication and
keeps every test on the same sample data.

HOW: MUSIC_LIBRARY_WORDS is a real recognizer word timeline from a
lecture recording. The make_result fixture builds TranscriptionWindowResult
objects, and the scripted_recognizer fixture returns a factory for recognizers
whose ``transcribe`` is an AsyncMock with a side_effect list.

RULES:
- Word times are in seconds, as returned by the recognizer.
- Recognizer fakes never touch the network or a model.
- Fixtures return fresh copies; tests may mutate them freely.
"""

from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from progressive_stt.config import StreamingConfig
from progressive_stt.recognizer.models import TranscriptionWindowResult
from webvtt_captions.models import TimedWord


# ---------------------------------------------------------------------------
# Reference word timeline
# ---------------------------------------------------------------------------

MUSIC_LIBRARY_WORDS: List[Dict[str, Any]] = [
    {"text": "Our",          "start_time": 6.56,  "end_time": 6.96},
    {"text": "music",        "start_time": 6.96,  "end_time": 7.28},
    {"text": "library",      "start_time": 7.28,  "end_time": 7.76},
    {"text": "is",           "start_time": 7.76,  "end_time": 7.92},
    {"text": "home",         "start_time": 7.92,  "end_time": 8.16},
    {"text": "to",           "start_time": 8.16,  "end_time": 8.32},
    {"text": "many",         "start_time": 8.32,  "end_time": 8.56},
    {"text": "distinctive",  "start_time": 8.56,  "end_time": 9.12},
    {"text": "collections,", "start_time": 9.12,  "end_time": 9.68},
    {"text": "including",    "start_time": 9.68,  "end_time": 10.0},
    {"text": "the",          "start_time": 10.0,  "end_time": 10.16},
    {"text": "Hans",         "start_time": 10.16, "end_time": 10.48},
    {"text": "Moldenhauer",  "start_time": 10.64, "end_time": 11.44},
    {"text": "Collection.",  "start_time": 11.44, "end_time": 12.08},
]


def _make_result(text: str, words=(), latency: float = 0.05, duration: float = 1.0) -> TranscriptionWindowResult:
    """Build a recognizer result; words are (text, start, end) tuples."""
    return TranscriptionWindowResult(
        text=text,
        words=[TimedWord(text=w, start_time=s, end_time=e) for w, s, e in words],
        latency_seconds=latency,
        audio_duration_seconds=duration,
        rtf=duration / latency if latency else 0.0,
    )


@pytest.fixture
def make_result():
    """Builder for recognizer results: make_result("a b", [("a", 0, 1), ...])."""
    return _make_result


@pytest.fixture
def music_library_words():
    """The reference timeline as a list of dicts (fresh copy)."""
    return [dict(row) for row in MUSIC_LIBRARY_WORDS]


@pytest.fixture
def small_config():
    """10 Hz sample rate, 6 s windows, 2 s sentence buffer.

    Low sample rates keep test buffers tiny: 60 samples = one full window.
    """
    return StreamingConfig(
        emission_interval_seconds=0.5,
        max_window_seconds=6.0,
        sentence_buffer_seconds=2.0,
        sample_rate=10,
    )


@pytest.fixture
def scripted_recognizer():
    """Factory for recognizers with a scripted ``transcribe`` AsyncMock.

    ``scripted_recognizer(result)`` returns the same result on every call;
    ``scripted_recognizer([r1, r2, exc])`` returns/raises them in order.
    """
    def _factory(results):
        recognizer = MagicMock()
        if isinstance(results, list):
            recognizer.transcribe = AsyncMock(side_effect=results)
        else:
            recognizer.transcribe = AsyncMock(return_value=results)
        return recognizer

    return _factory
