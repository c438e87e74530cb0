"""Tests for the recognizer backends and result normalisation.

WHY: The engine trusts TranscriptionWindowResult blindly, so every backend
must hand it clean words and sane timing. The HTTP backend must also speak
the server's upload format and surface server errors as typed exceptions.

HOW: Normalisation is tested on raw dicts and attribute objects.
ModelRecognizer wraps small fake model classes (sync and async).
HTTPRecognizer runs against httpx.MockTransport, so no network is used.

RULES:
- No real models and no real HTTP
- API keys are passed explicitly so a developer's .env cannot leak in
"""

from __future__ import annotations

import asyncio
import io
import json
from types import SimpleNamespace

import httpx
import numpy as np
import pytest
import soundfile as sf

from progressive_stt.recognizer import (
    HTTPRecognizer,
    ModelRecognizer,
    Recognizer,
    RecognizerAPIError,
    RecognizerError,
    RecognizerNotOpenError,
    TranscriptionWindowResult,
    normalize_word,
    normalize_words,
)
from progressive_stt.recognizer.client import TRANSCRIBE_PATH, encode_wav
from progressive_stt.recognizer.local import DEFAULT_TRANSCRIBE_OPTIONS


class SyncModel:
    """Fake local model returning a fixed payload."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def transcribe(self, audio, sample_rate, **options):
        self.calls.append((len(audio), sample_rate, options))
        return self.payload


class AsyncModel(SyncModel):
    async def transcribe(self, audio, sample_rate, **options):
        self.calls.append((len(audio), sample_rate, options))
        return self.payload


PAYLOAD = {
    "utterance_text": " hello world ",
    "words": [
        {"text": "hello", "start_time": 0.1, "end_time": 0.4, "confidence": 0.9},
        {"text": "world", "start_time": 0.5, "end_time": 0.9},
    ],
}


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


class TestNormalizeWord:
    """normalize_word() repairs or drops raw recognizer words."""

    def test_mapping_with_short_keys(self):
        word = normalize_word({"word": " hi ", "start": 1.0, "end": 1.5})
        assert word.text == "hi"
        assert word.start_time == 1.0
        assert word.end_time == 1.5

    def test_attribute_object(self):
        word = normalize_word(SimpleNamespace(text="yo", start_time=2.0, end_time=2.5, confidence=0.7))
        assert word.text == "yo"
        assert word.confidence == 0.7

    @pytest.mark.parametrize("raw", [None, {"text": ""}, {"text": "   "}, {"text": 5}, {}])
    def test_blank_or_missing_text_dropped(self, raw):
        assert normalize_word(raw) is None

    def test_bad_times_repaired(self):
        word = normalize_word({"text": "x", "start_time": float("nan"), "end_time": -2})
        assert (word.start_time, word.end_time) == (0.0, 0.0)
        reversed_word = normalize_word({"text": "x", "start_time": 3.0, "end_time": 1.0})
        assert reversed_word.end_time == 3.0

    def test_non_finite_confidence_dropped(self):
        word = normalize_word({"text": "x", "start_time": 0, "end_time": 1, "confidence": float("inf")})
        assert word.confidence is None

    def test_normalize_words_filters(self):
        words = normalize_words([{"text": "a", "start_time": 0, "end_time": 1}, {"text": ""}, None])
        assert [w.text for w in words] == ["a"]

    @pytest.mark.parametrize("raw", [None, "words", {"text": "a"}])
    def test_normalize_words_non_list(self, raw):
        assert normalize_words(raw) == []


class TestFromRaw:
    """TranscriptionWindowResult.from_raw() on assorted payloads."""

    def test_utterance_text_preferred(self):
        result = TranscriptionWindowResult.from_raw({"utterance_text": "a", "text": "b"})
        assert result.text == "a"

    def test_text_fallback_and_stripped(self):
        result = TranscriptionWindowResult.from_raw({"text": "  spoken  "})
        assert result.text == "spoken"

    def test_none_payload(self):
        result = TranscriptionWindowResult.from_raw(None)
        assert result.text == ""
        assert result.words == []

    def test_timing_from_payload(self):
        result = TranscriptionWindowResult.from_raw(
            {"text": "a", "latencySeconds": 0.5, "audioDurationSeconds": 2.0}
        )
        assert result.latency_seconds == 0.5
        assert result.audio_duration_seconds == 2.0
        assert result.rtf == pytest.approx(4.0)

    def test_explicit_timing_wins(self):
        result = TranscriptionWindowResult.from_raw(
            {"text": "a", "latency_seconds": 9.0, "rtf": 1.0},
            latency_seconds=0.25,
            audio_duration_seconds=1.0,
        )
        assert result.latency_seconds == 0.25
        assert result.rtf == 1.0


# ---------------------------------------------------------------------------
# ModelRecognizer
# ---------------------------------------------------------------------------


class TestModelRecognizer:
    """In-process model adapter."""

    def test_rejects_model_without_transcribe(self):
        with pytest.raises(TypeError):
            ModelRecognizer(object())

    def test_sync_model(self):
        model = SyncModel(PAYLOAD)
        recognizer = ModelRecognizer(model, sample_rate=16_000)
        result = asyncio.run(recognizer.transcribe(np.zeros(8_000, dtype=np.float32)))

        assert result.text == "hello world"
        assert [w.text for w in result.words] == ["hello", "world"]
        assert result.audio_duration_seconds == pytest.approx(0.5)
        assert result.latency_seconds >= 0.001
        assert result.rtf == pytest.approx(0.5 / result.latency_seconds)
        assert model.calls == [(8_000, 16_000, DEFAULT_TRANSCRIBE_OPTIONS)]

    def test_async_model_and_custom_options(self):
        model = AsyncModel(PAYLOAD)
        recognizer = ModelRecognizer(model, sample_rate=8_000, transcribe_options={"beam": 4})
        result = asyncio.run(recognizer.transcribe([0.0] * 800))
        assert result.text == "hello world"
        assert model.calls == [(800, 8_000, {"beam": 4})]

    def test_empty_audio_has_zero_rtf(self):
        recognizer = ModelRecognizer(SyncModel({"text": ""}))
        result = asyncio.run(recognizer.transcribe(np.zeros(0, dtype=np.float32)))
        assert result.rtf == 0.0
        assert result.audio_duration_seconds == 0.0

    def test_model_errors_propagate(self):
        class Broken:
            def transcribe(self, audio, sample_rate, **options):
                raise RuntimeError("model crashed")

        recognizer = ModelRecognizer(Broken())
        with pytest.raises(RuntimeError, match="model crashed"):
            asyncio.run(recognizer.transcribe(np.zeros(10, dtype=np.float32)))

    def test_warm_up_transcribes_one_second(self):
        model = SyncModel({"text": ""})
        recognizer = ModelRecognizer(model, sample_rate=100)
        asyncio.run(recognizer.warm_up())
        assert model.calls[0][:2] == (100, 100)

    def test_satisfies_protocol(self):
        assert isinstance(ModelRecognizer(SyncModel(PAYLOAD)), Recognizer)


# ---------------------------------------------------------------------------
# HTTPRecognizer
# ---------------------------------------------------------------------------


def _run_http(handler, samples, **kwargs):
    async def _go():
        transport = httpx.MockTransport(handler)
        async with HTTPRecognizer(
            base_url="http://recognizer.test",
            sample_rate=16_000,
            transport=transport,
            **kwargs,
        ) as recognizer:
            return await recognizer.transcribe(samples)

    return asyncio.run(_go())


class TestHTTPRecognizer:
    """Remote recognizer over httpx.MockTransport."""

    def test_uploads_wav_and_parses_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = request.read()
            return httpx.Response(200, json=PAYLOAD)

        result = _run_http(handler, np.zeros(16_000, dtype=np.float32), api_key="secret", language="en")

        assert seen["path"] == TRANSCRIBE_PATH
        assert seen["auth"] == "Bearer secret"
        assert b'name="word_timestamps"' in seen["body"]
        assert b'name="language"' in seen["body"]
        assert b'filename="window.wav"' in seen["body"]
        assert b"RIFF" in seen["body"]
        assert result.text == "hello world"
        assert result.audio_duration_seconds == pytest.approx(1.0)

    def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="overloaded")

        with pytest.raises(RecognizerAPIError) as excinfo:
            _run_http(handler, np.zeros(100, dtype=np.float32), api_key="k")

        assert excinfo.value.status_code == 503
        assert excinfo.value.message == "overloaded"
        assert "503" in str(excinfo.value)
        assert isinstance(excinfo.value, RecognizerError)

    @pytest.mark.parametrize("status", [201, 202, 203])
    def test_any_2xx_status_accepted(self, status):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=json.dumps({"text": "ok"}).encode())

        result = _run_http(handler, np.zeros(100, dtype=np.float32), api_key="k")
        assert result.text == "ok"

    def test_no_content_gives_empty_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        result = _run_http(handler, np.zeros(100, dtype=np.float32), api_key="k")
        assert result.text == ""
        assert result.words == []

    def test_redirect_status_rejected(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": "http://elsewhere.test/"})

        with pytest.raises(RecognizerAPIError) as excinfo:
            _run_http(handler, np.zeros(100, dtype=np.float32), api_key="k")
        assert excinfo.value.status_code == 302

    def test_transcribe_outside_context_raises(self):
        recognizer = HTTPRecognizer(base_url="http://recognizer.test", api_key="k")
        with pytest.raises(RecognizerNotOpenError):
            asyncio.run(recognizer.transcribe(np.zeros(10, dtype=np.float32)))


class TestEncodeWav:
    """In-memory WAV encoding of float windows."""

    def test_round_trips_through_soundfile(self):
        samples = np.array([0.0, 0.5, -0.5, 2.0], dtype=np.float32)
        data, rate = sf.read(io.BytesIO(encode_wav(samples, 8_000)), dtype="float32")
        assert rate == 8_000
        assert len(data) == 4
        assert data[1] == pytest.approx(0.5, abs=1e-3)
        assert data[3] == pytest.approx(1.0, abs=1e-3)
