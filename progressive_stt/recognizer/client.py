"""Async HTTP recognizer for a remote transcription server.

WHY: The recognizer model often lives in a separate process or on a GPU
box. The streaming engine still wants a plain ``await transcribe(samples)``
call, so this module hides the HTTP upload behind the Recognizer contract.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. HTTPRecognizer is an
async context manager — enter it to open the connection pool, exit to close
it. Each window is encoded with soundfile as a 16-bit PCM mono WAV in
memory and uploaded as multipart/form-data to ``POST /api/transcribe/audio`` with
``word_timestamps=true``. The JSON response is normalised by
TranscriptionWindowResult.from_raw().

RULES:
- Always use the async context manager (async with HTTPRecognizer(...) as r:)
- base_url defaults to RECOGNIZER_BASE_URL from config
- Authorization: Bearer header only when an API key is configured
- Non-2xx responses raise RecognizerAPIError; transport errors propagate
- No retries; latency is measured client-side around the request
"""

from __future__ import annotations

import io
import logging
import time
from typing import Any

import httpx
import numpy as np
import soundfile as sf

from progressive_stt.config import (
    PARAKEET_SAMPLE_RATE,
    RECOGNIZER_BASE_URL,
    RECOGNIZER_TIMEOUT_S,
    load_recognizer_api_key,
)
from progressive_stt.recognizer.base import RecognizerAPIError, RecognizerNotOpenError
from progressive_stt.recognizer.models import TranscriptionWindowResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TRANSCRIBE_PATH = "/api/transcribe/audio"
_UPLOAD_FILENAME = "window.wav"
_MIN_LATENCY_S = 0.001


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float samples in [-1, 1] as 16-bit PCM mono WAV bytes."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    buf = io.BytesIO()
    sf.write(buf, clipped, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


class HTTPRecognizer:
    """Recognizer that uploads each window to a transcription server.

    WHY: Lets the engine drive a remote model exactly like a local one.

    HOW: Wraps httpx.AsyncClient with optional Bearer auth. Use as an async
    context manager so the connection pool is closed.

    RULES:
    - Use as: async with HTTPRecognizer() as recognizer: ...
    - api_key defaults to load_recognizer_api_key() from .env
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        sample_rate: int = PARAKEET_SAMPLE_RATE,
        language: str | None = None,
        timeout: float = RECOGNIZER_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or RECOGNIZER_BASE_URL).rstrip("/")
        self._api_key = api_key or load_recognizer_api_key()
        self._sample_rate = sample_rate
        self._language = language
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    async def __aenter__(self) -> HTTPRecognizer:
        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        kwargs: dict[str, Any] = {
            "base_url": self._base_url,
            "headers": headers,
            "timeout": httpx.Timeout(self._timeout, connect=30.0),
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RecognizerNotOpenError(
                "HTTPRecognizer must be used as an async context manager: "
                "async with HTTPRecognizer() as recognizer: ..."
            )
        return self._client

    async def transcribe(self, samples: np.ndarray) -> TranscriptionWindowResult:
        """Upload one window and return the normalised result.

        Raises:
            RecognizerNotOpenError: Called outside ``async with``.
            RecognizerAPIError: The server answered with a non-2xx status.
        """
        client = self._ensure_client()
        samples = np.asarray(samples, dtype=np.float32)
        duration = len(samples) / self._sample_rate

        data = {"word_timestamps": "true"}
        if self._language:
            data["language"] = self._language

        started = time.perf_counter()
        resp = await client.post(
            TRANSCRIBE_PATH,
            files={"file": (_UPLOAD_FILENAME, encode_wav(samples, self._sample_rate), "audio/wav")},
            data=data,
        )
        latency = max(_MIN_LATENCY_S, time.perf_counter() - started)

        if not resp.is_success:
            logger.warning("Recognizer returned HTTP %d for %s", resp.status_code, TRANSCRIBE_PATH)
            raise RecognizerAPIError(resp.status_code, resp.text)

        result = TranscriptionWindowResult.from_raw(
            resp.json() if resp.content else {},
            latency_seconds=latency,
            audio_duration_seconds=duration,
        )
        result.rtf = duration / latency if duration > 0 else 0.0
        logger.debug(
            "POST %s: %.2fs audio, %.3fs latency, %d words",
            TRANSCRIBE_PATH, duration, latency, len(result.words),
        )
        return result
