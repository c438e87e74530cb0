"""In-process recognizer adapter for locally loaded ASR models.

WHY: Locally loaded models (Parakeet-style ONNX/MLX/NeMo wrappers) expose a
``transcribe(audio, sample_rate, **options)`` method that returns loosely
typed results and knows nothing about latency or real-time factor. The
engine needs the normalised Recognizer contract.

HOW: ModelRecognizer wraps such a model. Each call is timed with
time.perf_counter(); synchronous models run in a worker thread via
asyncio.to_thread() so the event loop stays responsive, coroutine models
are awaited directly. The raw result is normalised by
TranscriptionWindowResult.from_raw().

RULES:
- Latency is floored at 1 ms so rtf is always finite
- audio_duration_seconds = len(samples) / sample_rate
- rtf = audio_duration / latency, or 0 for empty audio
- warm_up() transcribes one second of silence (first-call JIT/graph build)
- Model exceptions propagate unchanged
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any

import numpy as np

from progressive_stt.config import PARAKEET_SAMPLE_RATE
from progressive_stt.recognizer.models import TranscriptionWindowResult

logger = logging.getLogger(__name__)

_MIN_LATENCY_S = 0.001

DEFAULT_TRANSCRIBE_OPTIONS: dict[str, Any] = {
    "returnTimestamps": True,
    "returnConfidences": True,
    "temperature": 1.0,
}


class ModelRecognizer:
    """Recognizer backed by an in-process model object.

    Args:
        model: Object with ``transcribe(audio, sample_rate, **options)``,
            sync or async, returning a mapping/object with text and words.
        sample_rate: Sample rate of the windows passed to transcribe().
        transcribe_options: Extra keyword arguments for the model call.
    """

    def __init__(
        self,
        model: Any,
        sample_rate: int = PARAKEET_SAMPLE_RATE,
        transcribe_options: dict[str, Any] | None = None,
    ) -> None:
        if not callable(getattr(model, "transcribe", None)):
            raise TypeError("model must provide a transcribe(audio, sample_rate, ...) method")
        self._model = model
        self._sample_rate = sample_rate
        self._options = dict(DEFAULT_TRANSCRIBE_OPTIONS if transcribe_options is None else transcribe_options)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    async def _call_model(self, samples: np.ndarray) -> Any:
        method = self._model.transcribe
        if inspect.iscoroutinefunction(method):
            return await method(samples, self._sample_rate, **self._options)
        result = await asyncio.to_thread(method, samples, self._sample_rate, **self._options)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def transcribe(self, samples: np.ndarray) -> TranscriptionWindowResult:
        samples = np.asarray(samples, dtype=np.float32)
        started = time.perf_counter()
        raw = await self._call_model(samples)
        latency = max(_MIN_LATENCY_S, time.perf_counter() - started)

        duration = len(samples) / self._sample_rate
        result = TranscriptionWindowResult.from_raw(
            raw,
            latency_seconds=latency,
            audio_duration_seconds=duration,
        )
        result.rtf = duration / latency if duration > 0 else 0.0
        logger.debug(
            "Transcribed %.2fs window in %.3fs (rtf %.1f, %d words)",
            duration, latency, result.rtf, len(result.words),
        )
        return result

    async def warm_up(self) -> None:
        """Run one throwaway transcription on a second of silence."""
        await self.transcribe(np.zeros(self._sample_rate, dtype=np.float32))
