"""Progressive transcription engine: windowing, locking and batch sweeps.

WHY: A live recording grows continuously, but recognizer calls are slow and
expensive. Re-transcribing the whole recording on every tick would grow
without bound, and showing raw per-window output would make finished text
flicker. The engine keeps a bounded window of unlocked audio, promotes words
that are safely inside the window to locked text, and never sends locked
audio to the recognizer again.

HOW: SmartProgressiveStreamingHandler owns the session state:
  fixed_sentences — locked text chunks (append-only)
  fixed_words     — locked words in session time (append-only)
  fixed_end_time  — seconds of audio irrevocably transcribed
  last pass       — buffer length and emission of the last recognizer pass

transcribe_incremental() takes the whole buffer so far and transcribes only
the audio after fixed_end_time. Once that window reaches max_window_seconds,
words ending before (window - sentence_buffer_seconds) are locked and the
shorter remaining window is transcribed again for the active text.
transcribe_progressive() replays a recording at emission_interval_seconds
cadence; transcribe_batch() sweeps it window by window with no pacing.

RULES:
- Buffers under MIN_AUDIO_SECONDS never reach the recognizer; they get the
  locked text with no active text
- A buffer whose length is unchanged since the last pass gets that pass's
  emission again, without a recognizer call
- Lock decisions are applied only after every recognizer call of the step
  has succeeded; recognizer errors propagate and leave state untouched
- fixed_end_time never decreases
- transcribe_batch always advances by at least 0.25 s rounded up to whole
  samples (one sample minimum); its window positions are sample indices
- Every batch/progressive sequence ends with exactly one is_final emission
- One engine instance serves one session; calls must not overlap
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import replace

import numpy as np

from progressive_stt.config import MIN_AUDIO_SECONDS, StreamingConfig
from progressive_stt.core.ir import PartialTranscription, TranscriptionMetadata
from progressive_stt.recognizer.base import Recognizer
from progressive_stt.recognizer.models import TranscriptionWindowResult
from webvtt_captions.models import TimedWord

logger = logging.getLogger(__name__)

_MIN_BATCH_PROGRESS_S = 0.25


def _as_samples(audio: np.ndarray | Sequence[float]) -> np.ndarray:
    return np.asarray(audio, dtype=np.float32).reshape(-1)


def _metadata(result: TranscriptionWindowResult) -> TranscriptionMetadata:
    return TranscriptionMetadata(
        latency_seconds=result.latency_seconds,
        audio_duration_seconds=result.audio_duration_seconds,
        rtf=result.rtf,
    )


def _join_words(words: Sequence[TimedWord]) -> str:
    return " ".join(word.text for word in words).strip()


def _shift(words: Sequence[TimedWord], offset: float) -> list[TimedWord]:
    return [word.shifted(offset) for word in words]


class SmartProgressiveStreamingHandler:
    """Turns a growing audio buffer into locked and active transcript text.

    Args:
        recognizer: Any object with ``async transcribe(samples)`` returning
            a TranscriptionWindowResult (see recognizer.base.Recognizer).
        config: Streaming settings; validated on construction.
        sleep: Pacing coroutine for transcribe_progressive(). Defaults to
            asyncio.sleep; pass a no-op for offline replay or tests.

    Raises:
        ConfigError: If the configuration is invalid.
    """

    def __init__(
        self,
        recognizer: Recognizer,
        config: StreamingConfig | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._recognizer = recognizer
        self.config = (config or StreamingConfig()).validate()
        self._sleep = sleep
        self.reset()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget all locked text and words."""
        self._fixed_sentences: list[str] = []
        self._fixed_words: list[TimedWord] = []
        self._fixed_end_time = 0.0
        self._last_transcribed_length = 0
        self._last_partial: PartialTranscription | None = None

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    @property
    def fixed_text(self) -> str:
        return " ".join(self._fixed_sentences).strip()

    @property
    def fixed_words(self) -> list[TimedWord]:
        return list(self._fixed_words)

    @property
    def fixed_end_time(self) -> float:
        return self._fixed_end_time

    def _lock(self, words: Sequence[TimedWord], offset: float) -> None:
        text = _join_words(words)
        if text:
            self._fixed_sentences.append(text)
        self._fixed_words.extend(_shift(words, offset))

    def _window_samples(self) -> int:
        """max_window_seconds as a whole number of samples (at least one)."""
        return max(1, int(round(self.config.max_window_seconds * self.sample_rate)))

    def _lockable(self, result: TranscriptionWindowResult, window_duration: float) -> tuple[float, list[TimedWord]]:
        cutoff = window_duration - self.config.sentence_buffer_seconds
        return cutoff, [word for word in result.words if word.end_time < cutoff]

    # ------------------------------------------------------------------
    # Incremental (live) transcription
    # ------------------------------------------------------------------

    async def transcribe_incremental(self, audio: np.ndarray | Sequence[float]) -> PartialTranscription:
        """Transcribe the unlocked tail of the buffer captured so far.

        ``audio`` is the whole recording up to now; each call is expected to
        carry at least as many samples as the previous one.
        """
        samples = _as_samples(audio)
        sample_rate = self.sample_rate
        timestamp = len(samples) / sample_rate

        if len(samples) == self._last_transcribed_length and self._last_partial is not None:
            return replace(self._last_partial, timestamp=timestamp, words=list(self._last_partial.words))
        if len(samples) < sample_rate * MIN_AUDIO_SECONDS:
            return PartialTranscription(
                fixed_text=self.fixed_text,
                active_text="",
                timestamp=timestamp,
                is_final=False,
                words=list(self._fixed_words),
            )

        window_base = self._fixed_end_time
        window = samples[int(math.floor(window_base * sample_rate)):]
        result = await self._recognizer.transcribe(window)
        active_base = window_base

        lockable: list[TimedWord] = []
        window_duration = len(window) / sample_rate
        if len(window) >= self._window_samples() and result.words:
            cutoff, lockable = self._lockable(result, window_duration)
            if lockable:
                new_end_time = self._fixed_end_time + lockable[-1].end_time
                logger.debug(
                    "Window %.2fs >= %.2fs: locking %d words before %.2fs, fixed end %.2fs -> %.2fs",
                    window_duration, self.config.max_window_seconds, len(lockable),
                    cutoff, self._fixed_end_time, new_end_time,
                )
                result = await self._recognizer.transcribe(samples[int(math.floor(new_end_time * sample_rate)):])
                active_base = new_end_time

        # Both recognizer calls succeeded; commit.
        if lockable:
            self._lock(lockable, window_base)
            self._fixed_end_time = active_base
        self._last_transcribed_length = len(samples)

        partial = PartialTranscription(
            fixed_text=self.fixed_text,
            active_text=result.text.strip(),
            timestamp=timestamp,
            is_final=False,
            words=self._fixed_words + _shift(result.words, active_base),
            metadata=_metadata(result),
        )
        self._last_partial = partial
        return replace(partial, words=list(partial.words))

    async def transcribe_progressive(self, audio: np.ndarray | Sequence[float]) -> AsyncIterator[PartialTranscription]:
        """Replay a recording as if it were live, one emission per interval.

        Resets the session first. Yields transcribe_incremental() results on
        growing prefixes, pausing emission_interval_seconds between them,
        then one is_final result for the whole recording.
        """
        self.reset()
        samples = _as_samples(audio)
        sample_rate = self.sample_rate
        interval = self.config.emission_interval_seconds
        total_duration = len(samples) / sample_rate

        current_time = 0.0
        while current_time < total_duration:
            current_time += interval
            end = min(int(math.floor(current_time * sample_rate)), len(samples))
            yield await self.transcribe_incremental(samples[:end])
            await self._sleep(interval)

        final = await self.transcribe_incremental(samples)
        final.is_final = True
        yield final

    # ------------------------------------------------------------------
    # Batch (offline) transcription
    # ------------------------------------------------------------------

    async def transcribe_batch(self, audio: np.ndarray | Sequence[float]) -> AsyncIterator[PartialTranscription]:
        """Sweep a recording window by window as fast as the recognizer allows.

        Resets the session first. Full-size windows lock the words before
        the sentence buffer; a full window with nothing lockable locks its
        whole text and advances by half a window. The last, shorter window
        is final.

        The sweep position is kept in whole samples, so "full window" is an
        exact integer comparison and every window starts on a sample.
        """
        self.reset()
        samples = _as_samples(audio)
        sample_rate = self.sample_rate
        total = len(samples)
        total_duration = total / sample_rate
        window_size = self._window_samples()
        min_progress = max(1, int(math.ceil(_MIN_BATCH_PROGRESS_S * sample_rate)))

        start_idx = 0
        emitted_final = False
        last: PartialTranscription | None = None

        while start_idx < total:
            end_idx = min(start_idx + window_size, total)
            window_start = start_idx / sample_rate
            window_end = end_idx / sample_rate
            window_duration = (end_idx - start_idx) / sample_rate

            result = await self._recognizer.transcribe(samples[start_idx:end_idx])

            if end_idx - start_idx >= window_size:
                cutoff, lockable = self._lockable(result, window_duration)
                if lockable:
                    self._lock(lockable, window_start)
                    next_idx = start_idx + int(round(lockable[-1].end_time * sample_rate))
                    active = [word for word in result.words if word.end_time >= cutoff]
                    active_text = _join_words(active)
                    words = self._fixed_words + _shift(active, window_start)
                else:
                    text = result.text.strip()
                    if text:
                        self._fixed_sentences.append(text)
                    next_idx = start_idx + window_size // 2
                    active_text = ""
                    words = self._fixed_words + _shift(result.words, window_start)
                    logger.debug(
                        "No lockable words in window %.2f-%.2fs; locking window text and advancing by half",
                        window_start, window_end,
                    )

                if next_idx <= start_idx:
                    next_idx = min(end_idx, start_idx + min_progress)
                    logger.debug("Forcing batch progress to %.3fs", next_idx / sample_rate)
                start_idx = next_idx
                self._fixed_end_time = max(self._fixed_end_time, start_idx / sample_rate)

                last = PartialTranscription(
                    fixed_text=self.fixed_text,
                    active_text=active_text,
                    timestamp=window_end,
                    is_final=False,
                    words=words,
                    metadata=_metadata(result),
                )
                yield last
                continue

            text = result.text.strip()
            if text:
                self._fixed_sentences.append(text)
            self._fixed_words.extend(_shift(result.words, window_start))
            start_idx = end_idx
            self._fixed_end_time = max(self._fixed_end_time, window_end)
            emitted_final = True
            yield PartialTranscription(
                fixed_text=self.fixed_text,
                active_text="",
                timestamp=window_end,
                is_final=True,
                words=list(self._fixed_words),
                metadata=_metadata(result),
            )

        if last is not None and not emitted_final:
            yield PartialTranscription(
                fixed_text=self.fixed_text,
                active_text="",
                timestamp=total_duration,
                is_final=True,
                words=list(self._fixed_words),
                metadata=last.metadata,
            )

    async def transcribe_batch_latest(self, audio: np.ndarray | Sequence[float]) -> PartialTranscription:
        """Run transcribe_batch() to completion and return its last emission."""
        samples = _as_samples(audio)
        last: PartialTranscription | None = None
        async for partial in self.transcribe_batch(samples):
            last = partial
        if last is not None:
            return last
        return PartialTranscription(
            fixed_text="",
            active_text="",
            timestamp=len(samples) / self.sample_rate,
            is_final=False,
        )

    async def finalize(self, audio: np.ndarray | Sequence[float]) -> str:
        """Run one last incremental pass and return the full text."""
        partial = await self.transcribe_incremental(audio)
        return " ".join(part for part in (partial.fixed_text, partial.active_text) if part.strip()).strip()
