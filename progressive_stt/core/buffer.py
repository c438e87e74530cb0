"""Growing audio buffer fed by capture chunks.

WHY: Live capture delivers audio in small chunks, but the engine always
wants the whole recording so far. AudioChunkBuffer is the accumulator in
between.

HOW: Chunks are kept in a list and concatenated lazily into one float32
array on get_buffer(); the concatenated result is cached until the next
append.

RULES:
- Chunks are converted to 1-D float32; empty chunks are ignored
- duration_seconds = total samples / sample_rate
- reset() empties the buffer
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from progressive_stt.config import PARAKEET_SAMPLE_RATE


class AudioChunkBuffer:
    """Accumulates mono audio chunks into one contiguous sample array."""

    def __init__(self, sample_rate: int = PARAKEET_SAMPLE_RATE) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0, got {!r}".format(sample_rate))
        self.sample_rate = sample_rate
        self._chunks: list[np.ndarray] = []
        self._length = 0
        self._joined: np.ndarray | None = None

    def append_chunk(self, chunk: np.ndarray | Sequence[float]) -> None:
        samples = np.asarray(chunk, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return
        self._chunks.append(samples)
        self._length += samples.size
        self._joined = None

    def get_buffer(self) -> np.ndarray:
        if self._joined is None:
            if self._chunks:
                self._joined = np.concatenate(self._chunks)
                self._chunks = [self._joined]
            else:
                self._joined = np.zeros(0, dtype=np.float32)
        return self._joined

    def __len__(self) -> int:
        return self._length

    @property
    def duration_seconds(self) -> float:
        return self._length / self.sample_rate

    def reset(self) -> None:
        self._chunks = []
        self._length = 0
        self._joined = None
