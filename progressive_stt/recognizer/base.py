"""Recognizer contract and error types.

WHY: The streaming engine treats speech recognition as a black box. Any
backend — an in-process model, a transcription server, a test fake — can
drive it as long as it offers one async ``transcribe(samples)`` method that
returns a TranscriptionWindowResult.

HOW: Recognizer is a runtime-checkable Protocol. RecognizerError is the
base class backends raise for their own failures; the engine never catches
it, so failures reach the caller unchanged.

RULES:
- ``samples`` is a 1-D float32 numpy array at the recognizer's sample rate
- Word times in the result are relative to the start of ``samples``
- Backends do not retry; retry/backoff is the caller's concern
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import numpy as np

    from progressive_stt.recognizer.models import TranscriptionWindowResult


class RecognizerError(Exception):
    """Raised when a recognizer backend fails to transcribe a window."""


class RecognizerAPIError(RecognizerError):
    """Raised when a network recognizer returns an error response.

    WHY: Callers need to tell server-side rejections (bad audio, overload)
    apart from transport errors to decide whether to retry.

    HOW: Wraps the HTTP status code and response body.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Recognizer API error {status_code}: {message}")


class RecognizerNotOpenError(RuntimeError):
    """Raised when a context-managed recognizer is used outside ``async with``."""


@runtime_checkable
class Recognizer(Protocol):
    """Anything the streaming engine can send audio windows to."""

    async def transcribe(self, samples: np.ndarray) -> TranscriptionWindowResult:
        """Transcribe one window of mono samples."""
        ...
