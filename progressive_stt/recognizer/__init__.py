"""Recognizer backends: the contract, in-process models, and HTTP servers."""

from progressive_stt.recognizer.base import (
    Recognizer,
    RecognizerAPIError,
    RecognizerError,
    RecognizerNotOpenError,
)
from progressive_stt.recognizer.client import HTTPRecognizer
from progressive_stt.recognizer.local import ModelRecognizer
from progressive_stt.recognizer.models import (
    TranscriptionWindowResult,
    normalize_word,
    normalize_words,
)

__all__ = [
    "HTTPRecognizer",
    "ModelRecognizer",
    "Recognizer",
    "RecognizerAPIError",
    "RecognizerError",
    "RecognizerNotOpenError",
    "TranscriptionWindowResult",
    "normalize_word",
    "normalize_words",
]
