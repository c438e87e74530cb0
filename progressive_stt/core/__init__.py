"""Core engine: audio accumulation, windowed transcription, output IR."""

from progressive_stt.core.buffer import AudioChunkBuffer
from progressive_stt.core.engine import SmartProgressiveStreamingHandler
from progressive_stt.core.ir import PartialTranscription, Transcript, TranscriptionMetadata

__all__ = [
    "AudioChunkBuffer",
    "PartialTranscription",
    "SmartProgressiveStreamingHandler",
    "Transcript",
    "TranscriptionMetadata",
]
