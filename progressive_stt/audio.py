"""Audio file loading for offline transcription.

WHY: The engine works on mono float32 sample arrays at one fixed sample
rate. Recordings arrive as WAV/FLAC/OGG files with any channel layout.

HOW: soundfile decodes the file to float32; multi-channel audio is averaged
to mono. Files whose sample rate differs from the expected one are rejected
rather than silently resampled, so word timestamps stay exact.

RULES:
- Returns a 1-D float32 array
- Sample rate must equal the configured rate, else AudioFormatError
- Unreadable or unsupported files raise AudioFormatError
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import soundfile as sf

from progressive_stt.config import PARAKEET_SAMPLE_RATE

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".wav", ".wave", ".flac", ".ogg"})


class AudioFormatError(ValueError):
    """Raised when an audio file cannot be used as engine input."""


def is_supported_audio(path: Path) -> bool:
    """Check if a file has a supported audio extension."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def load_audio(path: str | Path, sample_rate: int = PARAKEET_SAMPLE_RATE) -> np.ndarray:
    """Load an audio file as mono float32 samples at ``sample_rate``.

    Raises:
        AudioFormatError: If the file is unreadable or its sample rate
            does not match.
    """
    path = Path(path)
    try:
        audio_data, file_rate = sf.read(str(path), dtype="float32", always_2d=False)
    except RuntimeError as e:
        raise AudioFormatError("Cannot read audio file {}: {}".format(path, e)) from e

    if file_rate != sample_rate:
        raise AudioFormatError(
            "{} is sampled at {} Hz; expected {} Hz mono. Resample it first "
            "(e.g. ffmpeg -i in.wav -ar {} -ac 1 out.wav).".format(path.name, file_rate, sample_rate, sample_rate)
        )

    # Handle stereo by averaging channels
    if audio_data.ndim > 1:
        audio_data = np.mean(audio_data, axis=1)

    logger.debug("Loaded %s: %d samples (%.2fs)", path.name, len(audio_data), len(audio_data) / sample_rate)
    return np.asarray(audio_data, dtype=np.float32)
