"""Configuration constants, streaming defaults, and .env loading.

WHY: Window sizes, pacing and recognizer endpoints differ between a laptop
demo and a deployed transcription server. Centralising them here — with
environment overrides — keeps every other module free of magic numbers.

HOW: python-dotenv loads the .env file on import. Module-level constants
read their defaults from the environment. StreamingConfig bundles the four
engine settings and validates them; load_streaming_config() builds one from
the environment.

RULES:
- PARAKEET_SAMPLE_RATE (16 kHz mono) is the default sample rate everywhere
- All numeric streaming settings must be > 0
- sentence_buffer_seconds must be smaller than max_window_seconds
- Invalid settings raise ConfigError (a ValueError) at construction time
- RECOGNIZER_API_KEY is optional; an empty value means no auth header
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

PARAKEET_SAMPLE_RATE = 16_000
"""Sample rate expected by Parakeet-family recognizers (mono float32)."""


class ConfigError(ValueError):
    """Raised when streaming or recognizer settings are invalid."""


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError("Environment variable {} must be a number, got {!r}".format(name, raw)) from e


# ---------------------------------------------------------------------------
# Streaming engine defaults
# ---------------------------------------------------------------------------

DEFAULT_SAMPLE_RATE = int(_env_float("STT_SAMPLE_RATE", PARAKEET_SAMPLE_RATE))
DEFAULT_EMISSION_INTERVAL_S = _env_float("STT_EMISSION_INTERVAL_S", 0.5)
DEFAULT_MAX_WINDOW_S = _env_float("STT_MAX_WINDOW_S", 15.0)
DEFAULT_SENTENCE_BUFFER_S = _env_float("STT_SENTENCE_BUFFER_S", 2.0)

MIN_AUDIO_SECONDS = 0.5
"""Buffers shorter than this are never sent to the recognizer."""

# ---------------------------------------------------------------------------
# Recognizer defaults
# ---------------------------------------------------------------------------

RECOGNIZER_BASE_URL = os.getenv("RECOGNIZER_BASE_URL", "http://localhost:8000")
RECOGNIZER_TIMEOUT_S = _env_float("RECOGNIZER_TIMEOUT_S", 120.0)


def load_recognizer_api_key() -> str | None:
    """Return the recognizer bearer token, or None when not configured."""
    key = os.getenv("RECOGNIZER_API_KEY", "").strip()
    return key or None


@dataclass(frozen=True)
class StreamingConfig:
    """Settings for SmartProgressiveStreamingHandler.

    Attributes:
        emission_interval_seconds: Cadence of progressive emissions.
        max_window_seconds: Longest unlocked window sent to the recognizer.
        sentence_buffer_seconds: Trailing margin whose words stay provisional.
        sample_rate: Samples per second of the audio buffers.
    """

    emission_interval_seconds: float = DEFAULT_EMISSION_INTERVAL_S
    max_window_seconds: float = DEFAULT_MAX_WINDOW_S
    sentence_buffer_seconds: float = DEFAULT_SENTENCE_BUFFER_S
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def validate(self) -> StreamingConfig:
        """Check the invariants and return self, or raise ConfigError."""
        for name in (
            "emission_interval_seconds",
            "max_window_seconds",
            "sentence_buffer_seconds",
            "sample_rate",
        ):
            value = getattr(self, name)
            if not value > 0:
                raise ConfigError("{} must be > 0, got {!r}".format(name, value))
        if self.sentence_buffer_seconds >= self.max_window_seconds:
            raise ConfigError(
                "sentence_buffer_seconds ({}) must be smaller than max_window_seconds ({})".format(
                    self.sentence_buffer_seconds, self.max_window_seconds
                )
            )
        return self


def load_streaming_config(**overrides: float) -> StreamingConfig:
    """Build a validated StreamingConfig from env defaults plus overrides.

    Overrides whose value is None are ignored, so CLI flags can be passed
    through directly.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    return StreamingConfig(**values).validate()
