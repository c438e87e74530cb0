"""Adapter modules for converting engine output to external library formats.

WHY: The engine's IR (PartialTranscription, Transcript) and the caption
library's input (ordered TimedWord lists) differ slightly. Adapters bridge
these so each side can evolve independently.

RULES:
- Adapters are pure data transformations — no I/O, no side effects.
- Adapters must not modify the source IR objects.
"""

from progressive_stt.adapters.caption_adapter import caption_words, transcript_to_cues

__all__ = ["caption_words", "transcript_to_cues"]
