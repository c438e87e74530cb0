"""Intermediate representation dataclasses for engine output.

WHY: The streaming engine emits many short-lived snapshots while audio
grows, and the formatters need one finished transcript at the end. Both
consumers want the same well-typed words and texts rather than raw
recognizer payloads.

HOW: Three dataclasses:
  TranscriptionMetadata — recognizer timing for the call behind an emission
  PartialTranscription  — one engine emission (locked + active text, words)
  Transcript            — the finished result handed to formatters

RULES:
- All times are float seconds, relative to the start of the session
- PartialTranscription.words = locked words followed by active words
- A partial is a value: the engine never mutates one after emitting it
- Transcript.text joins the locked and active text of the last partial
"""

from __future__ import annotations

from dataclasses import dataclass, field

from webvtt_captions.models import TimedWord


@dataclass(frozen=True)
class TranscriptionMetadata:
    """Recognizer timing for the window behind an emission."""

    latency_seconds: float = 0.0
    audio_duration_seconds: float = 0.0
    rtf: float = 0.0


@dataclass
class PartialTranscription:
    """One emission of the streaming engine.

    RULES:
    - fixed_text: locked sentences joined by single spaces
    - active_text: latest unlocked recognizer text (may still change)
    - timestamp: seconds of audio covered by this emission
    - is_final: True only for the closing emission of a sequence
    - metadata: None when no recognizer result backs the emission
    """

    fixed_text: str
    active_text: str
    timestamp: float
    is_final: bool = False
    words: list[TimedWord] = field(default_factory=list)
    metadata: TranscriptionMetadata | None = None

    @property
    def text(self) -> str:
        """Locked and active text joined with one space, blanks skipped."""
        return " ".join(part for part in (self.fixed_text.strip(), self.active_text.strip()) if part)


@dataclass
class Transcript:
    """A finished transcription, ready for the output formatters.

    WHY: Formatters should not care whether audio was processed in batch
    or progressive mode. Transcript is the single input they receive.

    HOW: Built from the last PartialTranscription by from_partial().

    RULES:
    - words: session-relative, ordered by start_time
    - duration_s: audio duration covered by the transcription
    - source_filename: original audio filename (for output naming)
    - language: BCP 47 tag of the spoken language
    """

    text: str
    words: list[TimedWord]
    duration_s: float
    source_filename: str
    language: str = "en"

    @classmethod
    def from_partial(
        cls,
        partial: PartialTranscription,
        source_filename: str,
        language: str = "en",
    ) -> Transcript:
        return cls(
            text=partial.text,
            words=sorted(partial.words, key=lambda w: (w.start_time, w.end_time)),
            duration_s=partial.timestamp,
            source_filename=source_filename,
            language=language,
        )
