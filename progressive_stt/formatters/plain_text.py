"""Plain text transcript formatter.

WHY: Editors want a readable transcript for review and archival with no
timecodes. This is the simplest output format.

HOW: The transcript is segmented into caption cues, and consecutive cues
are joined into paragraphs. A paragraph ends after a cue that closes a
sentence when the next cue starts after a pause of at least
PARAGRAPH_PAUSE_S, so long monologues break at natural breathing points.

RULES:
- Falls back to Transcript.text when there are no word timings
- Double newline between paragraphs, single trailing newline
- No trailing whitespace on any line
- Output suffix: "-transcript.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from progressive_stt.adapters.caption_adapter import transcript_to_cues
from progressive_stt.core.ir import Transcript
from progressive_stt.formatters.base import BaseFormatter, FormatterOutput
from webvtt_captions import DEFAULT_OPTIONS
from webvtt_captions.core import ends_with_sentence_punctuation

PARAGRAPH_PAUSE_S = 1.5


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces paragraph-grouped plain text."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, transcript: Transcript) -> list[FormatterOutput]:
        cues = transcript_to_cues(transcript, self.caption_options)
        rules = (self.caption_options or DEFAULT_OPTIONS).rules
        paragraphs: list[str] = []
        current: list[str] = []

        for index, cue in enumerate(cues):
            current.append(cue.text)
            next_cue = cues[index + 1] if index + 1 < len(cues) else None
            if next_cue is None:
                break
            pause = next_cue.start_time - cue.end_time
            if pause >= PARAGRAPH_PAUSE_S and ends_with_sentence_punctuation(cue.text, rules):
                paragraphs.append(" ".join(current))
                current = []

        if current:
            paragraphs.append(" ".join(current))

        content = "\n\n".join(p.strip() for p in paragraphs if p.strip())
        if content:
            content += "\n"

        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=content,
                media_type="text/plain",
            )
        ]
