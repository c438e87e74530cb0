"""WebVTT caption formatter.

WHY: Players and annotation tools load timed captions as .vtt files. All
caption output goes through the caption library so live previews and
exported files segment words identically.

HOW: caption_adapter turns the transcript into cues, serialize_webvtt_cues()
renders them.

RULES:
- Registered as "webvtt" in the FORMATTERS dict.
- Output suffix ".vtt", media type "text/vtt".
- A transcript without words or text yields the bare "WEBVTT" header.
"""

from typing import List

from progressive_stt.adapters.caption_adapter import transcript_to_cues
from progressive_stt.core.ir import Transcript
from progressive_stt.formatters.base import BaseFormatter, FormatterOutput
from webvtt_captions import serialize_webvtt_cues


class WebVttFormatter(BaseFormatter):
    """Formatter that produces one WebVTT caption file."""

    @property
    def name(self) -> str:
        return "WebVTT Captions"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        cues = transcript_to_cues(transcript, self.caption_options)
        return [
            FormatterOutput(
                suffix=".vtt",
                content=serialize_webvtt_cues(cues),
                media_type="text/vtt",
            )
        ]
