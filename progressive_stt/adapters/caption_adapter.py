"""Adapter: engine output to caption cues.

WHY: The engine speaks in PartialTranscription / Transcript objects whose
words are session-relative TimedWords, locked and active mixed together.
The caption library wants a clean, ordered word list and returns cues.
This adapter bridges the two so formatters and live previews don't repeat
the glue.

HOW: Words are filtered (blank text dropped), ordered by start time and
handed to segment_words_into_webvtt_cues(). When a transcript has text but
no word timings, one cue spanning the whole duration is produced instead.

RULES:
- Input objects are never modified.
- Cues come back ordered by (start_time, end_time).
- A transcript with neither words nor text yields no cues.
"""

from typing import List, Optional, Union

from progressive_stt.core.ir import PartialTranscription, Transcript
from webvtt_captions import CaptionSegmentationOptions, WebVttCue, segment_words_into_webvtt_cues
from webvtt_captions.models import TimedWord

_MIN_FALLBACK_CUE_S = 0.001


def caption_words(source: Union[Transcript, PartialTranscription]) -> List[TimedWord]:
    """Return the source's words with text, ordered by start time."""
    words = [word for word in source.words if word.text.strip()]
    return sorted(words, key=lambda w: (w.start_time, w.end_time))


def transcript_to_cues(
    source: Union[Transcript, PartialTranscription],
    options: Optional[CaptionSegmentationOptions] = None,
) -> List[WebVttCue]:
    """Segment a transcript (or a live partial) into WebVTT cues.

    Args:
        source: A finished Transcript or any engine emission.
        options: Caption limits; library defaults when None.

    Returns:
        Ordered list of cues, possibly empty.
    """
    words = caption_words(source)
    if words:
        return segment_words_into_webvtt_cues(words, options)

    text = source.text.strip()
    if not text:
        return []
    duration = source.duration_s if isinstance(source, Transcript) else source.timestamp
    return [WebVttCue(start_time=0.0, end_time=max(_MIN_FALLBACK_CUE_S, round(duration, 3)), text=text)]
