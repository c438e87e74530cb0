"""Data models for the WebVTT caption library.

WHY: The segmenter consumes word-level timestamps from speech-to-text output
and produces timed caption cues; the codec reads and writes those same cues
as WebVTT text. Two small dataclasses are the shared vocabulary of the whole
pipeline.

HOW: TimedWord holds one recognised word with its timing, WebVttCue holds
one caption unit. Both offer from_dict()/to_dict() so JSON produced by
recognizers (or by the CLI) converts without glue code.

RULES:
- Timestamps are in seconds (float), not milliseconds.
- TimedWord is frozen: locked words are never edited in place, callers use
  dataclasses.replace() to shift them in time.
- WebVttCue.identifier is optional and omitted from to_dict() when None.
- Cue sequences are ordered by (start_time, end_time).
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON number (or numeric string) to float, else ``default``."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class TimedWord:
    """A single recognised word with session-relative timing.

    Attributes:
        text: The word text, as returned by the recognizer.
        start_time: Start time in seconds.
        end_time: End time in seconds (>= start_time once normalised).
        confidence: Optional recognizer confidence.
    """
    text: str
    start_time: float
    end_time: float
    confidence: Optional[float] = None

    def shifted(self, offset: float) -> "TimedWord":
        """Return a copy moved forward by ``offset`` seconds."""
        return TimedWord(
            text=self.text,
            start_time=offset + self.start_time,
            end_time=offset + self.end_time,
            confidence=self.confidence,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimedWord":
        """Build a TimedWord from a mapping with flexible field names.

        Accepts text/word for the text and start_time/start, end_time/end
        for timing. Missing end falls back to start.
        """
        text = data.get("text", data.get("word", ""))
        start = _as_float(data.get("start_time", data.get("start")))
        end = _as_float(data.get("end_time", data.get("end")), start)
        confidence = data.get("confidence")
        return cls(
            text=text if isinstance(text, str) else "",
            start_time=start,
            end_time=end,
            confidence=_as_float(confidence) if confidence is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "text": self.text,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }  # type: Dict[str, Any]
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass
class WebVttCue:
    """One timed caption unit.

    Attributes:
        start_time: Cue start in seconds.
        end_time: Cue end in seconds (> start_time for emitted cues).
        text: Plain cue text, never empty in emitted cues.
        identifier: Optional cue identifier line.
    """
    start_time: float
    end_time: float
    text: str
    identifier: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WebVttCue":
        identifier = data.get("identifier")
        return cls(
            start_time=_as_float(data.get("start_time")),
            end_time=_as_float(data.get("end_time")),
            text=str(data.get("text", "")),
            identifier=identifier if isinstance(identifier, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {}  # type: Dict[str, Any]
        if self.identifier:
            data["identifier"] = self.identifier
        data["start_time"] = self.start_time
        data["end_time"] = self.end_time
        data["text"] = self.text
        return data
