"""Abstract base formatter and output container.

WHY: Every export consumes the same Transcript but produces different file
content. This base class gives the CLI one interface for all of them.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type. Formatters that work on cues receive CaptionSegmentationOptions at
construction.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list of outputs (most formatters return one)
- ``suffix`` starts with a hyphen or a dot, e.g. ``"-transcript.txt"``,
  ``".vtt"``; the caller prepends the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from progressive_stt.core.ir import Transcript
from webvtt_captions import CaptionSegmentationOptions


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``".vtt"`` → ``"lecture.vtt"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/vtt"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    def __init__(self, caption_options: CaptionSegmentationOptions | None = None) -> None:
        self.caption_options = caption_options

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'WebVTT Captions'."""

    @abstractmethod
    def format(self, transcript: Transcript) -> list[FormatterOutput]:
        """Convert the transcript into one or more output files."""
