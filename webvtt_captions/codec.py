"""WebVTT parsing and serialisation for the cue model.

WHY: Captions produced by the segmenter are exported as .vtt files, and
existing WebVTT annotations need to be read back into cues for editing.
Input comes from arbitrary players and editors, so the parser must be
forgiving; output must be strict and round-trip cleanly.

HOW: parse_webvtt_cues() validates the header, splits the body into blank-
line separated blocks, and extracts (identifier, timing, text) from each.
serialize_webvtt_cues() sanitises, sorts, and writes cues with zero-padded
HH:MM:SS.mmm timestamps.

RULES:
- The parser never raises: no header -> [], unparseable blocks are skipped.
- NOTE, STYLE and REGION blocks are ignored.
- Cue settings after the end timestamp are accepted and dropped.
- Inline tags are stripped on input and never emitted on output.
- parse(serialize(cues)) reproduces (identifier, start, end, text) up to
  millisecond rounding.
"""

import re
from typing import Any, List, Mapping, Optional, Sequence

from .core import normalize_cue_text, to_finite_non_negative
from .models import WebVttCue

WEBVTT_HEADER_RE = re.compile(r"^WEBVTT(?:[ \t].*)?$", re.IGNORECASE)
WEBVTT_TIMING_LINE_RE = re.compile(r"^(\S+)\s+-->\s+(\S+)(?:\s+.*)?$")
WEBVTT_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d{2}):(\d{2})(?:[.,](\d{1,3}))?$")
BLOCK_SEPARATOR_RE = re.compile(r"\n{2,}")

WEBVTT_MEDIA_TYPES = frozenset({"text/vtt", "text/webvtt"})


def _normalize_line_endings(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\r", "\n")


def _strip_bom(value: str) -> str:
    return value[1:] if value.startswith("\ufeff") else value


# =============================================================================
# Detection
# =============================================================================

def is_webvtt_format(value: Any) -> bool:
    """True if ``value`` is the text/vtt (or text/webvtt) media type."""
    if not isinstance(value, str):
        return False
    return value.strip().lower() in WEBVTT_MEDIA_TYPES


def looks_like_webvtt(value: Any) -> bool:
    """True if the first line (after BOM and leading whitespace) is a WEBVTT header."""
    if not isinstance(value, str):
        return False
    normalized = _strip_bom(_normalize_line_endings(value)).lstrip()
    first_line = normalized.split("\n", 1)[0].strip()
    return bool(WEBVTT_HEADER_RE.match(first_line))


def is_webvtt_body(body: Optional[Mapping[str, Any]]) -> bool:
    """True if an annotation body carries WebVTT, by declared format or by content."""
    if not isinstance(body, Mapping):
        return False
    return is_webvtt_format(body.get("format")) or looks_like_webvtt(body.get("value"))


# =============================================================================
# Timestamps
# =============================================================================

def parse_timestamp(raw_value: str) -> Optional[float]:
    """Parse ``[HH:]MM:SS[.mmm]`` into seconds.

    Hours are optional, the fraction may use "." or "," and have 1-3
    digits ("1.5" means 500 ms). Returns None if the value does not match.
    """
    value = raw_value.strip()
    if not value:
        return None

    match = WEBVTT_TIMESTAMP_RE.match(value)
    if not match:
        return None

    hours = int(match.group(1) or "0")
    minutes = int(match.group(2))
    seconds = int(match.group(3))
    milliseconds = int((match.group(4) or "0").ljust(3, "0")[:3])
    return max(0.0, hours * 3600 + minutes * 60 + seconds + milliseconds / 1000.0)


def format_timestamp(seconds_value: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm`` (always two-digit hours)."""
    total_ms = max(0, int(round(seconds_value * 1000)))
    hours = total_ms // 3_600_000
    minutes = (total_ms % 3_600_000) // 60_000
    seconds = (total_ms % 60_000) // 1000
    milliseconds = total_ms % 1000
    return "{:02d}:{:02d}:{:02d}.{:03d}".format(hours, minutes, seconds, milliseconds)


# =============================================================================
# Parsing
# =============================================================================

def parse_webvtt_cues(raw_value: str) -> List[WebVttCue]:
    """Parse WebVTT text into cues.

    WHY: WebVTT bodies arrive from external tools and earlier exports. A
    broken block should cost that block only, never the whole document.

    HOW: Normalise line endings and BOM, split into blocks on 2+ newlines,
    check the header in the first block, then look for a timing line in
    the first two lines of every other block (an identifier line may come
    first). Remaining lines are the cue text.

    RULES:
    - Returns [] when the header is missing.
    - Cues with end < start, unparseable timestamps, or empty text are skipped.
    - Times are rounded to milliseconds.

    Args:
        raw_value: The WebVTT document.

    Returns:
        Cues in document order.
    """
    if not isinstance(raw_value, str):
        return []

    trimmed = _strip_bom(_normalize_line_endings(raw_value)).strip()
    if not trimmed:
        return []

    blocks = BLOCK_SEPARATOR_RE.split(trimmed)
    header_line = blocks[0].split("\n", 1)[0].strip()
    if not WEBVTT_HEADER_RE.match(header_line):
        return []

    cues = []  # type: List[WebVttCue]
    for raw_block in blocks[1:]:
        cue = _parse_block(raw_block)
        if cue is not None:
            cues.append(cue)
    return cues


def _parse_block(raw_block: str) -> Optional[WebVttCue]:
    block = raw_block.strip()
    if not block:
        return None

    lines = [line.rstrip() for line in block.split("\n")]
    first_line = lines[0].strip()
    if first_line.startswith("NOTE") or first_line in ("STYLE", "REGION"):
        return None

    timing_index = -1
    for index in range(min(len(lines), 2)):
        if "-->" in lines[index]:
            timing_index = index
            break
    if timing_index < 0:
        return None

    timing_match = WEBVTT_TIMING_LINE_RE.match(lines[timing_index].strip())
    if not timing_match:
        return None

    start = parse_timestamp(timing_match.group(1))
    end = parse_timestamp(timing_match.group(2))
    if start is None or end is None or end < start:
        return None

    text = normalize_cue_text(" ".join(lines[timing_index + 1:]))
    if not text:
        return None

    identifier = lines[0].strip() if timing_index > 0 else None
    return WebVttCue(
        start_time=round(start, 3),
        end_time=round(end, 3),
        text=text,
        identifier=identifier or None,
    )


# =============================================================================
# Serialisation
# =============================================================================

def sanitize_cue(cue: WebVttCue) -> Optional[WebVttCue]:
    """Return a cleaned copy ready for output, or None if the text is empty.

    Cleans the text with normalize_cue_text() so no tags or blank lines
    reach the output, clamps negative/non-finite times to 0, raises end to
    start + 1 ms when it does not exceed start, and folds the identifier
    onto one line.
    """
    text = normalize_cue_text(cue.text) if isinstance(cue.text, str) else ""
    if not text:
        return None

    start = to_finite_non_negative(cue.start_time)
    end_candidate = to_finite_non_negative(cue.end_time)
    end = end_candidate if end_candidate > start else round(start + 0.001, 3)

    identifier = " ".join(cue.identifier.split()) if isinstance(cue.identifier, str) else ""
    return WebVttCue(
        start_time=round(start, 3),
        end_time=round(end, 3),
        text=text,
        identifier=identifier or None,
    )


def serialize_webvtt_cues(cues: Sequence[WebVttCue]) -> str:
    """Serialise cues into a WebVTT document.

    RULES:
    - Cue text is cleaned as on parse: tags and line breaks never reach the
      output, and cues whose cleaned text is empty are dropped.
    - end is clamped to at least start + 1 ms.
    - Cues are sorted by (start_time, end_time).
    - Output starts with "WEBVTT" and a blank line; each cue is an optional
      identifier line, a timing line, the text and a blank separator.
    - An empty cue list yields "WEBVTT\\n\\n"; otherwise the document ends
      with exactly one newline.
    """
    sanitized = [c for c in (sanitize_cue(cue) for cue in cues) if c is not None]
    sanitized.sort(key=lambda cue: (cue.start_time, cue.end_time))

    if not sanitized:
        return "WEBVTT\n\n"

    lines = ["WEBVTT", ""]
    for cue in sanitized:
        if cue.identifier:
            lines.append(cue.identifier)
        lines.append("{} --> {}".format(format_timestamp(cue.start_time), format_timestamp(cue.end_time)))
        lines.append(cue.text)
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"
