"""Core caption segmentation: timed words to WebVTT cues.

WHY: Recognizers return a flat list of word timestamps. Readers need cues
that are short enough to read, long enough to stay on screen, and that break
where a speaker would pause, never leaving a lone "of" or "the" behind.

HOW: The pipeline has four stages:
  1. normalize_timed_word() — trim text, clamp bad timestamps, round to ms.
  2. _group_words() — greedy forward pass deciding, before each word, whether
     to close the current group (hard limit, natural boundary, or soft limit
     that is not vetoed by dangling/connector checks).
  3. _repair_groups() — merges dangling fragments and connector-split groups
     into a neighbour while the merge stays under generous size ceilings.
  4. build_cue_text() — joins words and cleans the text for display.

RULES:
- ALL functions take their options/rules explicitly — no global state, so
  concurrent calls with different options are safe.
- Emitted cues always have non-empty text and end_time > start_time.
- Input order does not matter; words are sorted by (start_time, end_time).
- Length checks use the cleaned cue text (tags stripped, entities decoded).
"""

import math
import numbers
import re
from typing import Iterable, List, Optional, Sequence, Union

from .models import TimedWord, WebVttCue
from .presets import DEFAULT_OPTIONS, BoundaryRules, CaptionSegmentationOptions

# =============================================================================
# Text Utilities
# =============================================================================

TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")
SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([,.;!?])")
SPACE_AFTER_OPEN_PAREN_RE = re.compile(r"\(\s+")
SPACE_BEFORE_CLOSE_PAREN_RE = re.compile(r"\s+\)")

_ENTITIES = (
    (re.compile(r"&amp;", re.IGNORECASE), "&"),
    (re.compile(r"&lt;", re.IGNORECASE), "<"),
    (re.compile(r"&gt;", re.IGNORECASE), ">"),
    (re.compile(r"&nbsp;", re.IGNORECASE), " "),
)


def decode_basic_html_entities(value: str) -> str:
    """Decode &amp; &lt; &gt; &nbsp; (case-insensitive)."""
    for pattern, replacement in _ENTITIES:
        value = pattern.sub(replacement, value)
    return value


def normalize_cue_text(value: str) -> str:
    """Clean cue text for display and storage.

    Decodes entities, replaces inline tags with spaces, collapses whitespace
    and tightens spacing around punctuation ("word ," -> "word,",
    "( x )" -> "(x)").
    """
    value = decode_basic_html_entities(value)
    value = TAG_RE.sub(" ", value)
    value = WHITESPACE_RE.sub(" ", value)
    value = SPACE_BEFORE_PUNCT_RE.sub(r"\1", value)
    value = SPACE_AFTER_OPEN_PAREN_RE.sub("(", value)
    value = SPACE_BEFORE_CLOSE_PAREN_RE.sub(")", value)
    return value.strip()


def split_cue_words(value: str, rules: BoundaryRules) -> List[str]:
    """Lower-case alphanumeric tokens used for connector/content checks."""
    return rules.non_token.sub(" ", value.lower()).split()


def ends_with_sentence_punctuation(value: str, rules: BoundaryRules) -> bool:
    return bool(rules.sentence_end.search(value.strip()))


def ends_with_soft_punctuation(value: str, rules: BoundaryRules) -> bool:
    return bool(rules.soft_punctuation.search(value.strip()))


def starts_with_uppercase(value: str, rules: BoundaryRules) -> bool:
    return bool(rules.uppercase_start.search(value.strip()))


def starts_with_connector(value: str, rules: BoundaryRules) -> bool:
    tokens = split_cue_words(value, rules)
    return bool(tokens) and tokens[0] in rules.connector_words


def ends_with_connector(value: str, rules: BoundaryRules) -> bool:
    tokens = split_cue_words(value, rules)
    return bool(tokens) and tokens[-1] in rules.connector_words


def is_dangling_cue_text(value: str, rules: BoundaryRules) -> bool:
    """True if the text cannot stand alone as a caption.

    Dangling means: no content tokens at all, a single connector word,
    up to three tokens that are all connectors, or text that ends on a
    connector ("including the").
    """
    tokens = split_cue_words(value, rules)
    if not tokens:
        return True
    if len(tokens) == 1:
        return tokens[0] in rules.connector_words
    if len(tokens) <= 3 and all(token in rules.connector_words for token in tokens):
        return True
    return ends_with_connector(value, rules)


def build_cue_text(words: Iterable[TimedWord]) -> str:
    return normalize_cue_text(" ".join(word.text for word in words))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# Word Normalisation
# =============================================================================

WordLike = Union[TimedWord, dict]


def to_finite_non_negative(value: object) -> float:
    """Return ``value`` as a float >= 0, or 0.0 when it is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return 0.0
    if not math.isfinite(float(value)):
        return 0.0
    return max(0.0, float(value))


def normalize_timed_word(value: WordLike) -> Optional[TimedWord]:
    """Normalise one recognizer word, or return None if it has no text.

    WHY: Recognizer output is untrusted — timestamps can be negative, NaN,
    or reversed. Rejecting such words would lose text, so they are repaired.

    RULES:
    - Text is stripped; blank text drops the word.
    - Non-finite or negative times become 0.
    - end_time is raised to start_time when it is earlier.
    - Both times are rounded to millisecond precision.
    """
    if isinstance(value, dict):
        value = TimedWord.from_dict(value)

    text = value.text.strip() if isinstance(value.text, str) else ""
    if not text:
        return None

    start = to_finite_non_negative(value.start_time)
    end = max(start, to_finite_non_negative(value.end_time))
    return TimedWord(
        text=text,
        start_time=round(start, 3),
        end_time=round(end, 3),
        confidence=value.confidence,
    )


def normalize_timed_words(words: Iterable[WordLike]) -> List[TimedWord]:
    """Normalise, drop empty words, and sort by (start_time, end_time)."""
    normalized = [w for w in (normalize_timed_word(word) for word in words) if w is not None]
    normalized.sort(key=lambda word: (word.start_time, word.end_time))
    return normalized


# =============================================================================
# Segmentation
# =============================================================================

def segment_words_into_webvtt_cues(
    words: Sequence[WordLike],
    options: Optional[CaptionSegmentationOptions] = None,
) -> List[WebVttCue]:
    """Group timed words into caption-length WebVTT cues.

    WHY: This is the single entry point for turning a recognizer word
    timeline (possibly out of order, possibly degenerate) into display-ready
    or exportable captions.

    HOW: Normalise and sort, greedily group, repair dangling fragments, then
    render one cue per group.

    RULES:
    - Never returns a cue with empty text.
    - Every cue has end_time >= start_time + 0.001.
    - Returns [] when no word has text.

    Args:
        words: TimedWord objects (or dicts with text/start_time/end_time).
        options: Segmentation limits; defaults to DEFAULT_OPTIONS.

    Returns:
        Cues ordered by start time.
    """
    opts = options if options is not None else DEFAULT_OPTIONS
    normalized = normalize_timed_words(words)
    if not normalized:
        return []

    groups = _group_words(normalized, opts)
    if len(groups) > 1:
        groups = _repair_groups(groups, opts)

    cues = []  # type: List[WebVttCue]
    for group in groups:
        cue = _group_to_cue(group)
        if cue is not None:
            cues.append(cue)
    return cues


def _group_to_cue(group: List[TimedWord]) -> Optional[WebVttCue]:
    text = build_cue_text(group)
    if not text:
        return None
    first = group[0]
    last = group[-1]
    return WebVttCue(
        start_time=first.start_time,
        end_time=round(max(first.start_time + 0.001, last.end_time), 3),
        text=text,
    )


def _group_words(
    words: List[TimedWord],
    opts: CaptionSegmentationOptions,
) -> List[List[TimedWord]]:
    """Greedy forward pass: decide before each word whether to close the group.

    Priority: hard limits always break; a natural boundary (sentence end, or
    soft punctuation when the cue is getting long) breaks once the cue is
    long enough; soft limits break unless that would strand a short or
    connector-ended fragment.
    """
    rules = opts.rules
    max_chars = opts.effective_max_cue_chars
    max_duration = opts.effective_max_cue_duration_seconds
    hard_max_duration = opts.hard_max_cue_duration_seconds
    min_duration = opts.effective_min_cue_duration_seconds
    max_words = opts.effective_max_words_per_cue
    max_gap = opts.effective_max_inter_word_gap_seconds

    hard_chars = _round_half_up(max_chars * 1.65)
    natural_chars = _round_half_up(max_chars * 0.72)

    groups = []  # type: List[List[TimedWord]]
    current = []  # type: List[TimedWord]

    for word in words:
        if not current:
            current.append(word)
            continue

        previous = current[-1]
        cue_start = current[0].start_time
        cue_duration = max(0.0, previous.end_time - cue_start)
        gap = max(0.0, word.start_time - previous.end_time)
        next_duration = max(0.0, word.end_time - cue_start)
        next_text = build_cue_text(current + [word])
        current_text = build_cue_text(current)
        count = len(current)

        hard_break = (
            gap > max_gap * 1.8
            or (count >= 3 and next_duration > hard_max_duration)
            or (count >= 4 and len(next_text) > hard_chars)
            or count >= max_words + 4
        )
        soft_break = (
            gap > max_gap
            or (count >= 2 and next_duration > max_duration)
            or (count >= 3 and len(next_text) > max_chars)
            or count >= max_words
        )
        natural_break = cue_duration >= min_duration and (
            ends_with_sentence_punctuation(previous.text, rules)
            or (
                ends_with_soft_punctuation(previous.text, rules)
                and (len(next_text) > natural_chars or next_duration > max_duration * 0.7)
            )
        )
        avoid_soft_break = (
            count < 3
            or is_dangling_cue_text(current_text, rules)
            or ends_with_connector(current_text, rules)
            or starts_with_connector(word.text, rules)
        )

        if hard_break or natural_break or (soft_break and not avoid_soft_break):
            groups.append(current)
            current = []

        current.append(word)

    if current:
        groups.append(current)

    return groups


def _repair_groups(
    groups: List[List[TimedWord]],
    opts: CaptionSegmentationOptions,
) -> List[List[TimedWord]]:
    """Merge orphan/dangling fragments (e.g. a trailing "of") into neighbours.

    WHY: The greedy pass can land a natural or hard break right before a
    short connector, leaving a one-word cue. Merging is allowed up to
    1.75x the character limit and 1.5x the hard duration ceiling. A cue made
    only of connectors joins its nearer neighbour even past those ceilings.

    HOW: Walk the groups; after any merge the scan stays on the same index so
    the merged group (or the group that slid into place) is examined again.
    """
    rules = opts.rules
    merge_chars = _round_half_up(opts.effective_max_cue_chars * 1.75)
    merge_duration = opts.hard_max_cue_duration_seconds * 1.5

    def can_merge(left: List[TimedWord], right: List[TimedWord]) -> bool:
        merged = left + right
        duration = merged[-1].end_time - merged[0].start_time
        return len(build_cue_text(merged)) <= merge_chars and duration <= merge_duration

    groups = [list(group) for group in groups]
    index = 0
    while index < len(groups):
        current = groups[index]
        current_text = build_cue_text(current)
        current_is_dangling = is_dangling_cue_text(current_text, rules) or (
            len(split_cue_words(current_text, rules)) <= 2
            and not ends_with_sentence_punctuation(current_text, rules)
        )
        next_group = groups[index + 1] if index + 1 < len(groups) else None
        previous_group = groups[index - 1] if index > 0 else None
        next_text = build_cue_text(next_group) if next_group else ""

        if (
            next_group
            and (ends_with_connector(current_text, rules) or starts_with_connector(next_text, rules))
            and can_merge(current, next_group)
        ):
            groups[index] = current + next_group
            del groups[index + 1]
            continue

        if current_is_dangling and previous_group and can_merge(previous_group, current):
            groups[index - 1] = previous_group + current
            del groups[index]
            continue

        if (
            current_is_dangling
            and next_group
            and starts_with_uppercase(next_text, rules)
            and can_merge(current, next_group)
        ):
            groups[index] = current + next_group
            del groups[index + 1]
            continue

        current_tokens = split_cue_words(current_text, rules)
        if (
            current_tokens
            and all(token in rules.connector_words for token in current_tokens)
            and (previous_group or next_group)
        ):
            # Connector-only cues never stand alone; join the nearer neighbour
            # even past the merge ceilings.
            gap_before = current[0].start_time - previous_group[-1].end_time if previous_group else None
            gap_after = next_group[0].start_time - current[-1].end_time if next_group else None
            if gap_after is None or (gap_before is not None and gap_before <= gap_after):
                groups[index - 1] = previous_group + current
                del groups[index]
            else:
                groups[index] = current + next_group
                del groups[index + 1]
            continue

        index += 1

    return groups
