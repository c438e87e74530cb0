"""Segmentation options and linguistic boundary rules.

WHY: Caption length, duration and gap limits differ between players and
audiences, and the "don't end a cue on a function word" heuristics are
language-specific. Keeping both as plain values the caller passes in lets
concurrent callers segment with different settings and lets a non-English
deployment swap the word list without touching the algorithm.

HOW: CaptionSegmentationOptions holds the five tunable limits with their
defaults and exposes clamped/derived values as properties. BoundaryRules
bundles the connector-word set with the sentence-end and soft-punctuation
patterns. ENGLISH_RULES is the default rule set.

RULES:
- Options are frozen; use dataclasses.replace() to derive variants.
- Every limit has a floor (effective_* properties) so absurd settings
  cannot produce one-word cues.
- hard_max_cue_duration_seconds = max(max + 1.5, max * 1.35).
- CONNECTOR_WORDS is a closed set; extend it by building new BoundaryRules.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Pattern

# English function words that should neither end a cue nor stand alone.
CONNECTOR_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "and", "as", "at", "be", "been", "being", "but", "by",
    "for", "from", "if", "in", "into", "is", "it", "its", "of", "on",
    "or", "our", "so", "that", "the", "their", "then", "these", "this",
    "those", "to", "was", "were", "which", "with",
})

SENTENCE_END_RE = re.compile(r"[.!?][\"')\]]*$")
SOFT_PUNCT_RE = re.compile(r"[,;:][\"')\]]*$")
UPPERCASE_START_RE = re.compile(r"^[A-Z]")
NON_TOKEN_RE = re.compile(r"[^a-z0-9'-]+")


@dataclass(frozen=True)
class BoundaryRules:
    """Language-specific heuristics used at cue boundaries.

    Attributes:
        connector_words: Lower-case function words (see CONNECTOR_WORDS).
        sentence_end: Matches text ending a sentence (. ! ? plus closers).
        soft_punctuation: Matches text ending on , ; : plus closers.
        uppercase_start: Matches text that opens a new sentence.
        non_token: Characters removed before splitting text into tokens.
    """
    connector_words: FrozenSet[str] = CONNECTOR_WORDS
    sentence_end: Pattern = SENTENCE_END_RE
    soft_punctuation: Pattern = SOFT_PUNCT_RE
    uppercase_start: Pattern = UPPERCASE_START_RE
    non_token: Pattern = NON_TOKEN_RE


ENGLISH_RULES = BoundaryRules()


@dataclass(frozen=True)
class CaptionSegmentationOptions:
    """Tunable limits for segment_words_into_webvtt_cues().

    Attributes:
        max_cue_chars: Soft character limit per cue.
        max_cue_duration_seconds: Soft duration limit per cue.
        min_cue_duration_seconds: Minimum duration before a sentence end
            is allowed to close a cue.
        max_words_per_cue: Soft word-count limit per cue.
        max_inter_word_gap_seconds: Pause length that suggests a new cue.
        rules: Boundary heuristics (connector words, punctuation).
    """
    max_cue_chars: int = 56
    max_cue_duration_seconds: float = 6.5
    min_cue_duration_seconds: float = 1.4
    max_words_per_cue: int = 16
    max_inter_word_gap_seconds: float = 1.1
    rules: BoundaryRules = field(default=ENGLISH_RULES)

    @property
    def effective_max_cue_chars(self) -> int:
        return max(28, self.max_cue_chars)

    @property
    def effective_max_cue_duration_seconds(self) -> float:
        return max(2.5, self.max_cue_duration_seconds)

    @property
    def effective_min_cue_duration_seconds(self) -> float:
        return max(0.9, self.min_cue_duration_seconds)

    @property
    def effective_max_words_per_cue(self) -> int:
        return max(3, self.max_words_per_cue)

    @property
    def effective_max_inter_word_gap_seconds(self) -> float:
        return max(0.1, self.max_inter_word_gap_seconds)

    @property
    def hard_max_cue_duration_seconds(self) -> float:
        """Override ceiling: a cue never grows past this once it has 3 words."""
        soft = self.effective_max_cue_duration_seconds
        return max(soft + 1.5, soft * 1.35)


DEFAULT_OPTIONS = CaptionSegmentationOptions()
