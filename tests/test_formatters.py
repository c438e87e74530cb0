"""Unit tests for the caption adapter and all formatter modules.

WHY: Each formatter turns the finished Transcript into a file other tools
load: WebVTT for players, plain text for editors, IIIF annotations for
viewers. A malformed file fails silently in those tools, so the output is
checked here.

HOW: Tests build a Transcript from the reference lecture timeline and
validate each formatter's output:
  - Adapter: word filtering, ordering, text-only fallback cue
  - WebVTT: parses back to the same cues, header for empty transcripts
  - Plain text: paragraph breaks on pauses after sentence ends
  - IIIF: schema validation, ids, fragment selectors, summary wording

RULES:
- Schema validation uses formatters/iiif_annotation_page.schema.json.
- Formatters are looked up through the FORMATTERS registry where possible.
"""

import json
from pathlib import Path

import jsonschema
import pytest

from progressive_stt.adapters import caption_words, transcript_to_cues
from progressive_stt.core.ir import PartialTranscription, Transcript
from progressive_stt.formatters import FORMATTERS
from progressive_stt.formatters.base import BaseFormatter, FormatterOutput
from progressive_stt.formatters.iiif_annotations import (
    DEFAULT_EXPORT_BASE_ID,
    IIIF_PRESENTATION_3_CONTEXT,
    IIIFAnnotationsFormatter,
    build_annotation_page,
)
from progressive_stt.formatters.plain_text import PlainTextFormatter
from progressive_stt.formatters.webvtt import WebVttFormatter
from webvtt_captions import WebVttCue, parse_webvtt_cues, segment_words_into_webvtt_cues
from webvtt_captions.models import TimedWord

SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent
    / "progressive_stt" / "formatters" / "iiif_annotation_page.schema.json"
)


def _load_schema():
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def _words(rows):
    return [TimedWord(text=t, start_time=s, end_time=e) for t, s, e in rows]


@pytest.fixture
def lecture_transcript(music_library_words):
    words = [TimedWord.from_dict(w) for w in music_library_words]
    return Transcript(
        text=" ".join(w.text for w in words),
        words=words,
        duration_s=12.5,
        source_filename="lecture.wav",
    )


@pytest.fixture
def empty_transcript():
    return Transcript(text="", words=[], duration_s=3.0, source_filename="silence.wav")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:

    def test_keys(self):
        assert set(FORMATTERS) == {"webvtt", "plain_text", "iiif_annotations"}

    def test_values_are_formatter_classes(self):
        for cls in FORMATTERS.values():
            assert issubclass(cls, BaseFormatter)
            assert cls().name

    def test_base_formatter_is_abstract(self):
        with pytest.raises(TypeError):
            BaseFormatter()  # type: ignore[abstract]


# ---------------------------------------------------------------------------
# Caption adapter
# ---------------------------------------------------------------------------


class TestCaptionAdapter:
    """caption_words() and transcript_to_cues()."""

    def test_caption_words_filters_and_sorts(self):
        transcript = Transcript(
            text="b a",
            words=_words([("b", 2.0, 2.5), ("  ", 0.5, 0.6), ("a", 1.0, 1.5)]),
            duration_s=3.0,
            source_filename="x.wav",
        )
        assert [w.text for w in caption_words(transcript)] == ["a", "b"]
        assert [w.text for w in transcript.words] == ["b", "  ", "a"]

    def test_matches_library_segmentation(self, lecture_transcript):
        cues = transcript_to_cues(lecture_transcript)
        expected = segment_words_into_webvtt_cues(lecture_transcript.words)
        assert [c.to_dict() for c in cues] == [c.to_dict() for c in expected]

    def test_text_without_words_spans_duration(self):
        transcript = Transcript(text=" hello ", words=[], duration_s=4.25, source_filename="x.wav")
        cues = transcript_to_cues(transcript)
        assert len(cues) == 1
        assert cues[0].text == "hello"
        assert cues[0].start_time == 0.0
        assert cues[0].end_time == 4.25

    def test_partial_uses_timestamp(self):
        partial = PartialTranscription(fixed_text="locked", active_text="live", timestamp=0.0)
        cues = transcript_to_cues(partial)
        assert cues[0].text == "locked live"
        assert cues[0].end_time == 0.001

    def test_empty_source_has_no_cues(self, empty_transcript):
        assert transcript_to_cues(empty_transcript) == []


# ---------------------------------------------------------------------------
# WebVTT
# ---------------------------------------------------------------------------


class TestWebVttFormatter:

    def test_output_metadata(self, lecture_transcript):
        outputs = WebVttFormatter().format(lecture_transcript)
        assert len(outputs) == 1
        assert isinstance(outputs[0], FormatterOutput)
        assert outputs[0].suffix == ".vtt"
        assert outputs[0].media_type == "text/vtt"

    def test_parses_back_to_segmented_cues(self, lecture_transcript):
        content = WebVttFormatter().format(lecture_transcript)[0].content
        assert content.startswith("WEBVTT\n\n")
        parsed = parse_webvtt_cues(content)
        expected = transcript_to_cues(lecture_transcript)
        assert [(c.start_time, c.end_time, c.text) for c in parsed] == [
            (c.start_time, c.end_time, c.text) for c in expected
        ]

    def test_empty_transcript(self, empty_transcript):
        assert WebVttFormatter().format(empty_transcript)[0].content == "WEBVTT\n\n"


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestPlainTextFormatter:

    def test_output_metadata(self, lecture_transcript):
        output = PlainTextFormatter().format(lecture_transcript)[0]
        assert output.suffix == "-transcript.txt"
        assert output.media_type == "text/plain"

    def test_single_paragraph_without_pauses(self, lecture_transcript):
        content = PlainTextFormatter().format(lecture_transcript)[0].content
        assert content == lecture_transcript.text + "\n"

    def test_paragraph_break_after_sentence_and_pause(self):
        transcript = Transcript(
            text="Hello there. Next part.",
            words=_words([
                ("Hello", 0.0, 0.5), ("there.", 0.5, 1.0),
                ("Next", 3.0, 3.5), ("part.", 3.5, 4.0),
            ]),
            duration_s=4.0,
            source_filename="x.wav",
        )
        content = PlainTextFormatter().format(transcript)[0].content
        assert content == "Hello there.\n\nNext part.\n"

    def test_no_trailing_whitespace(self, lecture_transcript):
        content = PlainTextFormatter().format(lecture_transcript)[0].content
        for line in content.split("\n"):
            assert line == line.rstrip()

    def test_empty_transcript(self, empty_transcript):
        assert PlainTextFormatter().format(empty_transcript)[0].content == ""


# ---------------------------------------------------------------------------
# IIIF annotations
# ---------------------------------------------------------------------------


class TestIIIFAnnotationsFormatter:

    def test_output_validates_against_schema(self, lecture_transcript):
        output = IIIFAnnotationsFormatter().format(lecture_transcript)[0]
        assert output.suffix == "-annotations.json"
        assert output.media_type == "application/ld+json"
        page = json.loads(output.content)
        jsonschema.validate(instance=page, schema=_load_schema())

    def test_page_structure(self, lecture_transcript):
        formatter = IIIFAnnotationsFormatter(
            base_id="https://example.org/iiif/lecture",
            canvas_id="https://example.org/iiif/lecture/canvas/1",
        )
        page = json.loads(formatter.format(lecture_transcript)[0].content)
        cues = transcript_to_cues(lecture_transcript)

        assert page["@context"] == IIIF_PRESENTATION_3_CONTEXT
        assert page["id"] == "https://example.org/iiif/lecture#annotation-page"
        assert page["label"] == {"en": ["lecture.wav"]}
        assert len(page["items"]) == len(cues)

        first = page["items"][0]
        assert first["id"] == page["id"] + "/annotation-1"
        assert first["motivation"] == "supplementing"
        assert first["body"]["value"] == cues[0].text
        assert first["body"]["language"] == "en"
        assert first["target"]["source"] == "https://example.org/iiif/lecture/canvas/1"
        assert first["target"]["selector"]["value"] == "t=6.56,{}".format(
            "{:.3f}".format(cues[0].end_time).rstrip("0").rstrip(".")
        )

    def test_explicit_label_wins(self, lecture_transcript):
        page = json.loads(IIIFAnnotationsFormatter(label="Lecture 1").format(lecture_transcript)[0].content)
        assert page["label"] == {"en": ["Lecture 1"]}

    def test_empty_transcript(self, empty_transcript):
        page = json.loads(IIIFAnnotationsFormatter().format(empty_transcript)[0].content)
        assert page["id"] == DEFAULT_EXPORT_BASE_ID + "#annotation-page"
        assert page["items"] == []
        assert page["summary"] == {"en": ["0 annotations across 0 canvases."]}


class TestBuildAnnotationPage:

    def test_summary_singular(self):
        page = build_annotation_page([WebVttCue(start_time=0.0, end_time=1.0, text="Hi")])
        assert page["summary"] == {"en": ["1 annotation across 1 canvas."]}
        assert page["items"][0]["target"]["selector"]["value"] == "t=0,1"

    def test_summary_plural(self):
        cues = [
            WebVttCue(start_time=0.0, end_time=1.25, text="One"),
            WebVttCue(start_time=1.25, end_time=2.5, text="Two"),
        ]
        page = build_annotation_page(cues, label="  ")
        assert page["summary"] == {"en": ["2 annotations across 1 canvas."]}
        assert page["label"] == {"en": ["Transcript"]}
        assert page["items"][1]["target"]["selector"]["value"] == "t=1.25,2.5"

    def test_canvas_defaults_to_base(self):
        page = build_annotation_page([WebVttCue(start_time=0.0, end_time=1.0, text="Hi")], base_id="urn:x")
        assert page["items"][0]["target"]["source"] == "urn:x"

    def test_invalid_page_rejected_by_schema(self):
        page = build_annotation_page([WebVttCue(start_time=0.0, end_time=1.0, text="Hi")])
        page["items"][0]["target"]["selector"]["value"] = "t=abc"
        with pytest.raises(jsonschema.ValidationError):
            jsonschema.validate(instance=page, schema=_load_schema())
