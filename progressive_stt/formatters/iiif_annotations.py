"""IIIF Presentation 3 AnnotationPage formatter.

WHY: Viewers built on IIIF (Mirador, Clover, Universal Viewer) display
time-based transcript annotations on an audio or video canvas. Exporting
one annotation per caption cue lets a transcript be loaded next to the
media it came from.

HOW: The transcript is segmented into caption cues. Each cue becomes a
"supplementing" Annotation whose TextualBody carries the cue text and
whose target is the canvas narrowed by a media-fragment selector
(``t=start,end``). The page is validated with jsonschema against
iiif_annotation_page.schema.json before returning.

RULES:
- Page id is "{base_id}#annotation-page"; annotation ids are
  "{page_id}/annotation-{n}" counting from 1
- base_id defaults to DEFAULT_EXPORT_BASE_ID, canvas_id to base_id
- label is {"en": [label]}, summary counts annotations on the one canvas
- Fragment times are seconds with at most 3 decimals
- Output suffix "-annotations.json", media type "application/ld+json"
- Validation failure raises jsonschema.ValidationError
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from progressive_stt.adapters.caption_adapter import transcript_to_cues
from progressive_stt.core.ir import Transcript
from progressive_stt.formatters.base import BaseFormatter, FormatterOutput
from webvtt_captions import CaptionSegmentationOptions, WebVttCue

IIIF_PRESENTATION_3_CONTEXT = "http://iiif.io/api/presentation/3/context.json"
MEDIA_FRAGMENTS_CONFORMS_TO = "http://www.w3.org/TR/media-frags/"
DEFAULT_EXPORT_BASE_ID = "urn:progressive-stt-export"
DEFAULT_LABEL = "Transcript"

_SCHEMA_PATH = Path(__file__).resolve().parent / "iiif_annotation_page.schema.json"

_CACHED_SCHEMA: dict[str, Any] | None = None


def _get_schema() -> dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _format_seconds(value: float) -> str:
    text = "{:.3f}".format(max(0.0, value)).rstrip("0").rstrip(".")
    return text or "0"


def _plural(count: int, singular: str, plural: str) -> str:
    return "{} {}".format(count, singular if count == 1 else plural)


def build_annotation_page(
    cues: list[WebVttCue],
    base_id: str | None = None,
    canvas_id: str | None = None,
    label: str | None = None,
    language: str = "en",
) -> dict[str, Any]:
    """Build an AnnotationPage dict with one annotation per cue."""
    base = (base_id or "").strip() or DEFAULT_EXPORT_BASE_ID
    page_id = "{}#annotation-page".format(base)
    canvas = (canvas_id or "").strip() or base

    items = []
    for index, cue in enumerate(cues, start=1):
        items.append({
            "id": "{}/annotation-{}".format(page_id, index),
            "type": "Annotation",
            "motivation": "supplementing",
            "body": {
                "type": "TextualBody",
                "value": cue.text,
                "format": "text/plain",
                "language": language,
            },
            "target": {
                "type": "SpecificResource",
                "source": canvas,
                "selector": {
                    "type": "FragmentSelector",
                    "conformsTo": MEDIA_FRAGMENTS_CONFORMS_TO,
                    "value": "t={},{}".format(_format_seconds(cue.start_time), _format_seconds(cue.end_time)),
                },
            },
        })

    canvas_count = 1 if items else 0
    summary = "{} across {}.".format(
        _plural(len(items), "annotation", "annotations"),
        _plural(canvas_count, "canvas", "canvases"),
    )

    return {
        "@context": IIIF_PRESENTATION_3_CONTEXT,
        "id": page_id,
        "type": "AnnotationPage",
        "label": {"en": [(label or "").strip() or DEFAULT_LABEL]},
        "summary": {"en": [summary]},
        "items": items,
    }


class IIIFAnnotationsFormatter(BaseFormatter):
    """Formatter that produces a IIIF AnnotationPage of transcript cues.

    Args:
        caption_options: Segmentation limits for the cues.
        base_id: Manifest or export URI used to build ids.
        canvas_id: Canvas the annotations target (defaults to base_id).
        label: Page label; defaults to the source filename.
    """

    def __init__(
        self,
        caption_options: CaptionSegmentationOptions | None = None,
        base_id: str | None = None,
        canvas_id: str | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(caption_options)
        self.base_id = base_id
        self.canvas_id = canvas_id
        self.label = label

    @property
    def name(self) -> str:
        return "IIIF Annotations"

    def format(self, transcript: Transcript) -> list[FormatterOutput]:
        """Convert the transcript into a validated AnnotationPage.

        Raises:
            jsonschema.ValidationError: If the generated page does not
                conform to the AnnotationPage schema.
        """
        cues = transcript_to_cues(transcript, self.caption_options)
        page = build_annotation_page(
            cues,
            base_id=self.base_id,
            canvas_id=self.canvas_id,
            label=self.label or transcript.source_filename,
            language=transcript.language,
        )

        jsonschema.validate(instance=page, schema=_get_schema())

        return [
            FormatterOutput(
                suffix="-annotations.json",
                content=json.dumps(page, indent=2, ensure_ascii=False),
                media_type="application/ld+json",
            )
        ]
