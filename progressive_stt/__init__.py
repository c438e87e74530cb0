"""Progressive speech-to-text: windowed transcription with stable, locked text.

WHY: Speech recognizers transcribe a fixed chunk of audio at a time. A live
recording needs text that keeps up with the audio without re-sending the
whole recording each time, and without finished words flickering. This
package turns a growing audio buffer into locked text plus a short active
tail, and exports the result as captions, text and IIIF annotations.

HOW: Three stages — recognize (pluggable recognizer backends), stream
(windowing and locking engine), format (pluggable formatters built on the
webvtt_captions library). Each stage is independently testable.

RULES:
- The engine only depends on the Recognizer protocol
- All formatters consume the same Transcript
- Adding a new output format = one new formatter module, no core changes
"""

__version__ = "0.1.0"
