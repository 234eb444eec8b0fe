"""Dataclasses flowing through the analysis pipeline.

WHY: The speech-to-text response, the model's JSON, and the HTTP layer
all speak in different shapes. The pipeline itself works on a handful of
small, typed records so each stage has an explicit contract with the
next.

HOW: Plain dataclasses:
  TimedWord       — one transcribed word with start/end seconds
  Transcription   — plain transcript text plus the flattened word list
  AnalysisRequest — base64 audio, optional script, language code
  Segment         — a candidate perfect take with confidence
  AnalysisResult  — the segments found for one request
  ErrorSummary    — review timeline plus the model-written summary
  AnalysisOutcome — tagged union of AnalysisResult or CleanTakeError

RULES:
- All times are float seconds from the start of the recording
- TimedWord and Segment are frozen (immutable once created)
- An empty AnalysisResult is a valid outcome, distinct from an error
- Nothing here performs I/O
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field

from cleantake.config import DEFAULT_LANGUAGE_CODE
from cleantake.errors import CleanTakeError, InvalidInputError


@dataclass(frozen=True)
class TimedWord:
    """A single word with its position in the recording.

    RULES:
    - text: the word as returned by speech-to-text (may carry punctuation)
    - start_s / end_s: float seconds; 0.0 when the service omitted them
    """

    text: str
    start_s: float
    end_s: float


@dataclass
class Transcription:
    """Flattened speech-to-text output for one recording.

    RULES:
    - transcript: first-alternative transcripts of every result group,
      joined with single spaces and stripped
    - words: every word of those alternatives, in response order
    """

    transcript: str = ""
    words: list[TimedWord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.transcript.strip()


@dataclass
class AnalysisRequest:
    """Caller input for one analysis.

    WHY: The browser hands audio over as base64 text. Keeping it encoded
    until the request is validated means a malformed upload is rejected
    before any credential or network work starts.

    RULES:
    - audio_base64 must be non-empty and decodable
    - script is None or a non-blank string (blank scripts become None)
    """

    audio_base64: str
    script: str | None = None
    language_code: str = DEFAULT_LANGUAGE_CODE

    def __post_init__(self) -> None:
        if self.script is not None and not self.script.strip():
            self.script = None

    @classmethod
    def from_bytes(
        cls,
        audio: bytes,
        script: str | None = None,
        language_code: str = DEFAULT_LANGUAGE_CODE,
    ) -> AnalysisRequest:
        """Build a request from raw audio bytes."""
        return cls(
            audio_base64=base64.b64encode(audio).decode("ascii"),
            script=script,
            language_code=language_code,
        )

    def decode_audio(self) -> bytes:
        """Return the raw audio, raising InvalidInputError if absent or malformed."""
        if not self.audio_base64 or not self.audio_base64.strip():
            raise InvalidInputError("Audio data (base64) must be provided.")
        payload = self.audio_base64
        # Browsers hand over data URLs ("data:audio/webm;base64,....")
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        payload = "".join(payload.split())
        try:
            audio = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidInputError(
                "Audio data is not valid base64: {}".format(exc)
            ) from exc
        if not audio:
            raise InvalidInputError("Audio data (base64) decodes to zero bytes.")
        return audio


@dataclass(frozen=True)
class Segment:
    """A time span judged to be a perfect take.

    RULES:
    - 0 <= start < end (enforced by core.extraction, not here)
    - 0 <= confidence <= 1
    - Segments from the model are unsorted and may overlap
    """

    start: float
    end: float
    confidence: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "confidence": self.confidence}


@dataclass
class AnalysisResult:
    """Segments found for one analysis request."""

    segments: list[Segment] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.segments:
            return "Analysis complete: No perfect takes found."
        return "Analysis complete: found {} potential perfect take(s).".format(
            len(self.segments)
        )

    def to_dict(self) -> dict:
        return {"segments": [s.to_dict() for s in self.segments]}


@dataclass
class ErrorSummary:
    """Review timeline plus the model's summary of the problem areas."""

    timeline: str
    summary: str


@dataclass
class AnalysisOutcome:
    """Either a result or a typed error, never both.

    WHY: Some callers (HTTP handlers, batch tools) prefer to branch on
    the error kind rather than wrap every call in try/except.
    """

    result: AnalysisResult | None = None
    error: CleanTakeError | None = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("AnalysisOutcome needs exactly one of result or error")

    @property
    def ok(self) -> bool:
        return self.error is None
