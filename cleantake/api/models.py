"""Response dataclasses for the speech-to-text and language-model services.

WHY: Both remote services return loosely-typed JSON. Parsing it into
typed dataclasses right at the boundary means a changed or broken
response shape is rejected where it arrives, instead of surfacing as a
KeyError three stages later.

HOW: Each dataclass maps 1:1 to a JSON object of the remote API and has
a from_dict() factory. Factories raise ValueError on shapes they do not
recognise; the clients turn that into the stage-specific error type.

RULES:
- Speech durations arrive as strings like "1.300s" and are parsed by
  parse_duration(); a missing or malformed value becomes 0.0
- Speech `results` may be absent — that means "no speech", not an error
- Only the first alternative of each speech result is used downstream
- Chat completions must have a `choices` list; content may be None
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


def parse_duration(value: Any) -> float:
    """Parse a protobuf Duration string ("12.34s") into float seconds.

    RULES:
    - Numbers pass through as floats
    - Strings have a trailing "s" stripped before parsing
    - None, "", or anything unparseable returns 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("s"):
            text = text[:-1]
        try:
            return float(text)
        except ValueError:
            return 0.0
    return 0.0


def _require_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError("{} must be a JSON object, got {}".format(what, type(data).__name__))
    return data


def _optional_list(data: dict, key: str, what: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("{}.{} must be a list, got {}".format(what, key, type(value).__name__))
    return value


# ---------------------------------------------------------------------------
# Speech-to-text: POST speech:recognize
# ---------------------------------------------------------------------------


@dataclass
class SpeechWordInfo:
    """One word with its time offsets, as returned by speech:recognize."""

    word: str
    start_s: float
    end_s: float

    @classmethod
    def from_dict(cls, data: Any) -> SpeechWordInfo:
        data = _require_dict(data, "word info")
        word = data.get("word", "")
        if not isinstance(word, str):
            raise ValueError("word info.word must be a string")
        return cls(
            word=word,
            start_s=parse_duration(data.get("startTime")),
            end_s=parse_duration(data.get("endTime")),
        )


@dataclass
class SpeechAlternative:
    """One recognition hypothesis for a result group."""

    transcript: str = ""
    words: list[SpeechWordInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> SpeechAlternative:
        data = _require_dict(data, "alternative")
        transcript = data.get("transcript") or ""
        if not isinstance(transcript, str):
            raise ValueError("alternative.transcript must be a string")
        return cls(
            transcript=transcript,
            words=[
                SpeechWordInfo.from_dict(w)
                for w in _optional_list(data, "words", "alternative")
            ],
        )


@dataclass
class SpeechResult:
    """A chronologically ordered chunk of the recognized audio."""

    alternatives: list[SpeechAlternative] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> SpeechResult:
        data = _require_dict(data, "result")
        return cls(
            alternatives=[
                SpeechAlternative.from_dict(a)
                for a in _optional_list(data, "alternatives", "result")
            ],
        )

    @property
    def best(self) -> SpeechAlternative | None:
        return self.alternatives[0] if self.alternatives else None


@dataclass
class RecognizeResponse:
    """Top-level speech:recognize response."""

    results: list[SpeechResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> RecognizeResponse:
        data = _require_dict(data, "recognize response")
        return cls(
            results=[
                SpeechResult.from_dict(r)
                for r in _optional_list(data, "results", "recognize response")
            ],
        )


# ---------------------------------------------------------------------------
# Language model: POST chat/completions
# ---------------------------------------------------------------------------


@dataclass
class ChatChoice:
    """One completion choice; content is None when the model sent none."""

    content: str | None

    @classmethod
    def from_dict(cls, data: Any) -> ChatChoice:
        data = _require_dict(data, "choice")
        message = data.get("message")
        if message is None:
            return cls(content=None)
        message = _require_dict(message, "choice.message")
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise ValueError("choice.message.content must be a string")
        return cls(content=content)


@dataclass
class ChatCompletionResponse:
    """Top-level chat/completions response."""

    choices: list[ChatChoice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ChatCompletionResponse:
        data = _require_dict(data, "chat completion")
        return cls(
            choices=[
                ChatChoice.from_dict(c)
                for c in _optional_list(data, "choices", "chat completion")
            ],
        )

    @property
    def first_content(self) -> str | None:
        """Stripped content of the first choice, or None if absent/blank."""
        if not self.choices or self.choices[0].content is None:
            return None
        content = self.choices[0].content.strip()
        return content or None


def extract_error_message(body: str) -> str:
    """Pull `error.message` out of an error body, falling back to the raw text."""
    try:
        data = json.loads(body)
    except ValueError:
        return body
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
    return body
