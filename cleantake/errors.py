"""Typed error taxonomy for the analysis pipeline.

WHY: Callers (HTTP API, CLI, UI) must decide what to show and which
status to return without matching on message strings. Every failure in
the pipeline is one of a small, closed set of kinds, and each one knows
which stage of the pipeline produced it.

HOW: CleanTakeError is the base class. Each subclass fixes a `kind`
(ErrorKind) and a default `stage` (Stage). The orchestrator re-tags the
stage as the error passes through it, so the same exception type can be
reported against the step that actually failed. Service errors also
carry the HTTP status and a body excerpt when available.

RULES:
- str(error) is the single user-visible line: "[stage] message"
- `kind` never changes after construction; `stage` may be re-tagged
- Diagnostics keep at most DIAGNOSTIC_LIMIT characters of raw text
"""

from __future__ import annotations

import enum

DIAGNOSTIC_LIMIT = 500


class ErrorKind(str, enum.Enum):
    """Closed set of failure kinds surfaced to callers."""

    INVALID_INPUT = "invalid_input"
    CONFIGURATION = "configuration"
    AUTH = "auth"
    TRANSCRIPTION = "transcription"
    MODEL_SERVICE = "model_service"
    MODEL_OUTPUT = "model_output"
    EMPTY_INPUT = "empty_input"
    NOT_IMPLEMENTED = "not_implemented"


class Stage(str, enum.Enum):
    """Pipeline step at which a failure happened."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    CREDENTIALS = "credentials"
    TRANSCRIPTION = "transcription"
    PROMPT = "prompt"
    EXTRACTION = "extraction"
    POSTPROCESS = "postprocess"
    SUMMARY = "summary"


def excerpt(text: str, limit: int = DIAGNOSTIC_LIMIT) -> str:
    """Trim raw service text to a loggable length."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


class CleanTakeError(Exception):
    """Base class for every pipeline failure.

    RULES:
    - message: human-readable description, without the stage prefix
    - stage: Stage where the error surfaced
    - status_code: HTTP status from a remote service, or None
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_stage: Stage = Stage.VALIDATION

    def __init__(
        self,
        message: str,
        stage: Stage | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return "[{}] {}".format(self.stage.value, self.message)


class InvalidInputError(CleanTakeError):
    """Caller supplied empty or malformed input. Not retryable."""

    kind = ErrorKind.INVALID_INPUT
    default_stage = Stage.VALIDATION


class ConfigurationError(CleanTakeError):
    """Required configuration (API key) is missing."""

    kind = ErrorKind.CONFIGURATION
    default_stage = Stage.CONFIGURATION


class AuthError(CleanTakeError):
    """Every credential strategy failed.

    `attempts` holds one (strategy name, reason) pair per strategy tried,
    in order.
    """

    kind = ErrorKind.AUTH
    default_stage = Stage.CREDENTIALS

    def __init__(
        self,
        message: str,
        attempts: list[tuple[str, str]] | None = None,
        stage: Stage | None = None,
    ) -> None:
        self.attempts = list(attempts or [])
        super().__init__(message, stage=stage)


class TranscriptionError(CleanTakeError):
    """Speech-to-text transport/HTTP failure or unusable response shape."""

    kind = ErrorKind.TRANSCRIPTION
    default_stage = Stage.TRANSCRIPTION


class ModelServiceError(CleanTakeError):
    """Language-model transport or HTTP failure."""

    kind = ErrorKind.MODEL_SERVICE
    default_stage = Stage.EXTRACTION


class ModelOutputError(CleanTakeError):
    """The model answered, but its content is missing, unparseable, or schema-invalid."""

    kind = ErrorKind.MODEL_OUTPUT
    default_stage = Stage.EXTRACTION

    def __init__(
        self,
        message: str,
        raw_content: str | None = None,
        stage: Stage | None = None,
    ) -> None:
        self.raw_content = raw_content
        super().__init__(message, stage=stage)


class EmptyInputError(CleanTakeError):
    """Post-processing was called with nothing to process."""

    kind = ErrorKind.EMPTY_INPUT
    default_stage = Stage.POSTPROCESS


class NotImplementedStageError(CleanTakeError):
    """A contract point that exists but has no implementation yet."""

    kind = ErrorKind.NOT_IMPLEMENTED
    default_stage = Stage.POSTPROCESS
