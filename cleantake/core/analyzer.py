"""Analysis orchestrator: audio in, validated clean segments out.

WHY: The pipeline crosses three remote calls (credentials,
speech-to-text, language model) plus two pure steps (prompt rendering,
output validation). Callers want one entry point that either returns
segments or fails with a typed error naming the step that broke.

HOW: Analyzer.analyze() runs the steps in order inside _stage() blocks.
Each block re-tags any CleanTakeError with the stage it happened in and
re-raises it. Analyzer.run() wraps analyze() in an AnalysisOutcome for
callers that prefer branching on the error kind. Analyzer.summarize()
renders the review timeline and asks the model for an error summary.

RULES:
- Input validation and the API-key check happen before any network call
- Credentials are resolved only when a transcription is about to happen
- Empty transcription (no words, no text) returns an empty result and
  skips the model call
- No retries; the first failure ends the request
- Every network client is opened and closed inside the request; the
  Analyzer itself holds configuration only
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import httpx

from cleantake.api.chat import ChatClient
from cleantake.api.speech import SpeechClient
from cleantake.auth.credentials import CredentialResolver, default_strategies
from cleantake.config import DEFAULT_LANGUAGE_CODE, load_api_key
from cleantake.core.extraction import SegmentExtractor
from cleantake.core.ir import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    ErrorSummary,
    Segment,
)
from cleantake.core.prompt import build_prompt
from cleantake.core.timeline import build_summary_prompt, render_timeline
from cleantake.errors import CleanTakeError, Stage

logger = logging.getLogger(__name__)


@contextmanager
def _stage(stage: Stage) -> Iterator[None]:
    """Tag any CleanTakeError raised inside the block with `stage`."""
    try:
        yield
    except CleanTakeError as exc:
        exc.stage = stage
        logger.error("Request failed: %s", exc)
        raise


class Analyzer:
    """Stateless driver for the segment-identification pipeline.

    RULES:
    - api_key None means load_api_key() at call time
    - credentials None means the default strategy chain at call time
    - transport is passed to every httpx client (tests use MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        credentials: CredentialResolver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        speech_url: str | None = None,
        chat_url: str | None = None,
        model: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._credentials = credentials
        self._transport = transport
        self._speech_url = speech_url
        self._chat_url = chat_url
        self._model = model

    def _chat_client(self, api_key: str) -> ChatClient:
        return ChatClient(
            api_key=api_key,
            url=self._chat_url,
            model=self._model,
            transport=self._transport,
        )

    def _resolver(self) -> CredentialResolver:
        if self._credentials is not None:
            return self._credentials
        return CredentialResolver(default_strategies(transport=self._transport))

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Find perfect takes in the requested recording.

        Raises:
            CleanTakeError: the first failure, tagged with its stage.
        """
        with _stage(Stage.VALIDATION):
            audio = request.decode_audio()
        logger.info("Received request to analyze %d bytes of audio.", len(audio))
        if request.script:
            logger.info("Using provided script for analysis.")

        with _stage(Stage.CONFIGURATION):
            api_key = self._api_key or load_api_key()

        with _stage(Stage.CREDENTIALS):
            token = await self._resolver().get_access_token()

        with _stage(Stage.TRANSCRIPTION):
            async with SpeechClient(
                token, url=self._speech_url, transport=self._transport
            ) as speech:
                transcription = await speech.transcribe(audio, request.language_code)

        if transcription.is_empty:
            logger.warning("No speech recognized; skipping the language model call.")
            return AnalysisResult(segments=[])

        with _stage(Stage.PROMPT):
            prompt = build_prompt(
                transcription.words,
                script=request.script,
                transcript=transcription.transcript,
            )

        with _stage(Stage.EXTRACTION):
            extractor = SegmentExtractor(self._chat_client(api_key))
            result = await extractor.extract_segments(prompt)

        logger.info("Audio analysis successful: %s", result.message)
        return result

    async def run(self, request: AnalysisRequest) -> AnalysisOutcome:
        """Like analyze(), but return failures as an AnalysisOutcome."""
        try:
            return AnalysisOutcome(result=await self.analyze(request))
        except CleanTakeError as exc:
            return AnalysisOutcome(error=exc)

    async def summarize(
        self,
        segments: Sequence[Segment],
        duration_s: float | None = None,
    ) -> ErrorSummary:
        """Summarize the problem areas around the clean segments.

        Raises:
            EmptyInputError: no segments to build a timeline from.
            ModelServiceError / ModelOutputError: the model call failed.
        """
        with _stage(Stage.SUMMARY):
            timeline = render_timeline(segments, duration_s)
            api_key = self._api_key or load_api_key()
            async with self._chat_client(api_key) as chat:
                summary = await chat.complete(build_summary_prompt(timeline))
        return ErrorSummary(timeline=timeline, summary=summary)


async def analyze_audio(
    audio_base64: str,
    script: str | None = None,
    language_code: str = DEFAULT_LANGUAGE_CODE,
) -> AnalysisResult:
    """Analyze base64 audio with default configuration."""
    request = AnalysisRequest(
        audio_base64=audio_base64, script=script, language_code=language_code
    )
    return await Analyzer().analyze(request)
