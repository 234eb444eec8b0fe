"""Async HTTP client for the synchronous speech-to-text recognize endpoint.

WHY: Segment identification works on word timings, not audio. This
module turns a recording into a flat, time-ordered list of TimedWords
plus the plain transcript, hiding the service's request and response
shapes from the rest of the pipeline.

HOW: SpeechClient wraps httpx.AsyncClient and is used as an async
context manager so the bearer-token session is closed per request.
transcribe() base64-encodes the audio, sends one
speech:recognize request with word time offsets and automatic
punctuation enabled, parses the response into RecognizeResponse, and
flattens it.

RULES:
- Always use the async context manager (async with SpeechClient(...) as client:)
- Audio size is not pre-checked; the service reports its own limits
- Non-2xx responses, transport errors, and unknown shapes raise TranscriptionError
- A missing or empty `results` array is a valid, empty Transcription
- Only the first alternative of each result group is used
- Words keep response order; nothing is re-sorted, filled, or de-duplicated
"""

from __future__ import annotations

import base64
import logging

import httpx

from cleantake.api.models import RecognizeResponse
from cleantake.config import DEFAULT_LANGUAGE_CODE, SPEECH_API_URL, SPEECH_TIMEOUT_S
from cleantake.core.ir import TimedWord, Transcription
from cleantake.errors import TranscriptionError, excerpt

logger = logging.getLogger(__name__)


class SpeechClient:
    """Async client for speech:recognize with bearer-token auth.

    RULES:
    - access_token comes from CredentialResolver; it is required
    - url defaults to SPEECH_API_URL from config
    - transport is for tests (httpx.MockTransport); None means real network
    """

    def __init__(
        self,
        access_token: str,
        url: str | None = None,
        timeout_s: float = SPEECH_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access_token = access_token
        self._url = url or SPEECH_API_URL
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SpeechClient:
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self._access_token}"},
            timeout=httpx.Timeout(self._timeout_s, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "SpeechClient must be used as an async context manager: "
                "async with SpeechClient(token) as client: ..."
            )
        return self._client

    async def transcribe(
        self,
        audio: bytes,
        language_code: str = DEFAULT_LANGUAGE_CODE,
    ) -> Transcription:
        """Transcribe a recording and return its words with timings.

        Args:
            audio: Raw audio bytes (any container the service accepts).
            language_code: BCP-47 language of the recording, e.g. "en-US".

        Returns:
            Transcription with the joined transcript and flattened words.
        """
        client = self._ensure_client()
        body = {
            "config": {
                "languageCode": language_code,
                "enableWordTimeOffsets": True,
                "enableAutomaticPunctuation": True,
            },
            "audio": {"content": base64.b64encode(audio).decode("ascii")},
        }

        logger.info(
            "Sending %.1f KB of audio to speech-to-text (%s).",
            len(audio) / 1024,
            language_code,
        )
        try:
            resp = await client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise TranscriptionError(
                "Speech-to-text request failed: {}".format(str(exc) or type(exc).__name__)
            ) from exc

        if resp.status_code != 200:
            logger.error("Speech-to-text error response: %s", excerpt(resp.text))
            raise TranscriptionError(
                "Speech-to-text request failed: {} {} - {}".format(
                    resp.status_code, resp.reason_phrase, excerpt(resp.text)
                ),
                status_code=resp.status_code,
            )

        try:
            parsed = RecognizeResponse.from_dict(resp.json())
        except ValueError as exc:
            raise TranscriptionError(
                "Unexpected speech-to-text response: {}".format(exc)
            ) from exc

        transcription = flatten_results(parsed)
        if transcription.is_empty:
            logger.warning("Speech-to-text returned no results.")
        else:
            logger.info(
                "Speech-to-text successful. Transcript length: %d, words: %d",
                len(transcription.transcript),
                len(transcription.words),
            )
        return transcription


def flatten_results(response: RecognizeResponse) -> Transcription:
    """Flatten result groups into one transcript and one ordered word list."""
    parts: list[str] = []
    words: list[TimedWord] = []
    for result in response.results:
        best = result.best
        if best is None:
            continue
        if best.transcript:
            parts.append(best.transcript.strip())
        for info in best.words:
            words.append(TimedWord(text=info.word, start_s=info.start_s, end_s=info.end_s))
    return Transcription(transcript=" ".join(p for p in parts if p), words=words)
