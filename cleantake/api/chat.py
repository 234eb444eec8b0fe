"""Async HTTP client for an OpenAI-compatible chat-completions endpoint.

WHY: Both the segment classifier and the error summary send a single
user prompt to the language model and need back a single string. This
module owns the request shape, auth, and the translation of HTTP
failures into ModelServiceError so callers only deal with text.

HOW: ChatClient is an async context manager wrapping httpx.AsyncClient
with the API key as a bearer token. complete() posts
{model, messages, temperature, max_tokens} and returns the stripped
content of the first choice.

RULES:
- api_key defaults to load_api_key() (ConfigurationError when missing)
- Non-2xx: message taken from `error.message` in the JSON body, else
  the raw body; raised as ModelServiceError with the HTTP status
- Transport errors and timeouts raise ModelServiceError
- A response without first-choice content raises ModelOutputError
"""

from __future__ import annotations

import logging

import httpx

from cleantake.api.models import ChatCompletionResponse, extract_error_message
from cleantake.config import (
    DEEPSEEK_API_URL,
    DEEPSEEK_MAX_TOKENS,
    DEEPSEEK_MODEL,
    DEEPSEEK_TEMPERATURE,
    MODEL_TIMEOUT_S,
    load_api_key,
)
from cleantake.errors import ModelOutputError, ModelServiceError, excerpt

logger = logging.getLogger(__name__)


class ChatClient:
    """Async client for single-turn chat completions."""

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        model: str | None = None,
        temperature: float = DEEPSEEK_TEMPERATURE,
        max_tokens: int = DEEPSEEK_MAX_TOKENS,
        timeout_s: float = MODEL_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._url = url or DEEPSEEK_API_URL
        self._model = model or DEEPSEEK_MODEL
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ChatClient:
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(self._timeout_s, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "ChatClient must be used as an async context manager: "
                "async with ChatClient() as client: ..."
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        """Send one user message and return the model's text reply.

        Raises:
            ModelServiceError: transport failure or non-2xx status.
            ModelOutputError: the response carried no message content.
        """
        client = self._ensure_client()
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

        logger.info("Sending %d-char prompt to %s (%s).", len(prompt), self._url, self._model)
        try:
            resp = await client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise ModelServiceError(
                "Language model request failed: {}".format(str(exc) or type(exc).__name__)
            ) from exc

        if not resp.is_success:
            details = excerpt(extract_error_message(resp.text))
            raise ModelServiceError(
                "Language model request failed: {} {} - {}".format(
                    resp.status_code, resp.reason_phrase, details
                ),
                status_code=resp.status_code,
            )

        try:
            parsed = ChatCompletionResponse.from_dict(resp.json())
        except ValueError as exc:
            raise ModelOutputError(
                "Unexpected language model response: {}".format(exc),
                raw_content=excerpt(resp.text),
            ) from exc

        content = parsed.first_content
        if content is None:
            logger.error("Language model response missing message content: %s", excerpt(resp.text))
            raise ModelOutputError(
                "Language model response did not contain the expected message content.",
                raw_content=excerpt(resp.text),
            )
        return content
