"""Shared test fixtures for the cleantake test suite.

WHY: Most modules talk to one of three remote services (metadata
server, speech-to-text, language model). Tests need realistic responses
for all three and a way to count outbound calls without touching the
network.

HOW: FakeServices routes httpx requests by host to canned responses and
records every request. Its `transport` property is an httpx.MockTransport
that can be passed to any client in the package. Sample payloads mirror
the real service response shapes.

RULES:
- No test touches the real network
- DEEPSEEK_API_KEY and the pinned-token variable are cleared before
  every test so a developer's .env cannot leak in
- Tests that need an API key pass it explicitly or use `api_key_env`
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from cleantake.auth.credentials import CredentialResolver, CredentialUnavailable

SPEECH_HOST = "speech.googleapis.com"
CHAT_HOST = "api.deepseek.com"
METADATA_HOST = "metadata.google.internal"

TEST_API_KEY = "sk-test-key"
TEST_TOKEN = "ya29.test-token"

# Two result groups, the second with two alternatives (only the first is used)
SAMPLE_RECOGNIZE_RESPONSE: Dict[str, Any] = {
    "results": [
        {
            "alternatives": [
                {
                    "transcript": "Hello world.",
                    "confidence": 0.94,
                    "words": [
                        {"word": "Hello", "startTime": "0s", "endTime": "0.400s"},
                        {"word": "world.", "startTime": "0.420s", "endTime": "0.810s"},
                    ],
                }
            ]
        },
        {
            "alternatives": [
                {
                    "transcript": " It is a fine day.",
                    "words": [
                        {"word": "It", "startTime": "2.100s", "endTime": "2.200s"},
                        {"word": "is", "startTime": "2.200s", "endTime": "2.350s"},
                        {"word": "a", "startTime": "2.350s", "endTime": "2.400s"},
                        {"word": "fine", "startTime": "2.400s", "endTime": "2.700s"},
                        {"word": "day.", "startTime": "2.700s", "endTime": "3.100s"},
                    ],
                },
                {
                    "transcript": " It is a fine bay.",
                    "words": [
                        {"word": "WRONG", "startTime": "2.100s", "endTime": "3.100s"},
                    ],
                },
            ]
        },
    ]
}

SAMPLE_SEGMENTS_JSON = '{"segments": [{"start": 2.1, "end": 3.1, "confidence": 0.92}, {"start": 0.0, "end": 0.81, "confidence": 0.85}]}'

ResponseSpec = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def chat_completion(content: Optional[str]) -> Dict[str, Any]:
    """Build a chat/completions response body with one choice."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


def json_response(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode("utf-8"),
                          headers={"Content-Type": "application/json"})


class FakeServices:
    """Host-routed fake for every outbound HTTP call.

    Set `speech`, `chat`, or `metadata` to an httpx.Response or a
    callable(request) -> Response. Unconfigured hosts answer 599 so an
    unexpected call fails loudly.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.speech: Optional[ResponseSpec] = json_response(200, SAMPLE_RECOGNIZE_RESPONSE)
        self.chat: Optional[ResponseSpec] = json_response(200, chat_completion(SAMPLE_SEGMENTS_JSON))
        self.metadata: Optional[ResponseSpec] = json_response(200, {"access_token": TEST_TOKEN})

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        spec = {
            SPEECH_HOST: self.speech,
            CHAT_HOST: self.chat,
            METADATA_HOST: self.metadata,
        }.get(request.url.host)
        if spec is None:
            return httpx.Response(599, text="no fake configured for {}".format(request.url))
        if callable(spec):
            return spec(request)
        return spec

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def calls_to(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def body_of(self, host: str, index: int = 0) -> Dict[str, Any]:
        return json.loads(self.calls_to(host)[index].content)


class FixedTokenStrategy:
    name = "fixed"

    def __init__(self, token: str = TEST_TOKEN) -> None:
        self.token = token
        self.calls = 0

    async def fetch_token(self) -> str:
        self.calls += 1
        return self.token


class FailingStrategy:
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        self.calls = 0

    async def fetch_token(self) -> str:
        self.calls += 1
        raise CredentialUnavailable(self.reason)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep real credentials out of every test."""
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    monkeypatch.delenv("CLEANTAKE_GOOGLE_ACCESS_TOKEN", raising=False)


@pytest.fixture
def api_key_env(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def fixed_credentials() -> CredentialResolver:
    return CredentialResolver([FixedTokenStrategy()])
