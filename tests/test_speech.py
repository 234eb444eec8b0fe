"""Tests for the speech-to-text client and response flattening.

Runs SpeechClient against httpx.MockTransport through FakeServices and
checks the request body, the flattened Transcription, and the
TranscriptionError paths.
"""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from cleantake.api.models import RecognizeResponse, parse_duration
from cleantake.api.speech import SpeechClient, flatten_results
from cleantake.core.ir import TimedWord
from cleantake.errors import ErrorKind, Stage, TranscriptionError

from conftest import SAMPLE_RECOGNIZE_RESPONSE, SPEECH_HOST, TEST_TOKEN, FakeServices, json_response


def _transcribe(services: FakeServices, audio: bytes = b"RIFFfake", language_code: str = "en-US"):
    async def _go():
        async with SpeechClient(TEST_TOKEN, transport=services.transport) as client:
            return await client.transcribe(audio, language_code)
    return asyncio.run(_go())


class TestParseDuration:

    @pytest.mark.parametrize("value,expected", [
        ("1.300s", 1.3),
        ("0s", 0.0),
        ("12s", 12.0),
        (2.5, 2.5),
        (3, 3.0),
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (True, 0.0),
    ])
    def test_values(self, value, expected):
        assert parse_duration(value) == pytest.approx(expected)


class TestFlattenResults:

    def test_uses_first_alternative_only(self):
        transcription = flatten_results(RecognizeResponse.from_dict(SAMPLE_RECOGNIZE_RESPONSE))
        assert [w.text for w in transcription.words] == [
            "Hello", "world.", "It", "is", "a", "fine", "day.",
        ]
        assert "WRONG" not in transcription.transcript

    def test_joins_transcripts_with_spaces(self):
        transcription = flatten_results(RecognizeResponse.from_dict(SAMPLE_RECOGNIZE_RESPONSE))
        assert transcription.transcript == "Hello world. It is a fine day."

    def test_parses_word_timings(self):
        transcription = flatten_results(RecognizeResponse.from_dict(SAMPLE_RECOGNIZE_RESPONSE))
        assert transcription.words[0] == TimedWord("Hello", 0.0, 0.4)
        assert transcription.words[1].start_s == pytest.approx(0.42)
        assert transcription.words[-1].end_s == pytest.approx(3.1)

    def test_missing_results_is_empty(self):
        transcription = flatten_results(RecognizeResponse.from_dict({}))
        assert transcription.is_empty
        assert transcription.words == []

    def test_group_without_alternatives_is_skipped(self):
        data = {"results": [{"alternatives": []}, SAMPLE_RECOGNIZE_RESPONSE["results"][0]]}
        transcription = flatten_results(RecognizeResponse.from_dict(data))
        assert transcription.transcript == "Hello world."

    def test_words_keep_response_order(self):
        data = {"results": [{"alternatives": [{
            "transcript": "b a",
            "words": [
                {"word": "b", "startTime": "1s", "endTime": "1.5s"},
                {"word": "a", "startTime": "0s", "endTime": "0.5s"},
            ],
        }]}]}
        transcription = flatten_results(RecognizeResponse.from_dict(data))
        assert [w.text for w in transcription.words] == ["b", "a"]


class TestSpeechClient:

    def test_transcribes_sample(self, services: FakeServices):
        transcription = _transcribe(services)
        assert transcription.transcript == "Hello world. It is a fine day."
        assert len(transcription.words) == 7

    def test_request_shape(self, services: FakeServices):
        _transcribe(services, audio=b"\x00\x01audio", language_code="fr-FR")
        request = services.calls_to(SPEECH_HOST)[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer {}".format(TEST_TOKEN)

        body = services.body_of(SPEECH_HOST)
        assert body["config"] == {
            "languageCode": "fr-FR",
            "enableWordTimeOffsets": True,
            "enableAutomaticPunctuation": True,
        }
        assert base64.b64decode(body["audio"]["content"]) == b"\x00\x01audio"

    def test_empty_results_is_not_an_error(self, services: FakeServices):
        services.speech = json_response(200, {})
        transcription = _transcribe(services)
        assert transcription.is_empty

    def test_http_error_raises_transcription_error(self, services: FakeServices):
        services.speech = json_response(403, {"error": {"message": "permission denied"}})
        with pytest.raises(TranscriptionError) as excinfo:
            _transcribe(services)
        err = excinfo.value
        assert err.kind is ErrorKind.TRANSCRIPTION
        assert err.stage is Stage.TRANSCRIPTION
        assert err.status_code == 403
        assert "403" in err.message
        assert "permission denied" in err.message

    def test_transport_error_raises_transcription_error(self, services: FakeServices):
        def _timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        services.speech = _timeout
        with pytest.raises(TranscriptionError, match="request failed"):
            _transcribe(services)

    def test_unknown_shape_raises_transcription_error(self, services: FakeServices):
        services.speech = json_response(200, {"results": "not-a-list"})
        with pytest.raises(TranscriptionError, match="Unexpected"):
            _transcribe(services)

    def test_requires_context_manager(self):
        client = SpeechClient(TEST_TOKEN)
        with pytest.raises(RuntimeError, match="async context manager"):
            asyncio.run(client.transcribe(b"audio"))
