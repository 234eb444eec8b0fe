"""Tests for the pipeline dataclasses and the error taxonomy."""

from __future__ import annotations

import base64

import pytest

from cleantake.core.ir import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    Segment,
    TimedWord,
    Transcription,
)
from cleantake.errors import (
    DIAGNOSTIC_LIMIT,
    ConfigurationError,
    InvalidInputError,
    Stage,
    TranscriptionError,
    excerpt,
)


class TestAnalysisRequest:

    def test_decodes_audio(self):
        request = AnalysisRequest(audio_base64=base64.b64encode(b"RIFF1234").decode())
        assert request.decode_audio() == b"RIFF1234"

    def test_from_bytes_round_trip(self):
        assert AnalysisRequest.from_bytes(b"\x00\xff").decode_audio() == b"\x00\xff"

    def test_strips_data_url_prefix(self):
        encoded = base64.b64encode(b"webm-bytes").decode()
        request = AnalysisRequest(audio_base64="data:audio/webm;base64," + encoded)
        assert request.decode_audio() == b"webm-bytes"

    def test_ignores_line_breaks(self):
        encoded = base64.b64encode(b"0123456789" * 10).decode()
        wrapped = "\n".join(encoded[i:i + 20] for i in range(0, len(encoded), 20))
        assert AnalysisRequest(audio_base64=wrapped).decode_audio() == b"0123456789" * 10

    @pytest.mark.parametrize("value", ["", "   ", "not base64!!", "====", "data:audio/webm;base64,"])
    def test_invalid_audio(self, value):
        with pytest.raises(InvalidInputError) as excinfo:
            AnalysisRequest(audio_base64=value).decode_audio()
        assert excinfo.value.stage is Stage.VALIDATION

    def test_blank_script_becomes_none(self):
        assert AnalysisRequest(audio_base64="AAAA", script="  \n").script is None

    def test_script_kept(self):
        assert AnalysisRequest(audio_base64="AAAA", script="Line one").script == "Line one"

    def test_default_language(self):
        assert AnalysisRequest(audio_base64="AAAA").language_code == "en-US"


class TestTranscription:

    def test_empty(self):
        assert Transcription().is_empty
        assert Transcription(transcript="  ").is_empty

    def test_text_without_words_is_not_empty(self):
        assert not Transcription(transcript="hello").is_empty

    def test_words_without_text_is_not_empty(self):
        assert not Transcription(words=[TimedWord("hi", 0.0, 0.2)]).is_empty


class TestAnalysisResult:

    def test_messages(self):
        assert AnalysisResult().message == "Analysis complete: No perfect takes found."
        result = AnalysisResult([Segment(0.0, 1.0, 0.9), Segment(2.0, 3.0, 0.8)])
        assert result.message == "Analysis complete: found 2 potential perfect take(s)."

    def test_to_dict(self):
        result = AnalysisResult([Segment(0.0, 1.5, 0.9)])
        assert result.to_dict() == {"segments": [{"start": 0.0, "end": 1.5, "confidence": 0.9}]}

    def test_segment_duration(self):
        assert Segment(1.0, 3.5, 0.9).duration == pytest.approx(2.5)


class TestAnalysisOutcome:

    def test_result(self):
        outcome = AnalysisOutcome(result=AnalysisResult())
        assert outcome.ok

    def test_error(self):
        outcome = AnalysisOutcome(error=ConfigurationError("missing"))
        assert not outcome.ok

    def test_needs_exactly_one(self):
        with pytest.raises(ValueError):
            AnalysisOutcome()
        with pytest.raises(ValueError):
            AnalysisOutcome(result=AnalysisResult(), error=ConfigurationError("x"))


class TestErrors:

    def test_str_includes_stage(self):
        assert str(TranscriptionError("boom")) == "[transcription] boom"

    def test_stage_can_be_overridden(self):
        err = InvalidInputError("bad", stage=Stage.POSTPROCESS)
        assert str(err) == "[postprocess] bad"

    def test_excerpt_truncates(self):
        text = "x" * (DIAGNOSTIC_LIMIT + 50)
        assert len(excerpt(text)) == DIAGNOSTIC_LIMIT + 1
        assert excerpt("  short  ") == "short"
