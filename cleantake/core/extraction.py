"""Locate, parse, and validate the segment JSON in a model completion.

WHY: Language models are told to answer with bare JSON, but often wrap
it in a ```json fence and add a sentence before or after. The payload
has to be dug out tolerantly, then checked strictly: a response where
any segment is malformed is treated as untrustworthy as a whole.

HOW: extract_json_payload() looks for the first fenced block and parses
its body; without a fence it parses the trimmed completion.
validate_segments() runs the payload through SEGMENTS_SCHEMA with
jsonschema, then checks `end > start` (which JSON Schema cannot express
across fields) and builds Segment objects. SegmentExtractor ties this to
a ChatClient call.

RULES:
- Fenced block first (language tag optional), raw text otherwise
- JSON parse failures raise ModelOutputError carrying the raw completion
- One bad segment rejects the whole response; no partial acceptance
- Extra keys on segments are ignored; start >= 0, 0 <= confidence <= 1
- Every number must fit a finite float (no NaN, Infinity, 1e400)
- Output order is the model's order; sorting belongs to postprocess
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

import jsonschema
from jsonschema.exceptions import best_match

from cleantake.api.chat import ChatClient
from cleantake.core.ir import AnalysisResult, Segment
from cleantake.errors import ModelOutputError, excerpt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

SEGMENTS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["segments"],
    "properties": {
        "segments": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["start", "end", "confidence"],
                "properties": {
                    "start": {"type": "number", "minimum": 0},
                    "end": {"type": "number", "minimum": 0},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                },
            },
        },
    },
}

_VALIDATOR = jsonschema.Draft7Validator(SEGMENTS_SCHEMA)


def _reject_constant(name: str) -> Any:
    raise ValueError("non-finite number {} is not allowed".format(name))


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError("number {} is out of range".format(excerpt(text, 40)))
    return value


def _parse_int(text: str) -> int:
    value = int(text)
    try:
        float(value)
    except OverflowError as exc:
        raise ValueError("number {} is out of range".format(excerpt(text, 40))) from exc
    return value


def _finite_number(item: dict, key: str, index: int, raw_content: str | None) -> float:
    """Convert one numeric field to a finite float or reject the response."""
    try:
        value = float(item[key])
    except OverflowError:
        value = math.inf
    if not math.isfinite(value):
        raise ModelOutputError(
            "Language model output failed schema validation at segments/{}/{}: "
            "value is not a finite number".format(index, key),
            raw_content=raw_content,
        )
    return value


def extract_json_payload(content: str) -> Any:
    """Parse the JSON carried by a completion, fenced or not.

    Raises:
        ModelOutputError: the candidate text is not valid JSON.
    """
    match = _FENCE_RE.search(content)
    candidate = match.group(1) if match else content.strip()
    try:
        return json.loads(
            candidate,
            parse_constant=_reject_constant,
            parse_float=_parse_float,
            parse_int=_parse_int,
        )
    except ValueError as exc:
        logger.error("Failed to parse JSON from model output: %s", excerpt(content))
        raise ModelOutputError(
            "Failed to parse the JSON content received from the language model: "
            "{}. Content received: {}".format(exc, excerpt(content)),
            raw_content=content,
        ) from exc


def validate_segments(payload: Any, raw_content: str | None = None) -> AnalysisResult:
    """Validate a parsed payload and convert it to an AnalysisResult.

    Raises:
        ModelOutputError: any schema violation, a non-finite number, or a
            segment with end <= start.
    """
    error = best_match(_VALIDATOR.iter_errors(payload))
    if error is not None:
        where = "/".join(str(p) for p in error.absolute_path) or "<root>"
        raise ModelOutputError(
            "Language model output failed schema validation at {}: {}".format(
                where, error.message
            ),
            raw_content=raw_content,
        )

    segments: list[Segment] = []
    for index, item in enumerate(payload["segments"]):
        start = _finite_number(item, "start", index, raw_content)
        end = _finite_number(item, "end", index, raw_content)
        if end <= start:
            raise ModelOutputError(
                "Language model output failed schema validation at segments/{}: "
                "end ({}) must be greater than start ({})".format(index, end, start),
                raw_content=raw_content,
            )
        confidence = _finite_number(item, "confidence", index, raw_content)
        segments.append(Segment(start=start, end=end, confidence=confidence))
    return AnalysisResult(segments=segments)


def parse_completion(content: str) -> AnalysisResult:
    """Extract and validate the segments carried by a completion string."""
    return validate_segments(extract_json_payload(content), raw_content=content)


class SegmentExtractor:
    """Ask the language model for segments and validate its answer.

    RULES:
    - The ChatClient is entered per call, so no connection outlives a request
    - Errors from ChatClient (ModelServiceError/ModelOutputError) propagate
    """

    def __init__(self, chat_client: ChatClient) -> None:
        self._chat = chat_client

    async def extract_segments(self, prompt: str) -> AnalysisResult:
        async with self._chat as chat:
            content = await chat.complete(prompt)
        result = parse_completion(content)
        logger.info("Language model returned %d valid segment(s).", len(result.segments))
        return result
