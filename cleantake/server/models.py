"""Pydantic request/response models for the HTTP API.

WHY: The browser front-end talks to the pipeline over HTTP. Typed
schemas validate request bodies, serialize responses, and generate the
OpenAPI document served at /docs.

HOW: One model per request or response body. All fields carry
Field(description=...) for the generated docs. Conversion helpers map
between these models and the core dataclasses.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Error bodies always include detail, kind, and stage
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from cleantake.core.ir import Segment


class SegmentModel(BaseModel):
    """A time-coded candidate perfect take."""

    start: float = Field(ge=0, description="Start time of the segment in seconds.")
    end: float = Field(ge=0, description="End time of the segment in seconds.")
    confidence: float = Field(
        ge=0,
        le=1,
        description=(
            "Confidence (0-1) that the segment is a perfectly spoken, coherent "
            "take, matching the script if one was provided."
        ),
    )

    @classmethod
    def from_segment(cls, segment: Segment) -> SegmentModel:
        return cls(start=segment.start, end=segment.end, confidence=segment.confidence)

    def to_segment(self) -> Segment:
        return Segment(start=self.start, end=self.end, confidence=self.confidence)


class AnalysisResponse(BaseModel):
    """Segments found in an uploaded take."""

    segments: List[SegmentModel] = Field(
        description="Candidate perfect takes, in the order returned by the model."
    )
    message: str = Field(description="Human-readable summary of the outcome.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "segments": [
                    {"start": 10.52, "end": 15.18, "confidence": 0.95},
                    {"start": 25.09, "end": 32.75, "confidence": 0.98},
                ],
                "message": "Analysis complete: found 2 potential perfect take(s).",
            }
        ]
    }}


class SegmentsRequest(BaseModel):
    """A list of segments to post-process."""

    segments: List[SegmentModel] = Field(description="Segments returned by /analyses.")


class CropRequest(BaseModel):
    """Audio and segments for the crop-and-combine step."""

    audio_base64: str = Field(description="Base64-encoded source audio.")
    segments: List[SegmentModel] = Field(description="Segments to keep, in any order.")


class OverlapModel(BaseModel):
    """Two segments that overlap in time."""

    first: SegmentModel = Field(description="The earlier segment.")
    second: SegmentModel = Field(description="The later segment, starting before `first` ends.")


class FinalizeResponse(BaseModel):
    """Segments sorted for cutting, plus any overlaps left for review."""

    segments: List[SegmentModel] = Field(
        description="Segments sorted by start time, ties broken by end time."
    )
    overlaps: List[OverlapModel] = Field(
        description="Overlapping pairs. They are not merged; the reviewer decides."
    )


class SummaryRequest(BaseModel):
    """Segments and optional recording length for the error summary."""

    segments: List[SegmentModel] = Field(description="Clean segments of the take.")
    duration_s: Optional[float] = Field(
        default=None,
        ge=0,
        description="Total recording length in seconds, to include the tail in the timeline.",
    )


class SummaryResponse(BaseModel):
    """Model-written summary of the problem areas in a take."""

    timeline: str = Field(description="The review timeline sent to the model.")
    summary: str = Field(description="Concise summary of errors and unwanted sections.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is the single user-visible line, including the stage
    - kind and stage let clients branch without string matching
    """

    detail: str = Field(description="Human-readable error description.")
    kind: str = Field(description="Error kind, e.g. 'transcription' or 'model_output'.")
    stage: str = Field(description="Pipeline stage where the error happened.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
