"""FastAPI application exposing the analysis pipeline over HTTP.

WHY: The browser UI (recording, timeline, upload) lives elsewhere and
needs an HTTP surface for the public entry points: analyze a take,
finalize its segments, summarize its problem areas, and the reserved
crop-and-combine call.

HOW: A single FastAPI app with endpoints grouped by tags. Each request
builds its own Analyzer through the get_analyzer dependency, so no state
is shared between requests. CleanTakeError is turned into an
ErrorResponse body by one exception handler, with the HTTP status picked
from the error kind.

RULES:
- All endpoints have OpenAPI summaries, descriptions, and tags
- Error responses use the ErrorResponse schema (detail, kind, stage)
- Caller mistakes are 4xx, missing configuration is 500, remote-service
  failures are 502, the unimplemented crop endpoint is 501
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from cleantake import __version__
from cleantake.config import DEFAULT_LANGUAGE_CODE
from cleantake.core.analyzer import Analyzer
from cleantake.core.ir import AnalysisRequest
from cleantake.core.postprocess import crop_and_combine, finalize, find_overlaps
from cleantake.errors import CleanTakeError, ErrorKind
from cleantake.server.models import (
    AnalysisResponse,
    CropRequest,
    ErrorResponse,
    FinalizeResponse,
    HealthResponse,
    OverlapModel,
    SegmentModel,
    SegmentsRequest,
    SummaryRequest,
    SummaryResponse,
)

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.AUTH: 502,
    ErrorKind.TRANSCRIPTION: 502,
    ErrorKind.MODEL_SERVICE: 502,
    ErrorKind.MODEL_OUTPUT: 502,
    ErrorKind.NOT_IMPLEMENTED: 501,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Empty or malformed input"},
    500: {"model": ErrorResponse, "description": "Server configuration missing"},
    502: {"model": ErrorResponse, "description": "Upstream service or model output failure"},
}

app = FastAPI(
    title="cleantake API",
    description=(
        "Find perfect takes in voice-acting recordings. Upload a take and an "
        "optional script; the service transcribes it with word timings, asks a "
        "language model which spans are fluent and accurate, and returns "
        "time-coded segments with confidence scores."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_analyzer() -> Analyzer:
    """Build a fresh Analyzer for the request."""
    return Analyzer()


def error_body(exc: CleanTakeError) -> ErrorResponse:
    return ErrorResponse(detail=str(exc), kind=exc.kind.value, stage=exc.stage.value)


@app.exception_handler(CleanTakeError)
async def _handle_pipeline_error(request: Request, exc: CleanTakeError) -> JSONResponse:
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=error_body(exc).model_dump())


# ---------------------------------------------------------------------------
# Endpoints: Analyses
# ---------------------------------------------------------------------------


@app.post(
    "/analyses",
    response_model=AnalysisResponse,
    tags=["analyses"],
    summary="Analyze a take for perfect segments",
    description=(
        "Upload an audio take and an optional reference script (as text or a .txt "
        "file). The response lists candidate perfect takes. An empty list means "
        "no clean segment was found; it is not an error."
    ),
    responses=_ERROR_RESPONSES,
)
async def create_analysis(
    analyzer: Annotated[Analyzer, Depends(get_analyzer)],
    file: Annotated[
        UploadFile,
        File(description="Audio take to analyze."),
    ],
    script: Annotated[
        Optional[str],
        Form(description="Reference script text to compare the take against."),
    ] = None,
    script_file: Annotated[
        Optional[UploadFile],
        File(description="Optional .txt file containing the reference script."),
    ] = None,
    language_code: Annotated[
        str,
        Form(description="BCP-47 language code of the recording (e.g. 'en-US')."),
    ] = DEFAULT_LANGUAGE_CODE,
) -> AnalysisResponse:
    if script_file is not None and script_file.filename:
        if not script_file.filename.lower().endswith(".txt"):
            raise HTTPException(status_code=422, detail="Script file must be .txt format")
        try:
            script = (await script_file.read()).decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=422, detail="Script file must be UTF-8 text")

    audio = await file.read()
    request = AnalysisRequest.from_bytes(audio, script=script, language_code=language_code)
    outcome = await analyzer.run(request)
    if not outcome.ok:
        raise outcome.error

    result = outcome.result
    return AnalysisResponse(
        segments=[SegmentModel.from_segment(s) for s in result.segments],
        message=result.message,
    )


# ---------------------------------------------------------------------------
# Endpoints: Segments
# ---------------------------------------------------------------------------


@app.post(
    "/segments/finalize",
    response_model=FinalizeResponse,
    tags=["segments"],
    summary="Sort segments for cutting",
    description=(
        "Sorts segments by start time (ties by end time) and reports any "
        "overlapping pairs. Overlaps are not merged or dropped."
    ),
    responses={400: _ERROR_RESPONSES[400]},
)
async def finalize_segments(body: SegmentsRequest) -> FinalizeResponse:
    segments = finalize([s.to_segment() for s in body.segments])
    overlaps = [
        OverlapModel(
            first=SegmentModel.from_segment(a),
            second=SegmentModel.from_segment(b),
        )
        for a, b in find_overlaps(segments)
    ]
    return FinalizeResponse(
        segments=[SegmentModel.from_segment(s) for s in segments],
        overlaps=overlaps,
    )


@app.post(
    "/segments/crop",
    tags=["segments"],
    summary="Crop and combine segments (not implemented)",
    description=(
        "Reserved for cutting the approved segments out of the recording and "
        "joining them into one file. Always answers 501 for now."
    ),
    responses={
        400: _ERROR_RESPONSES[400],
        501: {"model": ErrorResponse, "description": "Not implemented yet"},
    },
)
async def crop_segments(body: CropRequest) -> None:
    audio = b""
    if body.audio_base64.strip():
        audio = AnalysisRequest(audio_base64=body.audio_base64).decode_audio()
    crop_and_combine(audio, [s.to_segment() for s in body.segments])


# ---------------------------------------------------------------------------
# Endpoints: Summaries
# ---------------------------------------------------------------------------


@app.post(
    "/summaries",
    response_model=SummaryResponse,
    tags=["summaries"],
    summary="Summarize problem areas in a take",
    description=(
        "Renders a timeline of clean segments and the gaps between them and "
        "asks the language model for a concise summary of what needs attention."
    ),
    responses=_ERROR_RESPONSES,
)
async def create_summary(
    body: SummaryRequest,
    analyzer: Annotated[Analyzer, Depends(get_analyzer)],
) -> SummaryResponse:
    summary = await analyzer.summarize(
        [s.to_segment() for s in body.segments], duration_s=body.duration_s
    )
    return SummaryResponse(timeline=summary.timeline, summary=summary.summary)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the cleantake-api console script."""
    import uvicorn
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
