"""FastAPI application exposing transcript analysis over HTTP.

WHY: Players, browser extensions, and automation tools need chapters,
highlights, and AutoSkip data without embedding the Python package.
FastAPI provides automatic OpenAPI documentation and request validation.

HOW: POST /analyses accepts a transcript and options, runs an
AnalysisSession against a StaticSource holding the posted segments,
renders the requested formats, and stores the finished analysis. Other
endpoints read or delete stored analyses and describe the available
presets, fillers, and formats.

RULES:
- Error responses use a consistent ErrorResponse schema
- Transcripts with no usable text and unknown presets are 422
- Chapter results also go to the shared ResultCache
- The analysis store is a module-level singleton; expired entries are
  removed every 5 minutes
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from chapterizer import __version__
from chapterizer.acquisition.sources import FirstSuccessFetcher, StaticSource
from chapterizer.config import (
    DEFAULT_ENABLED_FILLERS,
    FILLER_CATALOG,
    Settings,
    parse_filler_words,
)
from chapterizer.core.ir import AnalysisReport, ChapterResult, TranscriptSegment, WordTiming
from chapterizer.core.pace import classify_pace
from chapterizer.core.pauses import silence_summary
from chapterizer.formatters import FORMATTERS
from chapterizer.formatters.base import FormatterOutput
from chapterizer.playback.presets import AUTOSKIP_PRESETS, UnknownPresetError, get_preset
from chapterizer.server.analyses import AnalysisStore, StoredAnalysis
from chapterizer.server.models import (
    AnalysisRequest,
    AnalysisResponse,
    ChapterModel,
    ErrorResponse,
    FillerCatalogResponse,
    FormatInfo,
    HealthResponse,
    PaceStatsModel,
    POIModel,
    PresetInfo,
    RenderedFile,
    SegmentModel,
)
from chapterizer.session import STATE_ERROR, AnalysisSession
from chapterizer.storage.cache import InMemoryStore, ResultCache

logger = logging.getLogger(__name__)

CACHE_CAPACITY = 200

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

analysis_store = AnalysisStore()
result_cache = ResultCache(InMemoryStore(capacity=CACHE_CAPACITY))


async def _periodic_cleanup() -> None:
    """Run analysis cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        analysis_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Chapterizer API",
    description=(
        "REST API that turns timed transcripts into chapters, highlight "
        "timestamps, filler and pause maps, and pace statistics. Submit a "
        "transcript, then read or download the stored analysis."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_segment(model: SegmentModel) -> TranscriptSegment:
    words = tuple(WordTiming(text=w.text, start=w.start, end=w.end) for w in model.words or [])
    return TranscriptSegment(start=model.start, duration=model.duration, text=model.text, words=words)


def _build_settings(request: AnalysisRequest) -> Settings:
    settings = Settings()
    if request.fillers is not None:
        settings.enabled_fillers = parse_filler_words(",".join(request.fillers))
    if request.preset:
        settings.auto_skip_mode = get_preset(request.preset).name
    settings.mode = "manual"
    return settings


def _render(report: AnalysisReport, format_keys: List[str]) -> List[FormatterOutput]:
    outputs: List[FormatterOutput] = []
    for key in format_keys:
        outputs.extend(FORMATTERS[key]().format(report))
    return outputs


def _to_response(stored: StoredAnalysis) -> AnalysisResponse:
    report = stored.report
    silence = silence_summary(report.pauses, report.pause_threshold, report.duration)
    stats = report.pace_stats
    return AnalysisResponse(
        video_id=report.video_id,
        duration=report.duration,
        chapters=[ChapterModel(**c.to_dict()) for c in report.result.chapters],
        pois=[POIModel(**p.to_dict()) for p in report.result.pois],
        filler_count=len(report.fillers),
        pause_count=silence["count"],
        silence_seconds=silence["total_s"],
        pace=PaceStatsModel(**stats.to_dict()) if stats is not None else None,
        pace_label=classify_pace(stats.avg) if stats is not None else None,
        keywords=report.keywords,
        summaries=report.summaries,
        files=[
            RenderedFile(
                filename="{}{}".format(report.video_id, f.suffix),
                media_type=f.media_type,
                content=f.content,
            )
            for f in stored.files
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints: Analyses
# ---------------------------------------------------------------------------


@app.post(
    "/analyses",
    response_model=AnalysisResponse,
    status_code=201,
    tags=["analyses"],
    summary="Analyze a transcript",
    description=(
        "Segment a transcript into chapters, detect highlights, fillers, "
        "pauses, and pace, render the requested formats, and store the "
        "result under video_id (replacing any previous analysis)."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Unusable transcript or unknown preset"},
        429: {"model": ErrorResponse, "description": "Too many stored analyses"},
    },
)
async def create_analysis(request: AnalysisRequest) -> AnalysisResponse:
    try:
        settings = _build_settings(request)
    except UnknownPresetError as e:
        raise HTTPException(status_code=422, detail=str(e))

    segments = [_to_segment(s) for s in request.segments]
    session = AnalysisSession(
        fetcher=FirstSuccessFetcher([StaticSource({request.video_id: segments})]),
        cache=result_cache,
        settings=settings,
    )

    errors: List[str] = []

    def on_status(message: str, state: str, percent: int) -> None:
        if state == STATE_ERROR:
            errors.append(message)

    result = await session.generate(request.video_id, on_status=on_status, duration=request.duration)
    if result is None:
        raise HTTPException(
            status_code=422,
            detail=errors[-1] if errors else "Analysis failed for '{}'".format(request.video_id),
        )

    report = session.build_report()
    format_keys = [f.value for f in request.formats] if request.formats else list(FORMATTERS.keys())
    try:
        stored = analysis_store.put(report, _render(report, format_keys))
    except ValueError as e:
        raise HTTPException(status_code=429, detail=str(e))
    return _to_response(stored)


@app.get(
    "/analyses/{video_id}",
    response_model=AnalysisResponse,
    tags=["analyses"],
    summary="Get a stored analysis",
    responses={
        404: {"model": ErrorResponse, "description": "No analysis for this video"},
    },
)
async def get_analysis(video_id: str) -> AnalysisResponse:
    stored = analysis_store.get(video_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="No analysis for video: {}".format(video_id))
    return _to_response(stored)


@app.delete(
    "/analyses/{video_id}",
    status_code=204,
    tags=["analyses"],
    summary="Delete a stored analysis",
    description="Remove the stored analysis and the cached chapter result for a video.",
    responses={
        404: {"model": ErrorResponse, "description": "No analysis for this video"},
    },
)
async def delete_analysis(video_id: str) -> Response:
    deleted = analysis_store.delete(video_id)
    cached = result_cache.delete(video_id)
    if not (deleted or cached):
        raise HTTPException(status_code=404, detail="No analysis for video: {}".format(video_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Catalogs
# ---------------------------------------------------------------------------


@app.get(
    "/presets",
    response_model=List[PresetInfo],
    tags=["catalogs"],
    summary="List AutoSkip presets",
)
async def list_presets() -> List[PresetInfo]:
    return [
        PresetInfo(
            name=p.name,
            label=p.label,
            description=p.description,
            pause_threshold=p.pause_threshold,
            skip_fillers=p.skip_fillers,
            silence_speed_multiplier=p.silence_speed_multiplier,
        )
        for p in AUTOSKIP_PRESETS.values()
    ]


@app.get(
    "/fillers",
    response_model=FillerCatalogResponse,
    tags=["catalogs"],
    summary="List detectable filler words",
)
async def list_fillers() -> FillerCatalogResponse:
    return FillerCatalogResponse(
        categories={k: list(v) for k, v in FILLER_CATALOG.items()},
        default_enabled=list(DEFAULT_ENABLED_FILLERS),
    )


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["catalogs"],
    summary="List available output formats",
    description="Returns all output formats with identifiers, names, and file suffixes.",
)
async def list_formats() -> List[FormatInfo]:
    # An empty report is enough to learn each formatter's suffix
    empty = AnalysisReport(video_id="example", duration=0.0, result=ChapterResult())
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        outputs = formatter.format(empty)
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=outputs[0].suffix if outputs else "",
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Entry point for the chapterizer-api console script."""
    import uvicorn
    uvicorn.run(app, host=host or "0.0.0.0", port=port or 8000)
