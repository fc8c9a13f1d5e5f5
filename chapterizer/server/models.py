"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint has its own model. Enums represent closed sets like
output format names. All models include Field descriptions for rich
OpenAPI docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Enum values match internal constants exactly (formatter keys)
- Response models never expose internal implementation details
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Available output format identifiers.

    RULES:
    - Values match keys in chapterizer.formatters.FORMATTERS exactly
    """

    youtube_chapters = "youtube_chapters"
    chapter_json = "chapter_json"
    analysis_text = "analysis_text"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class WordModel(BaseModel):
    text: str = Field(description="The word as spoken, punctuation included.")
    start: float = Field(ge=0, description="Word start in seconds.")
    end: float = Field(ge=0, description="Word end in seconds.")


class SegmentModel(BaseModel):
    """One timed transcript segment."""

    start: float = Field(ge=0, description="Segment start in seconds.")
    duration: float = Field(default=0.0, ge=0, description="Segment duration in seconds.")
    text: str = Field(description="Segment text.")
    words: Optional[List[WordModel]] = Field(
        default=None,
        description="Optional word-level timing; enables precise filler spans.",
    )


class AnalysisRequest(BaseModel):
    """Transcript and options for one analysis.

    RULES:
    - duration defaults to last segment start + 30 s
    - fillers defaults to the configured enabled fillers ("um", "umm")
    - preset selects the pause threshold for the silence summary
    - formats defaults to all available formats
    """

    video_id: str = Field(min_length=1, description="Identifier the result is stored under.")
    segments: List[SegmentModel] = Field(description="Time-ordered transcript segments.")
    duration: Optional[float] = Field(default=None, gt=0, description="Video duration in seconds.")
    fillers: Optional[List[str]] = Field(
        default=None,
        description="Catalog filler words to detect (see GET /fillers).",
    )
    preset: Optional[str] = Field(
        default=None,
        description="AutoSkip preset name (see GET /presets).",
    )
    formats: Optional[List[OutputFormat]] = Field(
        default=None,
        description="Output formats to render. Defaults to all available formats.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "video_id": "talk-2026-03",
                "segments": [
                    {"start": 0.0, "duration": 4.2, "text": "Welcome, um, to the show."},
                    {"start": 6.1, "duration": 3.9, "text": "Today we talk about solar panels."},
                ],
                "duration": 1200,
                "fillers": ["um", "you know"],
                "preset": "normal",
                "formats": ["youtube_chapters", "chapter_json"],
            }
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ChapterModel(BaseModel):
    start: float = Field(description="Chapter start in seconds.")
    end: float = Field(description="Chapter end in seconds.")
    title: str = Field(description="Generated chapter title (at most 50 characters).")


class POIModel(BaseModel):
    time: float = Field(description="Highlight timestamp in seconds.")
    label: str = Field(description="Highlight label (at most 70 characters).")
    score: int = Field(description="Interest score the highlight was selected with.")


class PaceStatsModel(BaseModel):
    avg: int = Field(description="Average words per minute.")
    min: int = Field(description="Slowest segment WPM.")
    max: int = Field(description="Fastest segment WPM.")
    fast: int = Field(description="Segments faster than 1.4x the average.")
    slow: int = Field(description="Segments slower than 0.6x the average.")
    total: int = Field(description="Segments with non-zero WPM.")


class RenderedFile(BaseModel):
    filename: str = Field(description="Suggested filename ({video_id}{suffix}).")
    media_type: str = Field(description="MIME type of the content.")
    content: str = Field(description="Rendered file content.")


class AnalysisResponse(BaseModel):
    """A finished analysis.

    RULES:
    - keywords and summaries are parallel to chapters
    - files holds one entry per rendered formatter output
    """

    video_id: str = Field(description="Identifier the result is stored under.")
    duration: float = Field(description="Video duration used for segmentation.")
    chapters: List[ChapterModel] = Field(description="Contiguous chapters covering the video.")
    pois: List[POIModel] = Field(description="Up to 6 highlight timestamps.")
    filler_count: int = Field(description="Deduplicated filler hits.")
    pause_count: int = Field(description="Pauses at the preset's threshold.")
    silence_seconds: float = Field(description="Total pause time at the preset's threshold.")
    pace: Optional[PaceStatsModel] = Field(default=None, description="Speech pace statistics.")
    pace_label: Optional[str] = Field(default=None, description="fast, normal or slow.")
    keywords: List[List[str]] = Field(description="Top keywords per chapter.")
    summaries: List[List[str]] = Field(description="Summary sentences per chapter.")
    files: List[RenderedFile] = Field(default_factory=list, description="Rendered output files.")


class PresetInfo(BaseModel):
    name: str = Field(description="Preset identifier.")
    label: str = Field(description="Display label.")
    description: str = Field(description="What the preset skips.")
    pause_threshold: float = Field(description="Minimum pause length skipped, in seconds.")
    skip_fillers: bool = Field(description="Whether filler words are skipped.")
    silence_speed_multiplier: Optional[float] = Field(
        default=None,
        description="Playback rate inside pauses instead of seeking, if set.",
    )


class FillerCatalogResponse(BaseModel):
    categories: Dict[str, List[str]] = Field(description="Detectable fillers by category.")
    default_enabled: List[str] = Field(description="Fillers enabled when none are requested.")


class FormatInfo(BaseModel):
    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-chapters.txt').")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
