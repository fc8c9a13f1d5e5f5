"""Transcript acquisition behind one narrow interface.

WHY: Transcripts come from many places (cached JSON files, a caption
service, request bodies). The session only needs "segments for this
video id, or a definitive failure"; everything else stays here.

RULES:
- Every source is a TranscriptSource with an async fetch(video_id)
- FirstSuccessFetcher is itself a TranscriptSource
"""

from chapterizer.acquisition.sources import (
    AcquisitionFailure,
    EmptySegments,
    FirstSuccessFetcher,
    HttpTranscriptSource,
    JsonFileSource,
    StaticSource,
    TranscriptSource,
    segments_from_payload,
)

__all__ = [
    "AcquisitionFailure",
    "EmptySegments",
    "FirstSuccessFetcher",
    "HttpTranscriptSource",
    "JsonFileSource",
    "StaticSource",
    "TranscriptSource",
    "segments_from_payload",
]
