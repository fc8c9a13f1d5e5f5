"""Transcript sources and the first-success combinator.

WHY: Caption data arrives in several shapes from several places, and
any one of them may be missing for a given video. Trying an ordered
list of sources and taking the first usable answer keeps that fallback
logic out of the session and out of the detectors.

HOW: TranscriptSource is an ABC with one async method. Concrete sources
parse their raw payload through segments_from_payload(), which accepts
the common shapes (segment lists, {"segments": [...]}, millisecond
timed events). FirstSuccessFetcher walks its sources in order and
returns the first non-empty segment list.

RULES:
- fetch() returns a non-empty, time-ordered list or raises
  AcquisitionFailure (EmptySegments when the payload had no usable text)
- Segments with blank text are dropped
- FirstSuccessFetcher logs each failed source at WARNING and raises
  only when every source failed
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx

from chapterizer.core.ir import TranscriptSegment, WordTiming

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 30.0


class AcquisitionFailure(Exception):
    """Raised when no transcript could be obtained for a video."""


class EmptySegments(AcquisitionFailure):
    """Raised when a fetch succeeded but yielded zero usable segments."""


def _words_from_ms(raw_words: Iterable[Mapping[str, Any]]) -> List[WordTiming]:
    words = []
    for w in raw_words:
        words.append(WordTiming(
            text=str(w["text"]),
            start=float(w["startMs"]) / 1000.0,
            end=float(w["endMs"]) / 1000.0,
        ))
    return words


def _segment_from_dict(data: Mapping[str, Any]) -> TranscriptSegment:
    if "startMs" in data:
        start = float(data["startMs"]) / 1000.0
        end = float(data.get("endMs", data["startMs"])) / 1000.0
        return TranscriptSegment(
            start=start,
            duration=max(end - start, 0.0),
            text=str(data.get("text") or ""),
            words=tuple(_words_from_ms(data.get("words") or [])),
        )
    return TranscriptSegment.from_dict(dict(data))


def _event_words(pieces: Sequence[Mapping[str, Any]], start_s: float, end_s: float) -> List[WordTiming]:
    """Word timings from per-piece tOffsetMs; each word ends where the next begins."""
    words = []
    for i, piece in enumerate(pieces):
        text = str(piece.get("utf8", "")).replace("\n", " ").strip()
        if not text:
            continue
        word_start = start_s + float(piece.get("tOffsetMs", 0)) / 1000.0
        following = pieces[i + 1] if i + 1 < len(pieces) else None
        if following is not None and "tOffsetMs" in following:
            word_end = start_s + float(following["tOffsetMs"]) / 1000.0
        else:
            word_end = end_s
        words.append(WordTiming(text=text, start=word_start, end=word_end))
    return words


def _segments_from_events(events: Iterable[Mapping[str, Any]]) -> List[TranscriptSegment]:
    segments = []
    for event in events:
        pieces = event.get("segs") or []
        text = "".join(str(p.get("utf8", "")) for p in pieces).replace("\n", " ").strip()
        if not text:
            continue
        start = float(event.get("tStartMs", 0)) / 1000.0
        duration = float(event.get("dDurationMs", 0)) / 1000.0
        words: List[WordTiming] = []
        if len(pieces) > 1 and any("tOffsetMs" in p for p in pieces):
            words = _event_words(pieces, start, start + duration)
        segments.append(TranscriptSegment(start=start, duration=duration, text=text, words=tuple(words)))
    return segments


def segments_from_payload(payload: Any) -> List[TranscriptSegment]:
    """Normalize a raw transcript payload into clean, time-ordered segments.

    Accepted shapes:
        - [{"start", "duration"|"dur", "text", "words"?}, ...]
        - [{"startMs", "endMs", "text", "words"?}, ...]
        - {"segments": [...]} wrapping either of the above
        - {"events": [{"tStartMs", "dDurationMs", "segs": [{"utf8", "tOffsetMs"?}]}]}

    Raises:
        AcquisitionFailure: Payload is not one of the accepted shapes.
        EmptySegments: Payload parsed but held no non-blank text.
    """
    try:
        if isinstance(payload, Mapping) and "events" in payload:
            segments = _segments_from_events(payload["events"])
        else:
            items = payload.get("segments") if isinstance(payload, Mapping) else payload
            if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
                raise AcquisitionFailure("Unrecognized transcript payload")
            segments = [_segment_from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError) as exc:
        raise AcquisitionFailure("Malformed transcript payload: {}".format(exc)) from exc

    cleaned = [s for s in segments if s.text.strip()]
    if not cleaned:
        raise EmptySegments("Transcript contained no usable segments")
    cleaned.sort(key=lambda s: s.start)
    return cleaned


class TranscriptSource(ABC):
    """One way of obtaining a transcript."""

    name: str = "source"

    @abstractmethod
    async def fetch(self, video_id: str) -> List[TranscriptSegment]:
        """Return segments for video_id or raise AcquisitionFailure."""


class StaticSource(TranscriptSource):
    """Serves segments that were already supplied (request body, tests)."""

    name = "static"

    def __init__(self, segments_by_video: Optional[Dict[str, List[TranscriptSegment]]] = None) -> None:
        self._segments: Dict[str, List[TranscriptSegment]] = dict(segments_by_video or {})

    def add(self, video_id: str, segments: List[TranscriptSegment]) -> None:
        self._segments[video_id] = list(segments)

    async def fetch(self, video_id: str) -> List[TranscriptSegment]:
        if video_id not in self._segments:
            raise AcquisitionFailure("No transcript supplied for '{}'".format(video_id))
        segments = [s for s in self._segments[video_id] if s.text.strip()]
        if not segments:
            raise EmptySegments("Transcript for '{}' has no usable segments".format(video_id))
        return segments


class JsonFileSource(TranscriptSource):
    """Reads {directory}/{video_id}.json."""

    name = "json-file"

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, video_id: str) -> Path:
        return self._directory / "{}.json".format(video_id)

    async def fetch(self, video_id: str) -> List[TranscriptSegment]:
        path = self.path_for(video_id)
        if not path.is_file():
            raise AcquisitionFailure("Transcript file not found: {}".format(path))
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise AcquisitionFailure("Could not read {}: {}".format(path, exc)) from exc
        return segments_from_payload(payload)


class HttpTranscriptSource(TranscriptSource):
    """Fetches JSON from a URL template such as https://host/captions/{video_id}.

    Uses the supplied httpx.AsyncClient when given (tests pass one with a
    MockTransport); otherwise opens a short-lived client per fetch.
    """

    name = "http"

    def __init__(
        self,
        url_template: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = _DEFAULT_TIMEOUT_S,
    ) -> None:
        self._url_template = url_template
        self._client = client
        self._timeout = timeout

    async def _get(self, client: httpx.AsyncClient, url: str) -> Any:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()

    async def fetch(self, video_id: str) -> List[TranscriptSegment]:
        url = self._url_template.format(video_id=video_id)
        try:
            if self._client is not None:
                payload = await self._get(self._client, url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    payload = await self._get(client, url)
        except httpx.HTTPError as exc:
            raise AcquisitionFailure("HTTP fetch failed for {}: {}".format(url, exc)) from exc
        except ValueError as exc:
            raise AcquisitionFailure("Invalid JSON from {}: {}".format(url, exc)) from exc
        return segments_from_payload(payload)


class FirstSuccessFetcher(TranscriptSource):
    """Tries sources in order and returns the first non-empty result."""

    name = "first-success"

    def __init__(self, sources: Sequence[TranscriptSource]) -> None:
        self._sources = list(sources)

    @property
    def sources(self) -> List[TranscriptSource]:
        return list(self._sources)

    async def fetch(self, video_id: str) -> List[TranscriptSegment]:
        failures: List[AcquisitionFailure] = []
        for source in self._sources:
            try:
                segments = await source.fetch(video_id)
            except AcquisitionFailure as exc:
                logger.warning("Transcript source %s failed for %s: %s", source.name, video_id, exc)
                failures.append(exc)
                continue
            if segments:
                logger.info(
                    "Transcript for %s from %s: %d segments", video_id, source.name, len(segments),
                )
                return segments
            failures.append(EmptySegments("{} returned no segments".format(source.name)))

        if failures and all(isinstance(f, EmptySegments) for f in failures):
            raise EmptySegments("No usable segments for '{}'".format(video_id))
        raise AcquisitionFailure(
            "No transcript available for '{}' ({} sources tried)".format(video_id, len(self._sources))
        )
