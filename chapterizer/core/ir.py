"""Intermediate representation dataclasses for transcripts and analysis results.

WHY: Every detector consumes the same timed transcript and each one
produces a different kind of timestamped record (chapters, highlights,
fillers, pauses, skip zones). Typed dataclasses make those contracts
explicit and keep the detectors decoupled from how the transcript was
fetched and from how results are rendered.

HOW: Input types (WordTiming, TranscriptSegment) are frozen; segments
are produced once per video and treated as read-only. Output types are
plain dataclasses with to_dict()/from_dict() for the cache and the HTTP
layer.

RULES:
- All times are float seconds
- TranscriptSegment.words, when present, is time-ordered and lies within
  [start, start + duration]
- Chapter titles are at most 50 characters, POI labels at most 70
- SkipZone.kind is "pause" or "filler"
- ChapterResult is the persisted unit: {"chapters": [...], "pois": [...]}
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ZONE_PAUSE = "pause"
ZONE_FILLER = "filler"


@dataclass(frozen=True)
class WordTiming:
    """One word with its own start/end inside a segment."""

    text: str
    start: float
    end: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WordTiming:
        return cls(text=data["text"], start=float(data["start"]), end=float(data["end"]))


@dataclass(frozen=True)
class TranscriptSegment:
    """A single timed unit of transcript text.

    WHY: The acquisition layer yields caption-style segments; some carry
    word-level offsets (precise filler spans), most do not.

    RULES:
    - start >= 0, duration >= 0
    - words is an immutable tuple (empty when word timing is absent)
    """

    start: float
    duration: float
    text: str
    words: Tuple[WordTiming, ...] = ()

    @property
    def end(self) -> float:
        return self.start + self.duration

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TranscriptSegment:
        """Parse a segment dict with keys start, duration (or dur), text, words."""
        duration = data.get("duration", data.get("dur", 0.0))
        words = tuple(WordTiming.from_dict(w) for w in data.get("words") or [])
        return cls(
            start=float(data["start"]),
            duration=float(duration or 0.0),
            text=str(data.get("text") or ""),
            words=words,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"start": self.start, "duration": self.duration, "text": self.text}
        if self.words:
            data["words"] = [asdict(w) for w in self.words]
        return data


@dataclass
class AnalysisGroup:
    """A merged time window of segments used as one TF-IDF document."""

    start: float
    text: str


@dataclass
class Chapter:
    start: float
    end: float
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Chapter:
        return cls(start=float(data["start"]), end=float(data["end"]), title=data["title"])


@dataclass
class POI:
    """A point of interest: a non-chapter highlight timestamp."""

    time: float
    label: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "label": self.label, "score": self.score}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> POI:
        return cls(time=float(data["time"]), label=data["label"], score=data["score"])


@dataclass
class ChapterResult:
    """Output of one segmentation run, cached per video and replaced wholesale."""

    chapters: List[Chapter] = field(default_factory=list)
    pois: List[POI] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chapters": [c.to_dict() for c in self.chapters],
            "pois": [p.to_dict() for p in self.pois],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChapterResult:
        return cls(
            chapters=[Chapter.from_dict(c) for c in data.get("chapters", [])],
            pois=[POI.from_dict(p) for p in data.get("pois", [])],
        )


@dataclass
class FillerHit:
    """A detected filler word or phrase.

    RULES:
    - precise is True iff the hit came from word-level timing; only then
      is end set
    - seg_start / seg_end bound the owning segment (used to clamp
      imprecise skip windows)
    """

    time: float
    duration: float
    word: str
    seg_start: float
    seg_end: float
    precise: bool
    end: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Pause:
    start: float
    end: float
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SkipZone:
    start: float
    end: float
    kind: str = ZONE_PAUSE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AutoSkipPreset:
    """Named bundle of AutoSkip aggression settings."""

    name: str
    pause_threshold: float
    skip_fillers: bool
    silence_speed_multiplier: Optional[float]
    label: str = ""
    description: str = ""


@dataclass
class PaceSample:
    start: float
    end: float
    wpm: int
    words: int


@dataclass
class PaceStats:
    avg: int
    min: int
    max: int
    fast: int
    slow: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AnalysisReport:
    """Everything known about one analyzed video, as consumed by formatters.

    RULES:
    - pauses are computed at the fine threshold; pause_threshold is the
      one reports summarize silence at
    - keywords and summaries are parallel to result.chapters
    """

    video_id: str
    duration: float
    result: ChapterResult
    fillers: List[FillerHit] = field(default_factory=list)
    pauses: List[Pause] = field(default_factory=list)
    pace: List[PaceSample] = field(default_factory=list)
    pace_stats: Optional[PaceStats] = None
    keywords: List[List[str]] = field(default_factory=list)
    summaries: List[List[str]] = field(default_factory=list)
    pause_threshold: float = 1.5
