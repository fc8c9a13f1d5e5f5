"""Point-of-interest detection by multi-signal segment scoring.

WHY: Chapters mark topic changes; viewers also want the handful of
moments inside chapters where the speaker stresses something, lists a
takeaway, fields questions, or pauses for effect.

HOW: Every segment gets an integer score from independent cues (emphasis
and enumeration lexicons, question clusters, pauses, length,
exclamations, named entities). Segments scoring at least 3 become
candidates; a greedy pass keeps the best-scoring candidates that are
far enough from each other and from chapter starts.

RULES:
- At most 6 POIs per video
- No two POIs within 90 s of each other
- No POI within 10 s of a chapter start
- Labels are at most 70 characters (67 + "...")
- Output is sorted by time ascending
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from chapterizer.core.ir import POI, Chapter, TranscriptSegment

logger = logging.getLogger(__name__)

EMPHASIS_RE = re.compile(
    r"\b(important|key point|remember|crucial|breaking|announce|reveal|surprise|"
    r"incredible|amazing|game.?changer|mind.?blow|breakthrough|discover|secret|tip|"
    r"trick|hack|milestone|highlight|takeaway|essential|critical|warning|danger|"
    r"careful|watch out|pay attention)\b",
    re.IGNORECASE,
)

ENUMERATION_RE = re.compile(
    r"\b(first(ly)?|second(ly)?|third(ly)?|step one|step two|number one|number two|"
    r"finally|in conclusion|to summarize|the main|the biggest|the most|in summary|"
    r"bottom line|key takeaway|most importantly)\b",
    re.IGNORECASE,
)

_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]{2,}")
_SENTENCE_END_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class PoiConfig:
    """Scoring weights and spacing rules for POI selection."""

    emphasis_score: int = 4
    enumeration_score: int = 3
    question_cluster_score: int = 2
    question_window_s: float = 60.0
    question_cluster_size: int = 3
    gap_score: int = 2
    gap_s: float = 8.0
    long_text_chars: int = 100
    min_score: int = 3
    max_pois: int = 6
    min_spacing_s: float = 90.0
    chapter_clearance_s: float = 10.0
    max_label_chars: int = 70


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mid_sentence_capitals(text: str) -> int:
    """Count capitalized words that do not open a sentence."""
    count = 0
    for match in _CAPITALIZED_RE.finditer(text):
        before = text[:match.start()].rstrip()
        if before and before[-1] not in ".!?":
            count += 1
    return count


def score_segment(
    segments: Sequence[TranscriptSegment],
    index: int,
    config: PoiConfig = PoiConfig(),
) -> int:
    """Integer interest score of segments[index]."""
    seg = segments[index]
    text = seg.text
    score = 0

    if EMPHASIS_RE.search(text):
        score += config.emphasis_score
    if ENUMERATION_RE.search(text):
        score += config.enumeration_score

    nearby_questions = sum(
        1 for j, other in enumerate(segments)
        if j != index
        and abs(other.start - seg.start) < config.question_window_s
        and "?" in other.text
    )
    if nearby_questions >= config.question_cluster_size:
        score += config.question_cluster_score

    if index > 0 and seg.start - segments[index - 1].start > config.gap_s:
        score += config.gap_score

    if len(text) > config.long_text_chars:
        score += 1
    if "!" in text:
        score += 1
    if _mid_sentence_capitals(text) >= 2:
        score += 1

    return score


def make_label(text: str, max_chars: int = 70) -> str:
    """Pick the most telling sentence of a segment and truncate it."""
    label = text.strip()
    sentences = [s.strip() for s in _SENTENCE_END_RE.split(label) if len(s.strip()) > 10]
    if len(sentences) > 1:
        cued: Optional[str] = next(
            (s for s in sentences if EMPHASIS_RE.search(s) or ENUMERATION_RE.search(s)),
            None,
        )
        label = cued or sentences[0]
    if len(label) > max_chars:
        label = label[:max_chars - 3] + "..."
    return label


def detect_pois(
    segments: Sequence[TranscriptSegment],
    chapters: Sequence[Chapter],
    config: PoiConfig = PoiConfig(),
) -> List[POI]:
    """Score, rank, and space out highlight timestamps.

    Args:
        segments: Time-ordered transcript segments.
        chapters: Finalized chapters; POIs keep clear of their starts.
        config: Scoring weights and spacing rules.

    Returns:
        Up to config.max_pois POIs sorted by time.
    """
    candidates: List[POI] = []
    for i, seg in enumerate(segments):
        score = score_segment(segments, i, config)
        if score >= config.min_score:
            candidates.append(POI(
                time=round_half_up(seg.start),
                label=make_label(seg.text, config.max_label_chars),
                score=score,
            ))

    candidates.sort(key=lambda p: p.score, reverse=True)

    accepted: List[POI] = []
    for poi in candidates:
        if len(accepted) >= config.max_pois:
            break
        if any(abs(p.time - poi.time) < config.min_spacing_s for p in accepted):
            continue
        if any(abs(c.start - poi.time) < config.chapter_clearance_s for c in chapters):
            continue
        accepted.append(poi)

    accepted.sort(key=lambda p: p.time)
    logger.debug("POI detection: %d candidates, %d accepted", len(candidates), len(accepted))
    return accepted
