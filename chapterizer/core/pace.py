"""Speech pace, chapter keywords and chapter summaries.

WHY: Alongside chapters, viewers get a quick read of how a video is
delivered (words per minute, rushed or dragging stretches) and what each
chapter is about. None of this feeds the skip scheduler.

RULES:
- Zero-duration segments are treated as 3 s long
- PaceStats ignores segments with 0 WPM; None when nothing is left
- A segment is "fast" above 1.4x the average and "slow" below 0.6x
- Keywords: words longer than 3 chars, not stopwords, top 5 by count
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import List, Optional, Sequence

from chapterizer.core.ir import Chapter, PaceSample, PaceStats, TranscriptSegment
from chapterizer.core.lexical import STOPWORDS, split_sentences, text_rank

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_DURATION_S = 3.0
FAST_FACTOR = 1.4
SLOW_FACTOR = 0.6
FAST_WPM = 180
SLOW_WPM = 120
KEYWORDS_PER_CHAPTER = 5
SUMMARY_SENTENCES = 3

_KEYWORD_SPLIT_RE = re.compile(r"[^a-z0-9']+")


def analyze_pace(segments: Sequence[TranscriptSegment]) -> List[PaceSample]:
    """Words per minute for every segment."""
    samples: List[PaceSample] = []
    for seg in segments:
        words = len(seg.text.split())
        dur = seg.duration or DEFAULT_SEGMENT_DURATION_S
        samples.append(PaceSample(
            start=seg.start,
            end=seg.start + dur,
            wpm=int(round(words / dur * 60)),
            words=words,
        ))
    return samples


def pace_stats(samples: Sequence[PaceSample]) -> Optional[PaceStats]:
    wpms = [s.wpm for s in samples if s.wpm > 0]
    if not wpms:
        return None
    avg = int(round(sum(wpms) / len(wpms)))
    return PaceStats(
        avg=avg,
        min=min(wpms),
        max=max(wpms),
        fast=sum(1 for s in samples if s.wpm > avg * FAST_FACTOR),
        slow=sum(1 for s in samples if 0 < s.wpm < avg * SLOW_FACTOR),
        total=len(wpms),
    )


def classify_pace(avg_wpm: float) -> str:
    """Label an average WPM as "fast", "slow" or "normal"."""
    if avg_wpm > FAST_WPM:
        return "fast"
    if avg_wpm < SLOW_WPM:
        return "slow"
    return "normal"


def _chapter_segments(
    segments: Sequence[TranscriptSegment],
    chapter: Chapter,
) -> List[TranscriptSegment]:
    end = chapter.end if chapter.end else float("inf")
    return [s for s in segments if chapter.start <= s.start < end]


def keywords_per_chapter(
    segments: Sequence[TranscriptSegment],
    chapters: Sequence[Chapter],
    top_n: int = KEYWORDS_PER_CHAPTER,
) -> List[List[str]]:
    """Most frequent content words of each chapter, one list per chapter."""
    if not segments or not chapters:
        return []
    result: List[List[str]] = []
    for chapter in chapters:
        text = " ".join(s.text for s in _chapter_segments(segments, chapter)).lower()
        words = [w for w in _KEYWORD_SPLIT_RE.split(text) if len(w) > 3 and w not in STOPWORDS]
        # Counter.most_common keeps first-seen order among equal counts
        result.append([w for w, _ in Counter(words).most_common(top_n)])
    return result


def summarize_chapters(
    segments: Sequence[TranscriptSegment],
    chapters: Sequence[Chapter],
    top_n: int = SUMMARY_SENTENCES,
) -> List[List[str]]:
    """TextRank summary sentences of each chapter, in document order."""
    summaries: List[List[str]] = []
    for chapter in chapters:
        text = " ".join(s.text for s in _chapter_segments(segments, chapter))
        ranked = text_rank(split_sentences(text), top_n=top_n)
        summaries.append([sentence for _, sentence, _ in ranked])
    logger.debug("Summarized %d chapters", len(summaries))
    return summaries
