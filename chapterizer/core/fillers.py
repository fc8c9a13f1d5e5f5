"""Filler word detection with word-level timing when available.

WHY: Disfluencies ("um", "you know") are what AutoSkip removes during
playback. Hard-seeking over them needs tight spans; caption-only
transcripts give just a segment and its text, so positions have to be
interpolated.

HOW: build_matchers() splits the enabled catalog subset into single
words and multi-word phrases. For each segment:
  - with word timing, timed words are compared directly against single
    words and against phrase token sequences → precise spans
  - without, single words are placed proportionally by word index and
    phrases by character offset → synthetic 0.8 s / 1.0 s hits
Finally hits are sorted and thinned so no two kept hits are within 1 s.

RULES:
- "like" is a filler only when immediately followed by a comma
- precise=True iff the hit came from word-level timing
- Zero-duration segments are treated as 3 s long
- Dedup keeps the earliest hit and drops any hit <= 1.0 s after the
  previously kept one
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Pattern, Sequence, Set, Tuple

from chapterizer.core.ir import FillerHit, TranscriptSegment, WordTiming

logger = logging.getLogger(__name__)

COMMA_ONLY_FILLERS = frozenset({"like"})
"""Fillers that only count when immediately followed by a comma."""

DEFAULT_SEGMENT_DURATION_S = 3.0
WORD_HIT_DURATION_S = 0.8
PHRASE_HIT_DURATION_S = 1.0
DEDUP_WINDOW_S = 1.0

_NON_ALPHA_RE = re.compile(r"[^a-zA-Z\s]")


@dataclass
class FillerMatchers:
    """Compiled view of the enabled filler words."""

    simple: Set[str] = field(default_factory=set)
    phrases: List[Tuple[str, Tuple[str, ...], Pattern[str]]] = field(default_factory=list)
    comma_words: Set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.simple or self.phrases or self.comma_words)


def _clean(word: str) -> str:
    return _NON_ALPHA_RE.sub("", word).lower().strip()


def build_matchers(enabled_words: Iterable[str]) -> FillerMatchers:
    """Compile enabled filler words into single-word and phrase matchers."""
    matchers = FillerMatchers()
    for word in enabled_words:
        lowered = word.lower().strip()
        if not lowered:
            continue
        if lowered in COMMA_ONLY_FILLERS:
            matchers.comma_words.add(lowered)
            pattern = re.compile(r"\b({})\s*,".format(re.escape(lowered)), re.IGNORECASE)
            matchers.phrases.append((lowered, (lowered,), pattern))
        elif " " in lowered:
            tokens = tuple(lowered.split())
            pattern = re.compile(r"\b({})\b".format(re.escape(lowered)), re.IGNORECASE)
            matchers.phrases.append((lowered, tokens, pattern))
        else:
            matchers.simple.add(lowered)
    return matchers


def _precise_hits(
    seg: TranscriptSegment,
    matchers: FillerMatchers,
    seg_end: float,
) -> List[FillerHit]:
    hits: List[FillerHit] = []
    words: Sequence[WordTiming] = seg.words
    cleaned = [_clean(w.text) for w in words]

    for w, clean in zip(words, cleaned):
        if clean in matchers.simple:
            hits.append(FillerHit(
                time=w.start, end=w.end, duration=w.end - w.start, word=clean,
                seg_start=seg.start, seg_end=seg_end, precise=True,
            ))

    for phrase, tokens, _ in matchers.phrases:
        n = len(tokens)
        for i in range(len(words) - n + 1):
            if tuple(cleaned[i:i + n]) != tokens:
                continue
            if phrase in matchers.comma_words and not words[i + n - 1].text.rstrip().endswith(","):
                continue
            first, last = words[i], words[i + n - 1]
            hits.append(FillerHit(
                time=first.start, end=last.end, duration=last.end - first.start, word=phrase,
                seg_start=seg.start, seg_end=seg_end, precise=True,
            ))
    return hits


def _interpolated_hits(
    seg: TranscriptSegment,
    matchers: FillerMatchers,
    seg_dur: float,
    seg_end: float,
) -> List[FillerHit]:
    hits: List[FillerHit] = []
    text = seg.text
    words = text.split()

    for index, raw in enumerate(words):
        clean = _clean(raw)
        if clean in matchers.simple:
            offset = (index / max(len(words), 1)) * seg_dur
            hits.append(FillerHit(
                time=seg.start + offset, duration=WORD_HIT_DURATION_S, word=clean,
                seg_start=seg.start, seg_end=seg_end, precise=False,
            ))

    for phrase, _, pattern in matchers.phrases:
        for match in pattern.finditer(text):
            char_pos = match.start() / max(len(text), 1)
            hits.append(FillerHit(
                time=seg.start + char_pos * seg_dur, duration=PHRASE_HIT_DURATION_S, word=phrase,
                seg_start=seg.start, seg_end=seg_end, precise=False,
            ))
    return hits


def dedupe_hits(hits: Iterable[FillerHit], window_s: float = DEDUP_WINDOW_S) -> List[FillerHit]:
    """Sort by time and keep hits more than window_s after the last kept one."""
    kept: List[FillerHit] = []
    last_time = None
    for hit in sorted(hits, key=lambda h: h.time):
        if last_time is None or hit.time - last_time > window_s:
            kept.append(hit)
            last_time = hit.time
    return kept


def detect_fillers(
    segments: Sequence[TranscriptSegment],
    enabled_words: Iterable[str],
) -> List[FillerHit]:
    """Detect enabled filler words across all segments.

    Args:
        segments: Time-ordered transcript segments.
        enabled_words: Catalog words/phrases to look for.

    Returns:
        Time-sorted, deduplicated FillerHit list (empty when nothing is
        enabled or there are no segments).
    """
    matchers = build_matchers(enabled_words)
    if not segments or not matchers:
        return []

    hits: List[FillerHit] = []
    precise_count = 0
    for seg in segments:
        seg_dur = seg.duration or DEFAULT_SEGMENT_DURATION_S
        seg_end = seg.start + seg_dur
        if seg.words:
            found = _precise_hits(seg, matchers, seg_end)
            precise_count += len(found)
        else:
            found = _interpolated_hits(seg, matchers, seg_dur, seg_end)
        hits.extend(found)

    kept = dedupe_hits(hits)
    logger.debug(
        "Filler detection: %d fillers in %d segments (%d word-level precise)",
        len(kept), len(segments), precise_count,
    )
    return kept
