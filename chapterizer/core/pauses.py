"""Inter-segment pause detection.

WHY: Long silences between caption segments are the main thing AutoSkip
removes. Each AutoSkip preset uses a different threshold, and users
switch presets mid-playback, so pauses are computed once at the finest
threshold and filtered later.

RULES:
- gap = next.start - (current.start + current.duration)
- A pause is emitted when gap >= threshold
- Pause.duration is the gap rounded to one decimal; filtering uses the
  exact gap (end - start) so it matches a fresh computation
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from chapterizer.core.ir import Pause, TranscriptSegment

logger = logging.getLogger(__name__)

FINE_PAUSE_THRESHOLD = 0.5
"""Granularity sessions compute at; coarser thresholds are filters."""


def detect_pauses(segments: Sequence[TranscriptSegment], threshold: float) -> List[Pause]:
    """Return the pauses between adjacent segments that last at least threshold."""
    pauses: List[Pause] = []
    for current, nxt in zip(segments, segments[1:]):
        gap = nxt.start - current.end
        if gap >= threshold and gap > 0:
            pauses.append(Pause(start=current.end, end=nxt.start, duration=round(gap, 1)))
    logger.debug(
        "Pause detection: %d pauses >= %.1fs in %d segments", len(pauses), threshold, len(segments),
    )
    return pauses


def filter_pauses(pauses: Iterable[Pause], threshold: float) -> List[Pause]:
    """Apply a coarser threshold to pauses computed at a finer one."""
    return [p for p in pauses if p.end - p.start >= threshold]


def silence_summary(pauses: Iterable[Pause], threshold: float, duration: float) -> dict:
    """Count and total the pauses at threshold, with share of the video."""
    relevant = filter_pauses(pauses, threshold)
    total = sum(p.end - p.start for p in relevant)
    percent = round(total / duration * 100) if duration > 0 else 0
    return {"count": len(relevant), "total_s": round(total, 1), "percent": percent}
