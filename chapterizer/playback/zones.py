"""Skip zone construction from pauses and filler hits.

WHY: The scheduler checks the playhead against one sorted,
non-overlapping list so each tick is a cursor step instead of a scan
over every pause and filler.

HOW: Pauses at the preset threshold become "pause" zones. When the
preset skips fillers, each hit becomes a "filler" zone: precise hits get
a short pre-roll before the word (nasal fillers have a longer onset),
interpolated hits get a wide window clamped to their segment. Zones are
sorted by start and merged when they touch within 0.2 s.

RULES:
- A merged zone is "pause" if any contributing zone was a pause
- Output is sorted and non-overlapping
- Interpolated windows that clamp to nothing are dropped
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from chapterizer.core.ir import ZONE_FILLER, ZONE_PAUSE, AutoSkipPreset, FillerHit, Pause, SkipZone
from chapterizer.core.pauses import filter_pauses

logger = logging.getLogger(__name__)

FILLER_PRE_ROLL_S: Dict[str, float] = {
    "um": 0.35,
    "umm": 0.35,
    "uh": 0.35,
    "uhh": 0.35,
    "hmm": 0.3,
}
DEFAULT_PRE_ROLL_S = 0.15
IMPRECISE_LEAD_S = 1.0
IMPRECISE_TAIL_S = 0.5
MERGE_GAP_S = 0.2


def filler_zone(hit: FillerHit) -> SkipZone:
    """Skip window for one filler hit (may be empty for clamped hits)."""
    if hit.precise and hit.end is not None:
        pre_roll = FILLER_PRE_ROLL_S.get(hit.word, DEFAULT_PRE_ROLL_S)
        return SkipZone(start=max(hit.time - pre_roll, 0.0), end=hit.end, kind=ZONE_FILLER)
    return SkipZone(
        start=max(hit.time - IMPRECISE_LEAD_S, hit.seg_start),
        end=min(hit.time + hit.duration + IMPRECISE_TAIL_S, hit.seg_end),
        kind=ZONE_FILLER,
    )


def merge_zones(zones: Iterable[SkipZone], gap_s: float = MERGE_GAP_S) -> List[SkipZone]:
    """Sort zones and merge those that overlap or lie within gap_s."""
    merged: List[SkipZone] = []
    for zone in sorted(zones, key=lambda z: z.start):
        last = merged[-1] if merged else None
        if last is not None and zone.start <= last.end + gap_s:
            last.end = max(last.end, zone.end)
            if zone.kind == ZONE_PAUSE:
                last.kind = ZONE_PAUSE
        else:
            merged.append(SkipZone(start=zone.start, end=zone.end, kind=zone.kind))
    return merged


def build_skip_zones(
    pauses: Sequence[Pause],
    fillers: Sequence[FillerHit],
    preset: AutoSkipPreset,
) -> List[SkipZone]:
    """Merged skip zones for a preset.

    Args:
        pauses: Pauses computed at any threshold <= preset.pause_threshold.
        fillers: Detected filler hits (ignored unless preset.skip_fillers).
        preset: The AutoSkip preset being armed.
    """
    zones = [
        SkipZone(start=p.start, end=p.end, kind=ZONE_PAUSE)
        for p in filter_pauses(pauses, preset.pause_threshold)
    ]
    if preset.skip_fillers:
        for hit in fillers:
            zone = filler_zone(hit)
            if zone.end > zone.start:
                zones.append(zone)

    merged = merge_zones(zones)
    logger.debug("Built %d skip zones for preset %s", len(merged), preset.name)
    return merged
