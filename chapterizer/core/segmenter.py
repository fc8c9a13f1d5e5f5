"""Topic segmentation: transcript segments → titled chapters and POIs.

WHY: Long spoken-word videos rarely ship with chapters. A deterministic,
unsupervised segmenter lets every video get navigable chapters from its
transcript alone, and produces the same chapters every time it runs on
the same input.

HOW: Segments are bucketed into 30 s windows, window pairs become 60 s
analysis groups, and each group is a TF-IDF document. Cosine similarity
between consecutive groups dips where the topic changes. An adaptive
threshold picks boundaries, the count is clamped to a range derived from
the video length, and each chapter is titled from the key phrases of its
merged vectors. Finally POIs are detected with the chapter starts as
exclusion points.

RULES:
- Group size is fixed (60 s) regardless of video length so vectors stay
  distinctive on long videos
- Fewer than 2 groups → single "Full Video" chapter and no POIs
- Boundaries are at least 90 s apart when first accepted; augmentation
  keeps 60 s from existing boundaries
- Chapter count lies in [max(3, T//300), min(max(6, ceil(T/180)), 15)]
  whenever enough candidate boundaries exist
- Chapters are contiguous: first starts at 0, last ends at the duration
- The constants are configuration (SegmentationConfig), tuned empirically
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from chapterizer.core.ir import AnalysisGroup, Chapter, ChapterResult, TranscriptSegment
from chapterizer.core.lexical import (
    TFIDFVector,
    adjacent_similarities,
    key_phrases,
    merge_vectors,
    title_case,
    vectorize,
)
from chapterizer.core.poi import PoiConfig, detect_pois, round_half_up

logger = logging.getLogger(__name__)

FULL_VIDEO_TITLE = "Full Video"


@dataclass(frozen=True)
class SegmentationConfig:
    """Tunable constants for chapter segmentation.

    Defaults reproduce the behaviour users already rely on; new
    deployments may tune them.
    """

    window_s: float = 30.0
    windows_per_group: int = 2
    min_threshold: float = 0.05
    std_factor: float = 0.5
    percentile: float = 0.25
    percentile_margin: float = 0.05
    min_boundary_gap_s: float = 90.0
    augment_gap_s: float = 60.0
    seconds_per_min_chapter: float = 300.0
    seconds_per_max_chapter: float = 180.0
    min_chapters: int = 3
    max_chapters_floor: int = 6
    max_chapters_cap: int = 15
    key_phrase_count: int = 4
    short_title_chars: int = 10
    max_title_chars: int = 50
    fallback_duration_pad_s: float = 30.0
    fallback_duration_s: float = 300.0
    poi: PoiConfig = field(default_factory=PoiConfig)


DEFAULT_CONFIG = SegmentationConfig()


def build_groups(
    segments: Sequence[TranscriptSegment],
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> List[AnalysisGroup]:
    """Bucket segments into windows and merge windows into analysis groups.

    RULES:
    - Window index is floor(start / window_s); gaps produce empty windows
    - Groups with only whitespace text are dropped
    """
    windows: List[List[str]] = []
    for seg in segments:
        idx = int(math.floor(seg.start / config.window_s))
        while len(windows) <= idx:
            windows.append([])
        windows[idx].append(seg.text)

    groups: List[AnalysisGroup] = []
    step = config.windows_per_group
    for i in range(0, len(windows), step):
        text = " ".join(" ".join(w) for w in windows[i:i + step])
        if text.strip():
            groups.append(AnalysisGroup(start=i * config.window_s, text=text))
    return groups


def compute_threshold(
    similarities: Sequence[float],
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> Tuple[float, float]:
    """Return (threshold, mean) for a list of consecutive-group similarities."""
    if not similarities:
        return config.min_threshold, 0.0
    n = len(similarities)
    mean = sum(similarities) / n
    std = math.sqrt(sum((s - mean) ** 2 for s in similarities) / n)
    ordered = sorted(similarities)
    p25 = ordered[int(math.floor(n * config.percentile))]
    threshold = max(
        config.min_threshold,
        min(mean - config.std_factor * std, p25 + config.percentile_margin),
    )
    logger.debug(
        "Cosine threshold %.3f (mean %.3f, std %.3f, p25 %.3f)", threshold, mean, std, p25,
    )
    return threshold, mean


def chapter_count_bounds(
    total_s: float,
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> Tuple[int, int]:
    """Return (target_min, target_cap) for a video of total_s seconds."""
    target_min = max(config.min_chapters, int(math.floor(total_s / config.seconds_per_min_chapter)))
    target_max = max(config.max_chapters_floor, int(math.ceil(total_s / config.seconds_per_max_chapter)))
    return target_min, min(target_max, config.max_chapters_cap)


def select_boundaries(
    groups: Sequence[AnalysisGroup],
    similarities: Sequence[float],
    total_s: float,
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> List[int]:
    """Choose group indices that start chapters.

    WHY: A raw threshold over- or under-segments depending on how
    homogeneous the talk is. Clamping to a length-derived range keeps
    chapters between roughly three and five minutes.

    HOW: similarities[k] compares group k and group k + 1, so the
    boundary candidate for group i has similarity similarities[i - 1].
    Accept sub-threshold candidates with a minimum time gap, drop the
    weakest breaks while over the cap, then add the strongest unused
    dips while under the minimum.

    RULES:
    - Group 0 is always a boundary and is never dropped
    - Ties when trimming drop the earliest boundary
    """
    sim_at = {i + 1: s for i, s in enumerate(similarities)}
    threshold, mean = compute_threshold(similarities, config)

    boundaries = [0]
    for idx in range(1, len(groups)):
        if sim_at[idx] >= threshold:
            continue
        if groups[idx].start - groups[boundaries[-1]].start >= config.min_boundary_gap_s:
            boundaries.append(idx)

    target_min, target_cap = chapter_count_bounds(total_s, config)

    while len(boundaries) > target_cap:
        weakest, weakest_sim = 1, -1.0
        for pos in range(1, len(boundaries)):
            sim = sim_at.get(boundaries[pos], 1.0)
            if sim > weakest_sim:
                weakest, weakest_sim = pos, sim
        del boundaries[weakest]

    if len(boundaries) < target_min and len(groups) >= 4:
        unused = sorted(
            (idx for idx, sim in sim_at.items() if idx not in boundaries and sim < mean),
            key=lambda idx: sim_at[idx],
        )
        for idx in unused:
            if len(boundaries) >= target_min:
                break
            drop_time = groups[idx].start
            too_close = any(
                abs(groups[b].start - drop_time) < config.augment_gap_s for b in boundaries
            )
            if not too_close:
                boundaries.append(idx)
                boundaries.sort()

    return boundaries


def make_title(phrases: Sequence[str], index: int, config: SegmentationConfig = DEFAULT_CONFIG) -> str:
    """Synthesize a chapter title from ranked key phrases, preferring bigrams."""
    if len(phrases) >= 2:
        if " " in phrases[0]:
            title = title_case(phrases[0])
        elif " " in phrases[1]:
            title = title_case(phrases[1])
        else:
            title = title_case(phrases[0] + " " + phrases[1])
        if len(title) < config.short_title_chars and len(phrases) >= 3:
            extra = phrases[2].split(" ")[0]
            title += " " + title_case(extra)
    elif len(phrases) == 1:
        title = title_case(phrases[0])
    else:
        title = "Section {}".format(index + 1)
    return title[:config.max_title_chars]


def resolve_duration(
    segments: Sequence[TranscriptSegment],
    duration: Optional[float],
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> float:
    if duration:
        return float(duration)
    if segments:
        return segments[-1].start + config.fallback_duration_pad_s
    return config.fallback_duration_s


def generate_chapters(
    segments: Sequence[TranscriptSegment],
    duration: Optional[float] = None,
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> ChapterResult:
    """Segment a transcript into titled chapters and detect POIs.

    Args:
        segments: Time-ordered transcript segments (may be empty).
        duration: Video duration in seconds; falsy values fall back to
                  the last segment start + 30 s (or 300 s with no segments).
        config: Segmentation constants.

    Returns:
        ChapterResult with contiguous chapters and spaced POIs.
    """
    total_s = resolve_duration(segments, duration, config)
    groups = build_groups(segments, config)
    if len(groups) < 2:
        logger.debug("Only %d analysis group(s); using single chapter", len(groups))
        return ChapterResult(
            chapters=[Chapter(start=0.0, end=total_s, title=FULL_VIDEO_TITLE)],
            pois=[],
        )

    vectors: List[TFIDFVector] = vectorize([g.text for g in groups])
    similarities = adjacent_similarities(vectors)
    boundaries = select_boundaries(groups, similarities, total_s, config)

    chapters: List[Chapter] = []
    for i, b_idx in enumerate(boundaries):
        end_idx = boundaries[i + 1] if i < len(boundaries) - 1 else len(groups)
        merged = merge_vectors(vectors[b_idx:end_idx])
        phrases = key_phrases(merged, config.key_phrase_count)
        chapters.append(Chapter(
            start=float(round_half_up(groups[b_idx].start)),
            end=0.0,
            title=make_title(phrases, i, config),
        ))

    chapters[0].start = 0.0
    for i, chapter in enumerate(chapters):
        chapter.end = chapters[i + 1].start if i < len(chapters) - 1 else total_s

    pois = detect_pois(segments, chapters, config.poi)
    logger.debug(
        "Segmentation: %d chapters, %d POIs from %d groups",
        len(chapters), len(pois), len(groups),
    )
    return ChapterResult(chapters=chapters, pois=pois)
