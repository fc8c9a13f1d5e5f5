"""Analysis session: one video's chapters, detections, and AutoSkip.

WHY: Everything derived from a transcript (chapters, fillers, pauses,
pace, the armed scheduler) belongs to exactly one video. Holding it in
an explicit session object with a reset(video_id) transition makes
video changes total: nothing from the previous video survives, and a
regeneration that finishes late cannot overwrite the new video's state.

HOW: generate() fetches the transcript, runs segmentation, caches the
result, runs the independent detectors, and (when AutoSkip is
configured) arms the scheduler, reporting progress through an optional
status callback. open_video() is the auto-mode entry point used when a
viewer switches videos.

RULES:
- Only one generate() runs at a time; a second call returns None
  immediately and does not disturb the first
- A generate() whose video id no longer matches the session on arrival
  is discarded (returns None, no state written)
- Acquisition failures are reported via the callback with state "error"
  and a None result; they are never retried here
- All detectors complete before the scheduler is armed
- reset() disarms the scheduler synchronously
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from chapterizer.acquisition.sources import AcquisitionFailure, TranscriptSource
from chapterizer.config import Settings
from chapterizer.core.fillers import detect_fillers
from chapterizer.core.ir import (
    AnalysisReport,
    ChapterResult,
    FillerHit,
    PaceSample,
    PaceStats,
    Pause,
    TranscriptSegment,
)
from chapterizer.core.pace import analyze_pace, keywords_per_chapter, pace_stats, summarize_chapters
from chapterizer.core.pauses import FINE_PAUSE_THRESHOLD, detect_pauses
from chapterizer.core.segmenter import DEFAULT_CONFIG, SegmentationConfig, generate_chapters, resolve_duration
from chapterizer.playback.presets import AUTOSKIP_PRESETS, get_preset
from chapterizer.playback.scheduler import AsyncioTickScheduler, PlaybackControl, SkipScheduler, TickScheduler
from chapterizer.playback.zones import build_skip_zones
from chapterizer.storage.cache import ResultCache

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, str, int], None]

STATE_LOADING = "loading"
STATE_READY = "ready"
STATE_ERROR = "error"

UNLIMITED_AUTO_DURATION_MIN = 9999


class AnalysisSession:
    """Session-scoped context for one active video.

    Args:
        fetcher: Where transcripts come from (usually a FirstSuccessFetcher).
        player: Host player; without one AutoSkip is unavailable and
                durations fall back to the transcript.
        ticker: Frame scheduler for AutoSkip (defaults to asyncio).
        cache: Result cache; None disables caching.
        settings: User configuration (defaults to Settings()).
        seg_config: Segmentation constants.
    """

    def __init__(
        self,
        fetcher: TranscriptSource,
        player: Optional[PlaybackControl] = None,
        ticker: Optional[TickScheduler] = None,
        cache: Optional[ResultCache] = None,
        settings: Optional[Settings] = None,
        seg_config: SegmentationConfig = DEFAULT_CONFIG,
    ) -> None:
        self._fetcher = fetcher
        self._player = player
        self._cache = cache
        self.settings = settings or Settings()
        self._seg_config = seg_config
        self._scheduler: Optional[SkipScheduler] = None
        if player is not None:
            self._scheduler = SkipScheduler(player, ticker or AsyncioTickScheduler())

        self._is_generating = False
        self._video_id: Optional[str] = None
        self._clear_state()

    def _clear_state(self) -> None:
        self._result: Optional[ChapterResult] = None
        self._segments: List[TranscriptSegment] = []
        self._duration: Optional[float] = None
        self._fillers: List[FillerHit] = []
        self._pauses: List[Pause] = []
        self._pace: List[PaceSample] = []
        self._keywords: List[List[str]] = []
        self._summaries: Optional[List[List[str]]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def video_id(self) -> Optional[str]:
        return self._video_id

    @property
    def chapter_result(self) -> Optional[ChapterResult]:
        return self._result

    @property
    def segments(self) -> List[TranscriptSegment]:
        return list(self._segments)

    @property
    def is_generating(self) -> bool:
        return self._is_generating

    def _player_duration(self) -> Optional[float]:
        return self._player.duration() if self._player is not None else None

    def reset(self, video_id: Optional[str]) -> None:
        """Switch to video_id, discarding all derived state.

        A cached result for the new video is restored immediately.
        """
        self.stop_auto_skip()
        self._video_id = video_id
        self._clear_state()
        if video_id is not None and self._cache is not None:
            self._result = self._cache.get(video_id)
        logger.info("Session reset to %s (cached: %s)", video_id, self._result is not None)

    async def generate(
        self,
        video_id: Optional[str] = None,
        on_status: Optional[StatusCallback] = None,
        duration: Optional[float] = None,
    ) -> Optional[ChapterResult]:
        """Fetch, segment, cache, analyze, and optionally arm AutoSkip.

        Args:
            video_id: Video to generate for; defaults to the session's
                      current video. A different id resets the session.
            on_status: Optional (message, state, percent) progress callback.
            duration: Known video duration; defaults to the player's.

        Returns:
            The new ChapterResult, or None when rejected, failed, or
            discarded because the active video changed.
        """
        if self._is_generating:
            logger.info("Generation already in progress; ignoring request for %s", video_id)
            return None

        target = video_id if video_id is not None else self._video_id
        if target is None:
            raise ValueError("generate() needs a video id")
        if target != self._video_id:
            self.reset(target)

        def status(message: str, state: str, percent: int) -> None:
            if on_status is not None:
                on_status(message, state, percent)

        self._is_generating = True
        try:
            status("Fetching transcript...", STATE_LOADING, 5)
            try:
                segments = await self._fetcher.fetch(target)
            except AcquisitionFailure as exc:
                logger.warning("Transcript acquisition failed for %s: %s", target, exc)
                status(str(exc) or "No transcript available", STATE_ERROR, 0)
                return None

            if self._video_id != target:
                logger.info("Discarding result for %s; active video is now %s", target, self._video_id)
                return None

            status("Analyzing transcript...", STATE_LOADING, 60)
            player_duration = duration or self._player_duration()
            result = generate_chapters(segments, player_duration, self._seg_config)

            self._segments = list(segments)
            self._duration = resolve_duration(segments, player_duration, self._seg_config)
            self._result = result
            if self._cache is not None:
                self._cache.store(target, result)

            self.run_analysis(segments)
            status(
                "Generated {} chapters, {} POIs".format(len(result.chapters), len(result.pois)),
                STATE_READY,
                100,
            )
            self._maybe_start_auto_skip()
            return result
        finally:
            self._is_generating = False

    def run_analysis(self, segments: List[TranscriptSegment]) -> None:
        """Run the filler, pause, pace, and keyword detectors."""
        enabled = self.settings.enabled_filler_words() if self.settings.filler_detect else []
        self._fillers = detect_fillers(segments, enabled)
        self._pauses = detect_pauses(segments, FINE_PAUSE_THRESHOLD)
        self._pace = analyze_pace(segments)
        self._keywords = keywords_per_chapter(segments, self._result.chapters) if self._result else []
        self._summaries = None
        logger.info(
            "Analysis for %s: %d fillers, %d pauses, %d pace samples",
            self._video_id, len(self._fillers), len(self._pauses), len(self._pace),
        )

    async def open_video(
        self,
        video_id: str,
        on_status: Optional[StatusCallback] = None,
    ) -> Optional[ChapterResult]:
        """Entry point for a video change.

        Restores a cached result (re-fetching the transcript so analysis
        and AutoSkip work), or generates automatically in "auto" mode when
        the video is within the configured length limit.
        """
        self.reset(video_id)

        if self._result is not None:
            try:
                segments = await self._fetcher.fetch(video_id)
            except AcquisitionFailure as exc:
                logger.warning("Cached result for %s has no transcript for analysis: %s", video_id, exc)
                return self._result
            if self._video_id != video_id:
                return None
            self._segments = list(segments)
            self._duration = resolve_duration(segments, self._player_duration(), self._seg_config)
            self.run_analysis(segments)
            self._maybe_start_auto_skip()
            return self._result

        if self.settings.mode != "auto":
            return None

        limit_min = self.settings.max_auto_duration_min
        duration = self._player_duration()
        if limit_min < UNLIMITED_AUTO_DURATION_MIN and duration and duration > limit_min * 60:
            logger.info("Skipping auto generation for %s: %.0fs exceeds %d min", video_id, duration, limit_min)
            return None
        return await self.generate(video_id, on_status)

    # ------------------------------------------------------------------
    # Detection results
    # ------------------------------------------------------------------

    def get_filler_data(self) -> List[FillerHit]:
        return list(self._fillers)

    def get_pause_data(self) -> List[Pause]:
        return list(self._pauses)

    def get_pace_data(self) -> List[PaceSample]:
        return list(self._pace)

    def get_pace_stats(self) -> Optional[PaceStats]:
        return pace_stats(self._pace)

    def get_keywords_per_chapter(self) -> List[List[str]]:
        return [list(k) for k in self._keywords]

    def get_chapter_summaries(self) -> List[List[str]]:
        if self._summaries is None:
            if self._result is None or not self._segments:
                return []
            self._summaries = summarize_chapters(self._segments, self._result.chapters)
        return [list(s) for s in self._summaries]

    def build_report(self) -> AnalysisReport:
        """Snapshot of the current analysis for formatters.

        Chapters and POIs hidden by show_chapters / show_pois are left
        out of the report; the cached result keeps them.
        """
        if self._result is None or self._video_id is None:
            raise ValueError("No analysis available; call generate() first")
        mode = self.settings.auto_skip_mode
        threshold = AUTOSKIP_PRESETS[mode].pause_threshold if mode in AUTOSKIP_PRESETS else 1.5
        duration = self._duration
        if duration is None:
            duration = self._result.chapters[-1].end if self._result.chapters else 0.0
        shown = ChapterResult(
            chapters=list(self._result.chapters) if self.settings.show_chapters else [],
            pois=list(self._result.pois) if self.settings.show_pois else [],
        )
        return AnalysisReport(
            video_id=self._video_id,
            duration=duration,
            result=shown,
            fillers=self.get_filler_data(),
            pauses=self.get_pause_data(),
            pace=self.get_pace_data(),
            pace_stats=self.get_pace_stats(),
            keywords=self.get_keywords_per_chapter() if shown.chapters else [],
            summaries=self.get_chapter_summaries() if shown.chapters else [],
            pause_threshold=threshold,
        )

    # ------------------------------------------------------------------
    # AutoSkip
    # ------------------------------------------------------------------

    def _maybe_start_auto_skip(self) -> None:
        if self._scheduler is not None and self.settings.auto_skip_mode != "off":
            self.start_auto_skip(self.settings.auto_skip_mode)

    def start_auto_skip(self, preset_name: Optional[str] = None) -> int:
        """Arm (or re-arm) the scheduler for a preset; return the zone count.

        "off" stops AutoSkip. Raises UnknownPresetError for unknown names
        and RuntimeError when the session has no player.
        """
        name = preset_name or self.settings.auto_skip_mode
        if name == "off":
            self.stop_auto_skip()
            return 0
        preset = get_preset(name)
        if self._scheduler is None:
            raise RuntimeError("AutoSkip needs a PlaybackControl; none attached to this session")
        zones = build_skip_zones(self._pauses, self._fillers, preset)
        self._scheduler.arm(zones, preset.silence_speed_multiplier)
        return len(zones)

    def stop_auto_skip(self) -> None:
        if self._scheduler is not None:
            self._scheduler.disarm()

    def is_auto_skip_active(self) -> bool:
        return self._scheduler is not None and self._scheduler.is_active()

    def get_active_zone_count(self) -> int:
        return self._scheduler.zone_count() if self._scheduler is not None else 0
