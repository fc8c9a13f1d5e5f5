"""Tests for AnalysisSession: generation, video changes, and AutoSkip wiring.

WHY: The session is where asynchronous fetches meet per-video state. A
late result landing on the wrong video, or two overlapping generations,
would show stale chapters to the viewer.

HOW: Transcript sources are StaticSource instances, or BlockingSource
when a test needs the fetch to stay in flight. Coroutines are driven
with asyncio.run, matching how the CLI calls the session.

RULES:
- No network access; every transcript is in memory
- The player and ticker are the conftest fakes
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from chapterizer.acquisition.sources import AcquisitionFailure, FirstSuccessFetcher, StaticSource, TranscriptSource
from chapterizer.config import Settings
from chapterizer.core.ir import ChapterResult
from chapterizer.playback.presets import UnknownPresetError
from chapterizer.playback.scheduler import IDLE
from chapterizer.session import STATE_ERROR, STATE_LOADING, STATE_READY, AnalysisSession
from chapterizer.storage.cache import InMemoryStore, ResultCache


class BlockingSource(TranscriptSource):
    """Holds every fetch until the gate event is set."""

    name = "blocking"

    def __init__(self, segments):
        self._segments = segments
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.calls = 0

    async def fetch(self, video_id):
        self.calls += 1
        self.started.set()
        await self.gate.wait()
        return list(self._segments)


def _session(segments_by_video, **kwargs):
    fetcher = FirstSuccessFetcher([StaticSource(segments_by_video)])
    return AnalysisSession(fetcher=fetcher, **kwargs)


class TestGenerate:

    def test_status_sequence_and_result(self, topic_shift_segments):
        session = _session({"talk": topic_shift_segments})
        statuses = []

        result = asyncio.run(
            session.generate("talk", on_status=lambda *s: statuses.append(s), duration=1200.0)
        )

        assert [c.start for c in result.chapters] == [0.0, 600.0]
        assert statuses == [
            ("Fetching transcript...", STATE_LOADING, 5),
            ("Analyzing transcript...", STATE_LOADING, 60),
            ("Generated 2 chapters, 0 POIs", STATE_READY, 100),
        ]
        assert session.chapter_result is result
        assert session.video_id == "talk"
        assert not session.is_generating

    def test_needs_a_video_id(self, pause_filler_segments):
        session = _session({"a": pause_filler_segments})
        with pytest.raises(ValueError):
            asyncio.run(session.generate())

    def test_acquisition_failure_reports_error(self):
        session = _session({})
        statuses = []

        result = asyncio.run(session.generate("missing", on_status=lambda *s: statuses.append(s)))

        assert result is None
        assert statuses[-1][1:] == (STATE_ERROR, 0)
        assert "missing" in statuses[-1][0]
        assert not session.is_generating
        assert session.chapter_result is None

    def test_second_call_while_generating_is_rejected(self, pause_filler_segments):
        async def run():
            source = BlockingSource(pause_filler_segments)
            session = AnalysisSession(fetcher=source)
            first = asyncio.ensure_future(session.generate("vid"))
            await source.started.wait()

            second = await session.generate("vid")
            assert session.is_generating
            source.gate.set()
            return second, await first, source.calls

        second, first, calls = asyncio.run(run())
        assert second is None
        assert isinstance(first, ChapterResult)
        assert calls == 1

    def test_result_discarded_after_video_change(self, pause_filler_segments):
        async def run():
            source = BlockingSource(pause_filler_segments)
            session = AnalysisSession(fetcher=source)
            pending = asyncio.ensure_future(session.generate("old"))
            await source.started.wait()
            session.reset("new")
            source.gate.set()
            return session, await pending

        session, result = asyncio.run(run())
        assert result is None
        assert session.video_id == "new"
        assert session.chapter_result is None
        assert session.get_pause_data() == []

    def test_result_is_cached(self, pause_filler_segments):
        cache = ResultCache(InMemoryStore())
        session = _session({"vid": pause_filler_segments}, cache=cache)

        result = asyncio.run(session.generate("vid"))

        assert cache.get("vid").to_dict() == result.to_dict()

    def test_duration_from_player(self, pause_filler_segments, make_player):
        session = _session(
            {"vid": pause_filler_segments},
            player=make_player(duration=60.0),
            settings=Settings(auto_skip_mode="off"),
        )
        result = asyncio.run(session.generate("vid"))
        assert result.chapters[-1].end == 60.0


class TestAnalysis:

    def test_detectors_run_after_generation(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments})
        asyncio.run(session.generate("vid"))

        assert [f.word for f in session.get_filler_data()] == ["um"]
        assert [(p.start, p.end) for p in session.get_pause_data()] == [(4.0, 5.0), (8.0, 40.0)]
        assert len(session.get_pace_data()) == 3
        assert session.get_pace_stats() is not None
        assert len(session.get_keywords_per_chapter()) == 1
        assert len(session.get_chapter_summaries()) == 1

    def test_filler_detection_can_be_disabled(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments}, settings=Settings(filler_detect=False))
        asyncio.run(session.generate("vid"))
        assert session.get_filler_data() == []

    def test_reset_clears_everything(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments})
        asyncio.run(session.generate("vid"))
        session.reset("other")

        assert session.chapter_result is None
        assert session.get_filler_data() == []
        assert session.get_pause_data() == []
        assert session.get_pace_data() == []
        assert session.get_chapter_summaries() == []
        assert session.segments == []

    def test_build_report(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments})
        with pytest.raises(ValueError):
            session.build_report()

        asyncio.run(session.generate("vid"))
        report = session.build_report()

        assert report.video_id == "vid"
        assert report.duration == 70.0
        assert len(report.fillers) == 1
        assert report.pause_threshold == 1.5
        assert report.result.chapters[0].title == "Full Video"

    def test_hidden_chapters_are_left_out_of_report(self, pause_filler_segments):
        cache = ResultCache(InMemoryStore())
        session = _session(
            {"vid": pause_filler_segments},
            cache=cache,
            settings=Settings(show_chapters=False, show_pois=False),
        )
        asyncio.run(session.generate("vid"))
        report = session.build_report()

        assert report.result.chapters == []
        assert report.keywords == []
        assert len(session.chapter_result.chapters) == 1
        assert len(cache.get("vid").chapters) == 1

    def test_report_threshold_follows_preset(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments}, settings=Settings(auto_skip_mode="gentle"))
        asyncio.run(session.generate("vid"))
        assert session.build_report().pause_threshold == 3.0


class TestOpenVideo:

    def test_restores_cached_result_and_reanalyzes(self, pause_filler_segments, ticker, make_player):
        cache = ResultCache(InMemoryStore())
        cached = ChapterResult.from_dict({
            "chapters": [{"start": 0.0, "end": 44.0, "title": "Cached Chapter"}],
            "pois": [],
        })
        cache.store("vid", cached)
        session = _session({"vid": pause_filler_segments}, cache=cache, player=make_player(), ticker=ticker)

        result = asyncio.run(session.open_video("vid"))

        assert result.chapters[0].title == "Cached Chapter"
        assert len(session.get_pause_data()) == 2
        assert session.is_auto_skip_active()
        assert session.get_active_zone_count() == 2

    def test_cached_result_survives_fetch_failure(self):
        cache = ResultCache(InMemoryStore())
        cache.store("vid", ChapterResult.from_dict({
            "chapters": [{"start": 0.0, "end": 10.0, "title": "Cached"}], "pois": [],
        }))
        session = _session({}, cache=cache)

        result = asyncio.run(session.open_video("vid"))

        assert result.chapters[0].title == "Cached"
        assert session.get_pause_data() == []

    def test_auto_mode_generates(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments})
        result = asyncio.run(session.open_video("vid"))
        assert result is not None
        assert session.chapter_result is result

    def test_manual_mode_waits(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments}, settings=Settings(mode="manual"))
        assert asyncio.run(session.open_video("vid")) is None
        assert session.video_id == "vid"

    def test_manual_mode_never_fetches(self):
        fetcher = AsyncMock(spec=TranscriptSource)
        session = AnalysisSession(fetcher=fetcher, settings=Settings(mode="manual"))
        asyncio.run(session.open_video("vid"))
        fetcher.fetch.assert_not_awaited()

    def test_fetch_error_from_mocked_source(self):
        fetcher = AsyncMock(spec=TranscriptSource)
        fetcher.fetch.side_effect = AcquisitionFailure("No captions for vid")
        session = AnalysisSession(fetcher=fetcher)
        statuses = []

        result = asyncio.run(session.generate("vid", on_status=lambda *s: statuses.append(s)))

        assert result is None
        fetcher.fetch.assert_awaited_once_with("vid")
        assert statuses[-1] == ("No captions for vid", STATE_ERROR, 0)

    def test_long_videos_skip_auto_generation(self, pause_filler_segments, make_player):
        session = _session(
            {"vid": pause_filler_segments},
            player=make_player(duration=1200.0),
            settings=Settings(max_auto_duration_min=10),
        )
        assert asyncio.run(session.open_video("vid")) is None


class TestAutoSkip:

    def test_armed_after_generation(self, pause_filler_segments, ticker, make_player):
        player = make_player()
        session = _session({"vid": pause_filler_segments}, player=player, ticker=ticker)
        asyncio.run(session.generate("vid"))

        assert session.is_auto_skip_active()
        assert session.get_active_zone_count() == 2

        player.time = 10.0
        ticker.run_pending()
        assert player.seeks == [pytest.approx(40.05)]

    def test_off_mode_leaves_scheduler_idle(self, pause_filler_segments, ticker, make_player):
        session = _session(
            {"vid": pause_filler_segments},
            player=make_player(),
            ticker=ticker,
            settings=Settings(auto_skip_mode="off"),
        )
        asyncio.run(session.generate("vid"))
        assert not session.is_auto_skip_active()
        assert ticker.pending == []

    def test_switch_presets(self, pause_filler_segments, ticker, make_player):
        session = _session({"vid": pause_filler_segments}, player=make_player(), ticker=ticker)
        asyncio.run(session.generate("vid"))

        assert session.start_auto_skip("gentle") == 1
        assert session.start_auto_skip("aggressive") == 3
        assert len(ticker.pending) == 1
        assert session.start_auto_skip("off") == 0
        assert not session.is_auto_skip_active()

    def test_unknown_preset(self, pause_filler_segments, ticker, make_player):
        session = _session({"vid": pause_filler_segments}, player=make_player(), ticker=ticker)
        with pytest.raises(UnknownPresetError):
            session.start_auto_skip("turbo")

    def test_needs_a_player(self, pause_filler_segments):
        session = _session({"vid": pause_filler_segments})
        with pytest.raises(RuntimeError):
            session.start_auto_skip("normal")
        assert not session.is_auto_skip_active()
        assert session.get_active_zone_count() == 0

    def test_reset_disarms(self, pause_filler_segments, ticker, make_player):
        session = _session({"vid": pause_filler_segments}, player=make_player(), ticker=ticker)
        asyncio.run(session.generate("vid"))
        session.reset("other")
        assert not session.is_auto_skip_active()
        assert session._scheduler.state == IDLE
        assert ticker.pending == []
