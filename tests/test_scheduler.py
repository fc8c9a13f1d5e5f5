"""Tests for the AutoSkip scheduler state machine.

WHY: The scheduler moves a real playhead. A wrong seek or a rate that
is never restored is immediately visible to the viewer.

HOW: FakePlayer records seeks and rate changes; ManualTicker fires one
frame at a time when the test calls run_pending().
"""

import asyncio

import pytest

from chapterizer.core.ir import ZONE_FILLER, ZONE_PAUSE, SkipZone
from chapterizer.playback.scheduler import (
    ARMED,
    IDLE,
    RUNNING,
    AsyncioTickScheduler,
    SkipScheduler,
)


@pytest.fixture
def scheduler(player, ticker):
    return SkipScheduler(player, ticker)


PAUSE_ZONE = SkipZone(start=10.0, end=12.0, kind=ZONE_PAUSE)


class TestStates:

    def test_arm_schedules_one_tick(self, scheduler, ticker):
        assert scheduler.state == IDLE
        scheduler.arm([PAUSE_ZONE])
        assert scheduler.state == ARMED
        assert len(ticker.pending) == 1

    def test_first_tick_runs(self, scheduler, ticker):
        scheduler.arm([PAUSE_ZONE])
        ticker.run_pending()
        assert scheduler.state == RUNNING
        assert len(ticker.pending) == 1

    def test_disarm_cancels_pending_tick(self, scheduler, ticker):
        scheduler.arm([PAUSE_ZONE])
        ticker.run_pending()
        scheduler.disarm()
        assert scheduler.state == IDLE
        assert ticker.pending == []
        assert ticker.cancelled == 1
        assert scheduler.zone_count() == 0
        assert not scheduler.is_active()

    def test_disarm_when_idle(self, scheduler, ticker):
        scheduler.disarm()
        assert scheduler.state == IDLE
        assert ticker.cancelled == 0

    def test_rearm_swaps_zones_without_doubling_ticks(self, scheduler, ticker):
        scheduler.arm([PAUSE_ZONE])
        ticker.run_pending()
        other = SkipZone(start=20.0, end=21.0, kind=ZONE_FILLER)
        scheduler.arm([other, PAUSE_ZONE])
        assert len(ticker.pending) == 1
        assert scheduler.state == RUNNING
        assert scheduler.zones == [other, PAUSE_ZONE]


class TestSpeedThroughSilence:

    def test_speeds_up_once_and_restores(self, scheduler, ticker, player):
        scheduler.arm([PAUSE_ZONE], silence_speed_multiplier=2.0)
        player.time = 10.5
        ticker.run_pending()
        assert player.rate == 2.0
        assert player.seeks == []

        player.time = 10.8
        ticker.run_pending()
        assert player.rate_changes == [2.0]

        player.time = 12.1
        ticker.run_pending()
        assert player.rate_changes == [2.0, 1.0]
        assert player.rate == 1.0

    def test_filler_zone_is_seeked_even_with_multiplier(self, scheduler, ticker, player):
        scheduler.arm([SkipZone(start=3.0, end=4.0, kind=ZONE_FILLER)], silence_speed_multiplier=2.0)
        player.time = 3.2
        ticker.run_pending()
        assert player.seeks == [pytest.approx(4.05)]
        assert player.rate_changes == []

    def test_disarm_restores_rate(self, scheduler, ticker, player):
        player.rate = 1.25
        scheduler.arm([PAUSE_ZONE], silence_speed_multiplier=2.0)
        player.time = 11.0
        ticker.run_pending()
        scheduler.disarm()
        assert player.rate == 1.25

    def test_rearm_restores_rate(self, scheduler, ticker, player):
        scheduler.arm([PAUSE_ZONE], silence_speed_multiplier=2.0)
        player.time = 11.0
        ticker.run_pending()
        scheduler.arm([PAUSE_ZONE])
        assert player.rate == 1.0


class TestHardSeek:

    def test_seeks_past_zone_end(self, scheduler, ticker, player):
        scheduler.arm([PAUSE_ZONE])
        player.time = 10.5
        ticker.run_pending()
        assert player.seeks == [pytest.approx(12.05)]

    def test_paused_player_is_left_alone(self, scheduler, ticker, player):
        scheduler.arm([PAUSE_ZONE])
        player.paused = True
        player.time = 10.5
        ticker.run_pending()
        assert player.seeks == []
        assert scheduler.state == RUNNING

    def test_no_zones(self, scheduler, ticker, player):
        scheduler.arm([])
        player.time = 10.5
        ticker.run_pending()
        assert player.seeks == []

    def test_backward_seek_resets_cursor(self, scheduler, ticker, player):
        later = SkipZone(start=20.0, end=22.0, kind=ZONE_PAUSE)
        scheduler.arm([PAUSE_ZONE, later])
        player.time = 10.5
        ticker.run_pending()

        player.time = 5.0
        ticker.run_pending()
        player.time = 10.2
        ticker.run_pending()

        assert player.seeks == [pytest.approx(12.05), pytest.approx(12.05)]

    def test_small_backward_drift_keeps_cursor(self, scheduler, ticker, player):
        later = SkipZone(start=20.0, end=22.0, kind=ZONE_PAUSE)
        scheduler.arm([PAUSE_ZONE, later])
        player.time = 10.5
        ticker.run_pending()

        player.time = 11.5
        ticker.run_pending()
        assert len(player.seeks) == 1

        player.time = 20.5
        ticker.run_pending()
        assert player.seeks[-1] == pytest.approx(22.05)


class TestAsyncioTicker:

    def test_ticks_on_the_running_loop(self):
        calls = []

        async def run():
            ticker = AsyncioTickScheduler(interval=0.0)
            ticker.schedule_next_tick(lambda: calls.append("tick"))
            cancelled = ticker.schedule_next_tick(lambda: calls.append("cancelled"))
            ticker.cancel_tick(cancelled)
            await asyncio.sleep(0.05)

        asyncio.run(run())
        assert calls == ["tick"]
