"""Skip scheduler: a cancelable per-frame poll that drives the player.

WHY: Skipping has to happen while the video plays, roughly once per
rendered frame, against a playhead the user can move at any time. A
small explicit state machine keeps that loop cancelable and makes it
safe to re-arm with a new zone list mid-playback.

HOW: The host provides two primitives. PlaybackControl reads and moves
the playhead; TickScheduler runs a callback on the next frame (and can
cancel it). arm() stores zones and schedules the first tick. Each tick
calls poll() and schedules the next one. disarm() cancels the pending
tick and restores the playback rate.

States: IDLE → (arm) ARMED → (first tick) RUNNING → (disarm) IDLE.

RULES:
- poll() is a no-op while paused or with no zones
- A zone before the cursor ending more than 1 s past the playhead means
  the user seeked backwards; the cursor resets to 0
- Pause zones with a silence multiplier are sped through: the prior rate
  is saved and the multiplier set once; anything else is hard-seeked to
  zone.end + 0.05
- Outside every zone a saved rate is restored
- disarm() is synchronous: no tick runs after it returns
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from chapterizer.core.ir import ZONE_PAUSE, SkipZone

logger = logging.getLogger(__name__)

IDLE = "idle"
ARMED = "armed"
RUNNING = "running"

SEEK_PAST_S = 0.05
BACKWARD_SEEK_TOLERANCE_S = 1.0
DEFAULT_TICK_INTERVAL_S = 1.0 / 60.0


class PlaybackControl(ABC):
    """The player surface the scheduler drives."""

    @abstractmethod
    def current_time(self) -> float:
        ...

    @abstractmethod
    def is_paused(self) -> bool:
        ...

    @abstractmethod
    def seek(self, t: float) -> None:
        ...

    @abstractmethod
    def get_playback_rate(self) -> float:
        ...

    @abstractmethod
    def set_playback_rate(self, rate: float) -> None:
        ...

    @abstractmethod
    def duration(self) -> Optional[float]:
        """Video duration in seconds, or None when not yet known."""


class TickScheduler(ABC):
    """Runs a callback on the next frame."""

    @abstractmethod
    def schedule_next_tick(self, callback: Callable[[], None]) -> Any:
        """Schedule callback and return a handle for cancel_tick()."""

    @abstractmethod
    def cancel_tick(self, handle: Any) -> None:
        ...


class AsyncioTickScheduler(TickScheduler):
    """Ticks at ~60 Hz on an asyncio event loop via loop.call_later.

    Must be used from code running inside the loop unless an explicit
    loop is passed.
    """

    def __init__(
        self,
        interval: float = DEFAULT_TICK_INTERVAL_S,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._interval = interval
        self._loop = loop

    def schedule_next_tick(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self._interval, callback)

    def cancel_tick(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class SkipScheduler:
    """Arm/run/disarm state machine over a merged skip-zone list."""

    def __init__(self, player: PlaybackControl, ticker: TickScheduler) -> None:
        self._player = player
        self._ticker = ticker
        self._state = IDLE
        self._zones: List[SkipZone] = []
        self._cursor = 0
        self._multiplier: Optional[float] = None
        self._saved_rate: Optional[float] = None
        self._handle: Any = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def zones(self) -> List[SkipZone]:
        return list(self._zones)

    def is_active(self) -> bool:
        return self._state != IDLE

    def zone_count(self) -> int:
        return len(self._zones)

    def arm(self, zones: Sequence[SkipZone], silence_speed_multiplier: Optional[float] = None) -> None:
        """Install zones and start ticking.

        Re-arming while active swaps the zone list in place: a sped-up
        rate is restored, the cursor restarts, and the pending tick is
        reused rather than doubled.
        """
        self._restore_rate()
        self._zones = list(zones)
        self._cursor = 0
        self._multiplier = silence_speed_multiplier
        if self._state == IDLE:
            self._state = ARMED
            self._handle = self._ticker.schedule_next_tick(self._tick)
        logger.info(
            "AutoSkip armed: %d zones (silence multiplier %s)", len(self._zones), silence_speed_multiplier,
        )

    def disarm(self) -> None:
        if self._handle is not None:
            self._ticker.cancel_tick(self._handle)
            self._handle = None
        self._restore_rate()
        was_active = self._state != IDLE
        self._state = IDLE
        self._zones = []
        self._cursor = 0
        self._multiplier = None
        if was_active:
            logger.info("AutoSkip disarmed")

    def _restore_rate(self) -> None:
        if self._saved_rate is not None:
            self._player.set_playback_rate(self._saved_rate)
            self._saved_rate = None

    def _tick(self) -> None:
        self._handle = None
        if self._state == IDLE:
            return
        self._state = RUNNING
        self.poll()
        if self._state != IDLE:
            self._handle = self._ticker.schedule_next_tick(self._tick)

    def poll(self) -> None:
        """Apply one frame of skip logic at the current playhead."""
        zones = self._zones
        if not zones or self._player.is_paused():
            return

        ct = self._player.current_time()

        if self._cursor > 0 and zones[self._cursor - 1].end > ct + BACKWARD_SEEK_TOLERANCE_S:
            self._cursor = 0

        while self._cursor < len(zones) and zones[self._cursor].end <= ct:
            self._cursor += 1

        if self._cursor < len(zones):
            zone = zones[self._cursor]
            if zone.start <= ct < zone.end:
                if zone.kind == ZONE_PAUSE and self._multiplier:
                    if self._saved_rate is None:
                        self._saved_rate = self._player.get_playback_rate()
                        self._player.set_playback_rate(self._multiplier)
                else:
                    self._player.seek(zone.end + SEEK_PAST_S)
                    self._cursor += 1
                return

        self._restore_rate()
