"""Shared test fixtures for the chapterizer test suite.

WHY: Several test modules need the same small transcripts (the
three-segment pause/filler sample, a twenty-minute talk with one topic
shift, a single-segment clip) and the same fake player. Centralizing
them keeps the expected values in one place.

HOW: Pytest fixtures build TranscriptSegment lists directly. FakePlayer
and ManualTicker implement the playback primitives in memory so the
scheduler and session can be driven tick by tick.

RULES:
- Segment data is deterministic; no randomness anywhere
- FakePlayer records every seek and rate change for assertions
- ManualTicker never runs callbacks on its own; tests call run_pending()
"""

from typing import Any, Callable, List, Optional

import pytest

from chapterizer.core.ir import TranscriptSegment
from chapterizer.playback.scheduler import PlaybackControl, TickScheduler

SOLAR_TEXT = "solar panels convert sunlight into electricity for homes"
BAKING_TEXT = "baking sourdough bread requires flour water starter"


class FakePlayer(PlaybackControl):
    """In-memory player that records seeks and rate changes."""

    def __init__(self, duration: Optional[float] = None) -> None:
        self.time = 0.0
        self.paused = False
        self.rate = 1.0
        self._duration = duration
        self.seeks: List[float] = []
        self.rate_changes: List[float] = []

    def current_time(self) -> float:
        return self.time

    def is_paused(self) -> bool:
        return self.paused

    def seek(self, t: float) -> None:
        self.seeks.append(t)
        self.time = t

    def get_playback_rate(self) -> float:
        return self.rate

    def set_playback_rate(self, rate: float) -> None:
        self.rate_changes.append(rate)
        self.rate = rate

    def duration(self) -> Optional[float]:
        return self._duration


class ManualTicker(TickScheduler):
    """Tick scheduler that only fires when the test says so."""

    def __init__(self) -> None:
        self.pending: List[Callable[[], None]] = []
        self.cancelled = 0

    def schedule_next_tick(self, callback: Callable[[], None]) -> Any:
        self.pending.append(callback)
        return callback

    def cancel_tick(self, handle: Any) -> None:
        if handle in self.pending:
            self.pending.remove(handle)
            self.cancelled += 1

    def run_pending(self) -> None:
        callbacks, self.pending = self.pending, []
        for callback in callbacks:
            callback()


@pytest.fixture
def pause_filler_segments() -> List[TranscriptSegment]:
    """Three segments with one long pause between the second and third."""
    return [
        TranscriptSegment(start=0.0, duration=4.0, text="um so let's start"),
        TranscriptSegment(start=5.0, duration=3.0, text="the main topic is growth"),
        TranscriptSegment(start=40.0, duration=4.0, text="in conclusion we are done"),
    ]


@pytest.fixture
def topic_shift_segments() -> List[TranscriptSegment]:
    """Twenty minutes, a segment every 5 s, topic changes at 600 s."""
    segments = []
    for i in range(240):
        text = SOLAR_TEXT if i < 120 else BAKING_TEXT
        segments.append(TranscriptSegment(start=i * 5.0, duration=4.5, text=text))
    return segments


@pytest.fixture
def distinct_group_segments() -> List[TranscriptSegment]:
    """Twenty 60 s groups, each with vocabulary no other group shares."""
    segments = []
    for g in range(20):
        tag = "grp" + chr(ord("a") + g)
        text = "{0}alpha {0}beta {0}gamma".format(tag)
        segments.append(TranscriptSegment(start=g * 60.0, duration=10.0, text=text))
        segments.append(TranscriptSegment(start=g * 60.0 + 30.0, duration=10.0, text=text))
    return segments


@pytest.fixture
def single_segment() -> List[TranscriptSegment]:
    return [TranscriptSegment(start=0.0, duration=5.0, text="hello and welcome")]


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def make_player() -> Callable[..., FakePlayer]:
    """Factory for players with a known duration."""
    return FakePlayer


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()
