"""Tests for pause detection and the silence summary."""

from chapterizer.core.ir import Pause, TranscriptSegment
from chapterizer.core.pauses import FINE_PAUSE_THRESHOLD, detect_pauses, filter_pauses, silence_summary


class TestDetectPauses:

    def test_long_gap(self, pause_filler_segments):
        assert detect_pauses(pause_filler_segments, 1.5) == [Pause(start=8.0, end=40.0, duration=32.0)]

    def test_fine_threshold_keeps_short_gaps(self, pause_filler_segments):
        pauses = detect_pauses(pause_filler_segments, FINE_PAUSE_THRESHOLD)
        assert [(p.start, p.end) for p in pauses] == [(4.0, 5.0), (8.0, 40.0)]

    def test_overlapping_segments_never_pause(self):
        segments = [
            TranscriptSegment(start=0.0, duration=5.0, text="a"),
            TranscriptSegment(start=3.0, duration=5.0, text="b"),
            TranscriptSegment(start=8.0, duration=1.0, text="c"),
        ]
        assert detect_pauses(segments, 0.0) == []

    def test_duration_rounded_to_one_decimal(self):
        segments = [
            TranscriptSegment(start=0.0, duration=1.0, text="a"),
            TranscriptSegment(start=2.26, duration=1.0, text="b"),
        ]
        assert detect_pauses(segments, 0.5)[0].duration == 1.3

    def test_single_segment(self, single_segment):
        assert detect_pauses(single_segment, 0.5) == []


class TestFilterPauses:

    def test_filter_matches_fresh_detection(self, pause_filler_segments):
        fine = detect_pauses(pause_filler_segments, FINE_PAUSE_THRESHOLD)
        for threshold in (0.5, 1.0, 1.5, 3.0, 40.0):
            assert filter_pauses(fine, threshold) == detect_pauses(pause_filler_segments, threshold)


class TestSilenceSummary:

    def test_summary(self, pause_filler_segments):
        fine = detect_pauses(pause_filler_segments, FINE_PAUSE_THRESHOLD)
        assert silence_summary(fine, 1.5, 44.0) == {"count": 1, "total_s": 32.0, "percent": 73}

    def test_unknown_duration(self, pause_filler_segments):
        fine = detect_pauses(pause_filler_segments, FINE_PAUSE_THRESHOLD)
        assert silence_summary(fine, 0.5, 0.0)["percent"] == 0
