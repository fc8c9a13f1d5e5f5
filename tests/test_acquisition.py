"""Tests for transcript sources and payload normalization.

RULES:
- HTTP sources are exercised through httpx.MockTransport; no network
"""

import asyncio
import json
import logging

import httpx
import pytest

from chapterizer.acquisition.sources import (
    AcquisitionFailure,
    EmptySegments,
    FirstSuccessFetcher,
    HttpTranscriptSource,
    JsonFileSource,
    StaticSource,
    segments_from_payload,
)
from chapterizer.core.fillers import detect_fillers
from chapterizer.core.ir import TranscriptSegment

SAMPLE = [
    {"start": 5.0, "dur": 2.0, "text": "second line"},
    {"start": 0.0, "duration": 3.0, "text": "first line"},
    {"start": 9.0, "duration": 1.0, "text": "   "},
]


class TestSegmentsFromPayload:

    def test_list_is_cleaned_and_sorted(self):
        segments = segments_from_payload(SAMPLE)
        assert [(s.start, s.duration, s.text) for s in segments] == [
            (0.0, 3.0, "first line"),
            (5.0, 2.0, "second line"),
        ]

    def test_wrapped_segments(self):
        assert len(segments_from_payload({"segments": SAMPLE})) == 2

    def test_millisecond_segments_with_words(self):
        payload = [{
            "startMs": 1500,
            "endMs": 3000,
            "text": "um hello",
            "words": [{"text": "um", "startMs": 1500, "endMs": 1800}],
        }]
        seg = segments_from_payload(payload)[0]
        assert (seg.start, seg.duration) == (1.5, 1.5)
        assert seg.words[0].end == 1.8

    def test_timed_events(self):
        payload = {"events": [
            {"tStartMs": 0, "dDurationMs": 2000, "segs": [{"utf8": "hello "}, {"utf8": "world"}]},
            {"tStartMs": 2000, "segs": [{"utf8": "\n"}]},
        ]}
        segments = segments_from_payload(payload)
        assert [(s.start, s.duration, s.text) for s in segments] == [(0.0, 2.0, "hello world")]

    def test_event_text_is_trimmed(self):
        payload = {"events": [{"tStartMs": 0, "dDurationMs": 1000, "segs": [{"utf8": " \nhello world \n"}]}]}
        assert segments_from_payload(payload)[0].text == "hello world"

    def test_event_word_offsets_become_word_timings(self):
        payload = {"events": [{
            "tStartMs": 10000,
            "dDurationMs": 3000,
            "segs": [{"utf8": "so"}, {"utf8": " um", "tOffsetMs": 800}, {"utf8": " growth", "tOffsetMs": 1500}],
        }]}
        seg = segments_from_payload(payload)[0]

        assert seg.text == "so um growth"
        assert [(w.text, w.start, w.end) for w in seg.words] == [
            ("so", 10.0, pytest.approx(10.8)),
            ("um", pytest.approx(10.8), pytest.approx(11.5)),
            ("growth", pytest.approx(11.5), 13.0),
        ]

        hits = detect_fillers([seg], ["um"])
        assert len(hits) == 1
        assert hits[0].precise is True
        assert hits[0].time == pytest.approx(10.8)
        assert hits[0].end == pytest.approx(11.5)

    def test_single_piece_event_has_no_words(self):
        payload = {"events": [{"tStartMs": 0, "dDurationMs": 1000, "segs": [{"utf8": "hello", "tOffsetMs": 0}]}]}
        assert segments_from_payload(payload)[0].words == ()

    def test_blank_transcript(self):
        with pytest.raises(EmptySegments):
            segments_from_payload([{"start": 0, "duration": 1, "text": ""}])

    @pytest.mark.parametrize("payload", [42, "text", [{"text": "no start"}], {"segments": None}])
    def test_malformed(self, payload):
        with pytest.raises(AcquisitionFailure) as exc_info:
            segments_from_payload(payload)
        assert not isinstance(exc_info.value, EmptySegments)


class TestFirstSuccessFetcher:

    def test_falls_through_to_next_source(self, caplog, single_segment):
        fetcher = FirstSuccessFetcher([StaticSource(), StaticSource({"vid": single_segment})])
        with caplog.at_level(logging.WARNING):
            segments = asyncio.run(fetcher.fetch("vid"))
        assert segments == single_segment
        assert "static failed for vid" in caplog.text

    def test_all_empty(self):
        blank = [TranscriptSegment(start=0.0, duration=1.0, text=" ")]
        fetcher = FirstSuccessFetcher([StaticSource({"vid": blank}), StaticSource({"vid": []})])
        with pytest.raises(EmptySegments):
            asyncio.run(fetcher.fetch("vid"))

    def test_mixed_failures(self):
        blank = [TranscriptSegment(start=0.0, duration=1.0, text=" ")]
        fetcher = FirstSuccessFetcher([StaticSource({"vid": blank}), StaticSource()])
        with pytest.raises(AcquisitionFailure) as exc_info:
            asyncio.run(fetcher.fetch("vid"))
        assert not isinstance(exc_info.value, EmptySegments)

    def test_no_sources(self):
        with pytest.raises(AcquisitionFailure):
            asyncio.run(FirstSuccessFetcher([]).fetch("vid"))


class TestJsonFileSource:

    def test_reads_video_file(self, tmp_path):
        (tmp_path / "vid.json").write_text(json.dumps({"segments": SAMPLE}), encoding="utf-8")
        segments = asyncio.run(JsonFileSource(tmp_path).fetch("vid"))
        assert [s.text for s in segments] == ["first line", "second line"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(AcquisitionFailure, match="not found"):
            asyncio.run(JsonFileSource(tmp_path).fetch("vid"))

    def test_invalid_json(self, tmp_path):
        (tmp_path / "vid.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(AcquisitionFailure):
            asyncio.run(JsonFileSource(tmp_path).fetch("vid"))


class TestHttpTranscriptSource:

    def _fetch(self, handler, video_id="abc"):
        async def run():
            transport = httpx.MockTransport(handler)
            async with httpx.AsyncClient(transport=transport) as client:
                source = HttpTranscriptSource("https://captions.test/{video_id}.json", client=client)
                return await source.fetch(video_id)

        return asyncio.run(run())

    def test_fetches_templated_url(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"segments": SAMPLE})

        segments = self._fetch(handler)
        assert seen == ["https://captions.test/abc.json"]
        assert len(segments) == 2

    def test_http_error(self):
        with pytest.raises(AcquisitionFailure, match="HTTP fetch failed"):
            self._fetch(lambda request: httpx.Response(404))

    def test_invalid_json(self):
        with pytest.raises(AcquisitionFailure, match="Invalid JSON"):
            self._fetch(lambda request: httpx.Response(200, content=b"not json"))
