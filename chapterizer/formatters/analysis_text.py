"""Plain text analysis report: pace, silence, fillers, chapters.

WHY: Creators reviewing a recording want the numbers at a glance: how
fast they spoke, how much dead air there was, which fillers crept in,
and what each chapter covers. No JSON, just readable sections.

HOW: Builds one section per concern from the AnalysisReport. Pace uses
pace_stats() and classify_pace(); silence uses silence_summary() at the
report's pause threshold; fillers are counted per word in first-seen
order; chapters list keywords and summary sentences when available.

RULES:
- Sections appear in order: header, Pace, Silence, Fillers, Chapters,
  Highlights (the last only when there are POIs)
- Missing data prints "n/a" rather than omitting the section
- No trailing whitespace on any line
- Output suffix: "-analysis.txt"
"""

from __future__ import annotations

from collections import Counter
from typing import List

from chapterizer.core.ir import AnalysisReport
from chapterizer.core.pace import classify_pace
from chapterizer.core.pauses import silence_summary
from chapterizer.formatters.base import BaseFormatter, FormatterOutput, format_timestamp


def _pace_lines(report: AnalysisReport) -> List[str]:
    stats = report.pace_stats
    if stats is None:
        return ["Pace: n/a"]
    return [
        "Pace: {} avg WPM ({}), range {}-{} WPM".format(
            stats.avg, classify_pace(stats.avg).capitalize(), stats.min, stats.max,
        ),
        "  {} fast and {} slow segments of {}".format(stats.fast, stats.slow, stats.total),
    ]


def _silence_lines(report: AnalysisReport) -> List[str]:
    summary = silence_summary(report.pauses, report.pause_threshold, report.duration)
    return [
        "Silence: {} pauses >= {}s, {}s total ({}% of video)".format(
            summary["count"], report.pause_threshold, summary["total_s"], summary["percent"],
        )
    ]


def _filler_lines(report: AnalysisReport) -> List[str]:
    if not report.fillers:
        return ["Fillers: none detected"]
    counts = Counter(f.word for f in report.fillers)
    precise = sum(1 for f in report.fillers if f.precise)
    lines = ["Fillers: {} detected ({} word-timed)".format(len(report.fillers), precise)]
    for word, count in counts.most_common():
        lines.append("  {}: {}".format(word, count))
    return lines


def _chapter_lines(report: AnalysisReport) -> List[str]:
    lines = ["Chapters:"]
    for i, chapter in enumerate(report.result.chapters):
        lines.append("  {} {}".format(format_timestamp(chapter.start), chapter.title))
        if i < len(report.keywords) and report.keywords[i]:
            lines.append("    Keywords: {}".format(", ".join(report.keywords[i])))
        if i < len(report.summaries) and report.summaries[i]:
            lines.append("    Summary: {}".format(" ".join(report.summaries[i])))
    return lines


class AnalysisTextFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "Analysis Report"

    def format(self, report: AnalysisReport) -> List[FormatterOutput]:
        sections = [
            ["Analysis for {} ({})".format(report.video_id, format_timestamp(report.duration))],
            _pace_lines(report),
            _silence_lines(report),
            _filler_lines(report),
            _chapter_lines(report),
        ]
        if report.result.pois:
            sections.append(["Highlights:"] + [
                "  {} {}".format(format_timestamp(p.time), p.label) for p in report.result.pois
            ])

        text = "\n\n".join("\n".join(line.rstrip() for line in section) for section in sections)
        return [
            FormatterOutput(
                suffix="-analysis.txt",
                content=text + "\n",
                media_type="text/plain",
            )
        ]
