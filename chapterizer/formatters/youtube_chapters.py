"""YouTube chapter list formatter.

WHY: The quickest way to publish generated chapters is pasting them into
a video description, where YouTube turns "0:00 Title" lines into native
chapters.

RULES:
- One line per chapter: "{timestamp} {title}"
- Timestamps are M:SS, or H:MM:SS from one hour on
- The first line is always 0:00 (chapters start at 0)
"""

from __future__ import annotations

from typing import List

from chapterizer.core.ir import AnalysisReport
from chapterizer.formatters.base import BaseFormatter, FormatterOutput, format_timestamp


class YouTubeChaptersFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "YouTube Chapters"

    def format(self, report: AnalysisReport) -> List[FormatterOutput]:
        lines = [
            "{} {}".format(format_timestamp(ch.start), ch.title)
            for ch in report.result.chapters
        ]
        return [
            FormatterOutput(
                suffix="-chapters.txt",
                content="\n".join(lines) + "\n" if lines else "",
                media_type="text/plain",
            )
        ]
