"""Output formatter registry.

WHY: The CLI and API layers need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["chapter_json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API requests)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from chapterizer.formatters.analysis_text import AnalysisTextFormatter
from chapterizer.formatters.chapter_json import ChapterJSONFormatter
from chapterizer.formatters.youtube_chapters import YouTubeChaptersFormatter

if TYPE_CHECKING:
    from chapterizer.formatters.base import BaseFormatter

FORMATTERS: Dict[str, Type[BaseFormatter]] = {
    "youtube_chapters": YouTubeChaptersFormatter,
    "chapter_json": ChapterJSONFormatter,
    "analysis_text": AnalysisTextFormatter,
}
