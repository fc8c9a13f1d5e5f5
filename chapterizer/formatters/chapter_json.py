"""Chapter JSON formatter: the cached-result format as a file.

WHY: Other tools (players, editors, the cache of another instance) read
chapters and POIs as {"chapters": [...], "pois": [...]}. Writing exactly
the cached format keeps one schema for both.

HOW: Serializes report.result, validates it against
CHAPTER_RESULT_SCHEMA with jsonschema, and pretty-prints it.

RULES:
- Output always validates against CHAPTER_RESULT_SCHEMA; a result that
  does not raises jsonschema.ValidationError instead of writing bad data
- Keys are exactly "chapters" and "pois"
"""

from __future__ import annotations

import json
from typing import List

import jsonschema

from chapterizer.core.ir import AnalysisReport
from chapterizer.formatters.base import BaseFormatter, FormatterOutput
from chapterizer.storage.cache import CHAPTER_RESULT_SCHEMA


class ChapterJSONFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "Chapter JSON"

    def format(self, report: AnalysisReport) -> List[FormatterOutput]:
        data = report.result.to_dict()
        jsonschema.validate(instance=data, schema=CHAPTER_RESULT_SCHEMA)
        return [
            FormatterOutput(
                suffix="-chapters.json",
                content=json.dumps(data, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
