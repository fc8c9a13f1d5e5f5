"""In-memory store of finished analyses with TTL cleanup.

WHY: The HTTP API analyzes a transcript in one request, but clients come
back for the result (and its rendered files) later. Keeping the finished
report per video id lets GET/DELETE work without re-running the
detectors. An in-memory store is sufficient for a single-instance
service; the chapter result itself also goes to the ResultCache.

HOW: StoredAnalysis bundles a report with its rendered formatter outputs.
AnalysisStore is a lock-protected dict keyed by video id with
put/get/list/delete and TTL-based expiry.

RULES:
- All store mutations are protected by threading.Lock
- put() replaces an existing analysis for the same video id wholesale
- put() raises ValueError when the store is full and the id is new
- Default TTL is 1 hour (3600 seconds), measured from created_at
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from chapterizer.core.ir import AnalysisReport
from chapterizer.formatters.base import FormatterOutput

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


@dataclass
class StoredAnalysis:
    """A finished analysis and the files rendered from it."""

    video_id: str
    report: AnalysisReport
    created_at: float
    files: List[FormatterOutput] = field(default_factory=list)


class AnalysisStore:
    """Thread-safe in-memory store for finished analyses."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_analyses: int = 100,
    ) -> None:
        self._analyses: Dict[str, StoredAnalysis] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_analyses = max_analyses

    def put(self, report: AnalysisReport, files: List[FormatterOutput]) -> StoredAnalysis:
        with self._lock:
            if report.video_id not in self._analyses and len(self._analyses) >= self.max_analyses:
                raise ValueError(
                    "Maximum number of stored analyses ({}) reached".format(self.max_analyses)
                )
            stored = StoredAnalysis(
                video_id=report.video_id,
                report=report,
                created_at=time.time(),
                files=list(files),
            )
            self._analyses[report.video_id] = stored

        logger.info("Stored analysis for %s (%d files)", report.video_id, len(files))
        return stored

    def get(self, video_id: str) -> Optional[StoredAnalysis]:
        with self._lock:
            return self._analyses.get(video_id)

    def list_analyses(self) -> List[StoredAnalysis]:
        """Snapshot of all analyses, oldest first."""
        with self._lock:
            return sorted(self._analyses.values(), key=lambda a: a.created_at)

    def delete(self, video_id: str) -> bool:
        with self._lock:
            removed = self._analyses.pop(video_id, None)
        if removed is not None:
            logger.info("Deleted analysis for %s", video_id)
        return removed is not None

    def clear(self) -> None:
        with self._lock:
            self._analyses.clear()

    def cleanup_expired(self) -> int:
        """Remove analyses older than the TTL; return how many were removed."""
        now = time.time()
        with self._lock:
            expired = [
                vid for vid, a in self._analyses.items() if now - a.created_at > self._ttl_seconds
            ]
            for vid in expired:
                del self._analyses[vid]
        for vid in expired:
            logger.info("Expired analysis for %s", vid)
        return len(expired)
