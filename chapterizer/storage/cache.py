"""Chapter result cache over a pluggable key-value store.

WHY: Segmentation is deterministic but not free, and a viewer reopening
a video expects the same chapters instantly. Results are cached per
video id and replaced wholesale on regeneration. Stores are small and
fill up, so a failed write evicts the oldest entries and tries again.

HOW: KeyValueStore is the storage seam (in-memory for tests and the API,
one JSON file per video on disk for the CLI). ResultCache adds the
ChapterResult format, schema validation on read, and the evict-and-retry
write policy.

RULES:
- Cached value format is {"chapters": [...], "pois": [...]}
- A write that raises StorageFailure evicts the 5 oldest entries and is
  retried once; a second failure is logged and dropped
- Entries that fail schema validation read as a miss
- Store mutations are protected by a threading.Lock
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

import jsonschema

from chapterizer.core.ir import ChapterResult

logger = logging.getLogger(__name__)

EVICT_ON_FAILURE = 5

CHAPTER_RESULT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["chapters", "pois"],
    "properties": {
        "chapters": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["start", "end", "title"],
                "properties": {
                    "start": {"type": "number", "minimum": 0},
                    "end": {"type": "number", "minimum": 0},
                    "title": {"type": "string", "maxLength": 50},
                },
            },
        },
        "pois": {
            "type": "array",
            "maxItems": 6,
            "items": {
                "type": "object",
                "required": ["time", "label", "score"],
                "properties": {
                    "time": {"type": "number", "minimum": 0},
                    "label": {"type": "string", "maxLength": 70},
                    "score": {"type": "integer"},
                },
            },
        },
    },
}


class StorageFailure(Exception):
    """Raised by a KeyValueStore when a write cannot be completed."""


class KeyValueStore(ABC):
    """Minimal persistence seam used by ResultCache.

    keys() lists keys oldest first; evict_oldest(n) removes that many
    from the front and returns how many were removed.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store value under key; raise StorageFailure when full or unwritable."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    def evict_oldest(self, n: int) -> int:
        removed = 0
        for key in self.keys()[:n]:
            if self.delete(key):
                removed += 1
        return removed


class InMemoryStore(KeyValueStore):
    """Insertion-ordered dict store with an optional entry capacity."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        self._data: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._capacity = capacity
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._data.get(key)
            return json.loads(json.dumps(value)) if value is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            full = self._capacity is not None and len(self._data) >= self._capacity
            if key not in self._data and full:
                raise StorageFailure("Store is full ({} entries)".format(self._capacity))
            self._data.pop(key, None)
            self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class JsonDirectoryStore(KeyValueStore):
    """One {key}.json file per entry; age is file modification time.

    Keys are percent-encoded into file names, so every video id maps to
    its own file and keys() returns the original ids.
    """

    def __init__(self, directory: Path, capacity: Optional[int] = None) -> None:
        self._directory = Path(directory)
        self._capacity = capacity
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self._directory / "{}.json".format(quote(key, safe=""))

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable cache entry %s: %s", path, exc)
            return None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        path = self._path(key)
        with self._lock:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                full = self._capacity is not None and len(self._paths()) >= self._capacity
                if full and not path.exists():
                    raise StorageFailure("Cache directory is full ({} entries)".format(self._capacity))
                path.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
            except OSError as exc:
                raise StorageFailure("Could not write {}: {}".format(path, exc)) from exc

    def delete(self, key: str) -> bool:
        with self._lock:
            try:
                self._path(key).unlink()
            except FileNotFoundError:
                return False
            return True

    def _paths(self) -> List[Path]:
        if not self._directory.is_dir():
            return []
        return sorted(self._directory.glob("*.json"), key=lambda p: p.stat().st_mtime)

    def keys(self) -> List[str]:
        with self._lock:
            return [unquote(p.stem) for p in self._paths()]


class ResultCache:
    """ChapterResult persistence with evict-and-retry writes."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self, video_id: str) -> Optional[ChapterResult]:
        data = self._store.get(video_id)
        if data is None:
            return None
        try:
            jsonschema.validate(instance=data, schema=CHAPTER_RESULT_SCHEMA)
        except jsonschema.ValidationError as exc:
            logger.warning("Discarding invalid cache entry for %s: %s", video_id, exc.message)
            return None
        return ChapterResult.from_dict(data)

    def store(self, video_id: str, result: ChapterResult) -> bool:
        """Persist result; return False when the write was dropped."""
        data = result.to_dict()
        try:
            self._store.set(video_id, data)
            return True
        except StorageFailure as exc:
            evicted = self._store.evict_oldest(EVICT_ON_FAILURE)
            logger.info("Cache write failed (%s); evicted %d oldest entries", exc, evicted)
        try:
            self._store.set(video_id, data)
            return True
        except StorageFailure as exc:
            logger.warning("Cache write for %s dropped after retry: %s", video_id, exc)
            return False

    def delete(self, video_id: str) -> bool:
        return self._store.delete(video_id)

    def count(self) -> int:
        return len(self._store.keys())

    def clear(self) -> int:
        keys = self._store.keys()
        for key in keys:
            self._store.delete(key)
        return len(keys)
