"""Result persistence keyed by video id."""

from chapterizer.storage.cache import (
    CHAPTER_RESULT_SCHEMA,
    InMemoryStore,
    JsonDirectoryStore,
    KeyValueStore,
    ResultCache,
    StorageFailure,
)

__all__ = [
    "CHAPTER_RESULT_SCHEMA",
    "InMemoryStore",
    "JsonDirectoryStore",
    "KeyValueStore",
    "ResultCache",
    "StorageFailure",
]
