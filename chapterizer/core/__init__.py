"""Core analysis: data model, lexical model, and the detectors.

WHY: The core package is the deterministic heart of the chapterizer.
Everything here is a pure function over an already-fetched segment list,
so detectors can run in any order and be tested without a player.

HOW: ir.py defines the data structures, lexical.py the bag-of-words
model, segmenter.py chapters (calling poi.py for highlights), and
fillers.py, pauses.py, pace.py the independent detectors.

RULES:
- IR dataclasses are the contract; change with care
- No I/O and no playback logic in this package
"""
