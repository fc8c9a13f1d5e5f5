"""Chapterizer: transcript chapters, highlights, and automatic skipping.

WHY: Long spoken-word videos rarely ship with chapters, and most of
their dead air (long pauses, "um"s) is tedious to sit through. This
package turns a timed transcript into titled chapters, highlight
timestamps, filler and pause maps, and drives a playback scheduler that
skips or speeds through them.

HOW: Four-stage pipeline: acquire (transcript sources), analyze (core
detectors), schedule (playback), render (formatters, CLI, HTTP API).
Each stage is independently testable.

RULES:
- All detectors consume the same TranscriptSegment list
- Detectors are pure and deterministic; only the session holds state
- Adding a new output format = one new formatter module, no core changes
"""

__version__ = "0.1.0"
