"""AutoSkip playback: presets, skip zones, and the poll scheduler.

WHY: Detection output is only useful to a viewer once it changes what
the player does. This package turns pauses and fillers into merged skip
zones and drives a host player through them tick by tick.

RULES:
- The host supplies PlaybackControl and TickScheduler implementations
- Nothing here knows how transcripts were fetched or analyzed
"""
