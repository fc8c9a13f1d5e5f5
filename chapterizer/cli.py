"""Command-line interface for the chapterizer.

WHY: Creators want chapters and an analysis report for a recording they
already have a transcript for, without running a player or a server.
The CLI wires the full pipeline (load transcript, segment, detect,
format, save) behind a single command.

HOW: Uses argparse to accept a transcript JSON file, the video duration,
the AutoSkip preset the silence summary is computed for, enabled filler
words, output formats, and an output directory. Runs the async session
via asyncio.run(). Status messages go to stderr; output files are saved
next to the transcript (or to --output-dir).

RULES:
- Positional argument: transcript JSON path (its stem is the video id),
  or a video id fetched from --transcript-dir and then --source-url
- --formats: comma-separated formatter keys (default: all registered)
- --fillers: comma-separated catalog words (default from settings)
- The on-disk result cache lives in --cache-dir unless --no-cache is given
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-chapters-2.txt)
- Status output goes to stderr (not stdout); errors exit with code 1
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from chapterizer.acquisition.sources import (
    AcquisitionFailure,
    FirstSuccessFetcher,
    HttpTranscriptSource,
    JsonFileSource,
    StaticSource,
    TranscriptSource,
    segments_from_payload,
)
from chapterizer.config import (
    CACHE_DIR,
    TRANSCRIPT_URL,
    Settings,
    configure_logging,
    load_settings,
    parse_filler_words,
)
from chapterizer.formatters import FORMATTERS
from chapterizer.formatters.base import FormatterOutput
from chapterizer.playback.presets import AUTOSKIP_PRESETS, get_preset
from chapterizer.session import AnalysisSession
from chapterizer.storage.cache import JsonDirectoryStore, ResultCache


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed so it shows immediately."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Return {stem}{suffix}, or the first free {stem}{name}-N{ext}.

    RULES:
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. talk-chapters-2.txt)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name, suffix_ext = suffix[:dot_idx], suffix[dot_idx:]
    else:
        suffix_name, suffix_ext = suffix, ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _resolve_formats(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in raw.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            _fail("Unknown format '{}'. Available formats: {}".format(
                key, ", ".join(sorted(FORMATTERS.keys()))
            ))
    return keys


def _build_settings(args: argparse.Namespace) -> Settings:
    try:
        settings = load_settings()
    except ValueError as e:
        _fail(str(e))
    if args.fillers is not None:
        settings.enabled_fillers = parse_filler_words(args.fillers)
    if args.preset:
        try:
            settings.auto_skip_mode = get_preset(args.preset).name
        except ValueError as e:
            _fail(str(e))
    # No player in the CLI: the preset only selects the silence threshold.
    settings.mode = "manual"
    return settings


async def _run_pipeline(args: argparse.Namespace) -> None:
    """Load, analyze, format, and save.

    RULES:
    - Validate input and output directory before any work
    - An existing file is read directly; anything else is a video id
      fetched from --transcript-dir and/or the transcript URL
    - Status messages to stderr at each step
    - Save each formatter's output files with conflict avoidance
    """
    input_path = Path(args.transcript)
    from_file = input_path.is_file()

    if from_file:
        input_path = input_path.resolve()
        default_output_dir = input_path.parent
    else:
        default_output_dir = Path.cwd()
    output_dir = Path(args.output_dir).resolve() if args.output_dir else default_output_dir
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _resolve_formats(args.formats)
    settings = _build_settings(args)

    sources: List[TranscriptSource] = []
    if from_file:
        video_id = input_path.stem
        _status("Loading transcript {}...".format(input_path.name))
        try:
            payload = json.loads(input_path.read_text(encoding="utf-8"))
            segments = segments_from_payload(payload)
        except json.JSONDecodeError as e:
            _fail("Invalid JSON in {}: {}".format(input_path.name, e))
        except AcquisitionFailure as e:
            _fail(str(e))
        _status("  {} segments".format(len(segments)))
        sources.append(StaticSource({video_id: segments}))
    else:
        video_id = args.transcript
        if args.transcript_dir:
            sources.append(JsonFileSource(Path(args.transcript_dir)))
        url = args.source_url or TRANSCRIPT_URL
        if url:
            sources.append(HttpTranscriptSource(url))
        if not sources:
            _fail(
                "File not found: {}. To fetch by video id, pass --transcript-dir "
                "or --source-url (or set CHAPTERIZER_TRANSCRIPT_URL).".format(args.transcript)
            )
        _status("Fetching transcript for {}...".format(video_id))

    cache = None if args.no_cache else ResultCache(JsonDirectoryStore(Path(args.cache_dir)))
    session = AnalysisSession(
        fetcher=FirstSuccessFetcher(sources),
        cache=cache,
        settings=settings,
    )

    def on_status(message: str, state: str, percent: int) -> None:
        _status("  [{:3d}%] {}".format(percent, message))

    result = await session.generate(video_id, on_status=on_status, duration=args.duration)
    if result is None:
        _fail("Chapter generation failed for {}".format(video_id))

    report = session.build_report()

    _status("Formatting output...")
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(report):
            saved_path = _save_output(output, video_id, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() so tests can inspect it)."""
    parser = argparse.ArgumentParser(
        prog="chapterizer",
        description="Generate chapters, highlights, and a pace/silence/filler "
                    "analysis from a timed transcript.",
    )

    parser.add_argument(
        "transcript",
        help="Path to a transcript JSON file (segment list, {\"segments\": [...]}, "
             "or timed caption events), or a video id to fetch.",
    )

    parser.add_argument(
        "--transcript-dir",
        default=None,
        help="Directory holding {video_id}.json transcripts (used when fetching by video id).",
    )

    parser.add_argument(
        "--source-url",
        default=None,
        help="Transcript URL template with {video_id} (default: CHAPTERIZER_TRANSCRIPT_URL).",
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Video duration in seconds (default: last segment start + 30).",
    )

    parser.add_argument(
        "--preset",
        default=None,
        help="AutoSkip preset whose pause threshold the silence summary uses. "
             "Available: {}.".format(", ".join(AUTOSKIP_PRESETS)),
    )

    parser.add_argument(
        "--fillers",
        default=None,
        help="Comma-separated filler words to detect (default: CHAPTERIZER_FILLER_WORDS or 'um,umm').",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: next to the transcript file, "
             "or the current directory when fetching by video id).",
    )

    parser.add_argument(
        "--cache-dir",
        default=CACHE_DIR,
        help="Directory for the chapter result cache (default: CHAPTERIZER_CACHE_DIR or {}).".format(CACHE_DIR),
    )

    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or write the chapter result cache.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``chapterizer`` and ``python -m chapterizer``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    asyncio.run(_run_pipeline(args))


if __name__ == "__main__":
    main()
