"""Configuration constants, filler catalog, and .env loading.

WHY: Centralizes every tunable value (filler catalog, display toggles,
AutoSkip mode, cache location) so both humans and coding agents can find
and override them. The detectors consume these values only to decide
whether they run and which words they look for; none of the algorithmic
constants live here (see core.segmenter.SegmentationConfig).

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level dicts, sets, and strings. load_settings() reads the
environment into a Settings dataclass, the configuration store the
session consumes.

RULES:
- FILLER_CATALOG is the closed set of detectable fillers; anything else
  in CHAPTERIZER_FILLER_WORDS is ignored
- Default enabled fillers are "um" and "umm"
- AutoSkip mode is one of "off", "gentle", "normal", "aggressive"
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Filler catalog: category → words/phrases
# ---------------------------------------------------------------------------

FILLER_CATALOG: Dict[str, List[str]] = {
    "Common": ["um", "umm", "uh", "uhh", "hmm", "hm", "er", "erm", "ah", "mhm"],
    "Phrases": ["you know", "I mean", "sort of", "kind of", "okay so", "so yeah", "yeah so", "like"],
    "Extended": ["basically", "literally", "actually", "right", "anyway", "whatever", "I guess", "you see"],
}

ALL_FILLER_WORDS: List[str] = [w for words in FILLER_CATALOG.values() for w in words]
"""Flat catalog in display order."""

DEFAULT_ENABLED_FILLERS = ("um", "umm")

AUTO_SKIP_MODES = ("off", "gentle", "normal", "aggressive")

# ---------------------------------------------------------------------------
# Environment defaults
# ---------------------------------------------------------------------------

CACHE_DIR = os.getenv("CHAPTERIZER_CACHE_DIR", ".chapterizer-cache")
TRANSCRIPT_URL = os.getenv("CHAPTERIZER_TRANSCRIPT_URL", "")
LOG_LEVEL = os.getenv("CHAPTERIZER_LOG_LEVEL", "WARNING")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """User-facing configuration store.

    WHY: Display toggles and the AutoSkip mode gate which detectors run
    and whether the scheduler arms itself after a regeneration. Keeping
    them in one object lets a session be created with explicit settings
    in tests and from the environment in production.

    RULES:
    - enabled_fillers maps catalog word → bool; missing words are disabled
    - auto_skip_mode is validated by load_settings(), not here
    - max_auto_duration_min >= 9999 means unlimited
    """

    enabled_fillers: Dict[str, bool] = field(
        default_factory=lambda: {w: True for w in DEFAULT_ENABLED_FILLERS}
    )
    auto_skip_mode: str = "normal"
    filler_detect: bool = True
    show_chapters: bool = True
    show_pois: bool = True
    mode: str = "auto"
    max_auto_duration_min: int = 9999

    def enabled_filler_words(self) -> List[str]:
        """Enabled catalog words, in catalog order."""
        return [w for w in ALL_FILLER_WORDS if self.enabled_fillers.get(w)]


def parse_filler_words(raw: str) -> Dict[str, bool]:
    """Parse a comma-separated filler list into an enabled-words mapping.

    Words are matched case-insensitively against the catalog; unknown
    words are dropped.
    """
    by_lower = {w.lower(): w for w in ALL_FILLER_WORDS}
    enabled: Dict[str, bool] = {}
    for part in raw.split(","):
        word = by_lower.get(part.strip().lower())
        if word:
            enabled[word] = True
    return enabled


def load_settings() -> Settings:
    """Build Settings from environment variables.

    RULES:
    - CHAPTERIZER_AUTO_SKIP_MODE must be one of AUTO_SKIP_MODES
    - CHAPTERIZER_FILLER_WORDS is a comma-separated list (default "um,umm")
    - Raises ValueError on an unknown mode so misconfiguration is loud
    """
    mode = os.getenv("CHAPTERIZER_AUTO_SKIP_MODE", "normal").strip().lower()
    if mode not in AUTO_SKIP_MODES:
        raise ValueError(
            "Unknown CHAPTERIZER_AUTO_SKIP_MODE '{}'. Expected one of: {}".format(
                mode, ", ".join(AUTO_SKIP_MODES)
            )
        )

    fillers = parse_filler_words(
        os.getenv("CHAPTERIZER_FILLER_WORDS", ",".join(DEFAULT_ENABLED_FILLERS))
    )

    return Settings(
        enabled_fillers=fillers,
        auto_skip_mode=mode,
        filler_detect=_env_bool("CHAPTERIZER_FILLER_DETECT", True),
        show_chapters=_env_bool("CHAPTERIZER_SHOW_CHAPTERS", True),
        show_pois=_env_bool("CHAPTERIZER_SHOW_POIS", True),
        mode=os.getenv("CHAPTERIZER_MODE", "auto").strip().lower(),
        max_auto_duration_min=int(os.getenv("CHAPTERIZER_MAX_AUTO_DURATION_MIN", "9999")),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from CHAPTERIZER_LOG_LEVEL (or an explicit level)."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
