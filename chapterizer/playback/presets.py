"""AutoSkip presets: named bundles of skip aggression.

RULES:
- gentle: pauses >= 3.0 s, fillers kept, no speedup
- normal: pauses >= 1.5 s, fillers skipped, no speedup
- aggressive: pauses >= 0.5 s, fillers skipped, silence played at 2x
- "off" is a mode, not a preset
"""

from __future__ import annotations

from typing import Dict, List

from chapterizer.core.ir import AutoSkipPreset


class UnknownPresetError(ValueError):
    """Raised when a preset name is not one of AUTOSKIP_PRESETS."""


AUTOSKIP_PRESETS: Dict[str, AutoSkipPreset] = {
    "gentle": AutoSkipPreset(
        name="gentle",
        pause_threshold=3.0,
        skip_fillers=False,
        silence_speed_multiplier=None,
        label="Gentle",
        description="Skip long pauses (>3s)",
    ),
    "normal": AutoSkipPreset(
        name="normal",
        pause_threshold=1.5,
        skip_fillers=True,
        silence_speed_multiplier=None,
        label="Normal",
        description="Skip pauses >1.5s + fillers",
    ),
    "aggressive": AutoSkipPreset(
        name="aggressive",
        pause_threshold=0.5,
        skip_fillers=True,
        silence_speed_multiplier=2.0,
        label="Aggressive",
        description="Skip all gaps, speed silence",
    ),
}


def get_preset(name: str) -> AutoSkipPreset:
    """Look up a preset by name (case-insensitive)."""
    preset = AUTOSKIP_PRESETS.get(name.strip().lower())
    if preset is None:
        raise UnknownPresetError(
            "Unknown AutoSkip preset '{}'. Available: {}".format(
                name, ", ".join(AUTOSKIP_PRESETS)
            )
        )
    return preset


def list_presets() -> List[AutoSkipPreset]:
    return list(AUTOSKIP_PRESETS.values())
