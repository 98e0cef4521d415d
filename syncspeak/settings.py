"""Per-script settings from an optional .sync.json sidecar file."""

import json
import math
import logging
import os
from dataclasses import dataclass, field

from syncspeak.constants import (
    MIN_BLOCK_SECONDS,
    SECONDS_PER_WORD,
    SETTINGS_SUFFIX,
    SPEAKER_VOICES,
    TTS_RATE,
)
from syncspeak.reconcile import Policy

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    seconds_per_word: float = SECONDS_PER_WORD
    min_block_seconds: float = MIN_BLOCK_SECONDS
    voices: tuple = field(default_factory=lambda: tuple(SPEAKER_VOICES))
    rate: str = TTS_RATE
    policy: Policy = Policy.AUTHORITATIVE


def _is_positive_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def settings_path(script_path: str) -> str:
    """Sidecar path: dialogue.md → dialogue.sync.json."""
    return os.path.splitext(script_path)[0] + SETTINGS_SUFFIX


def load_settings(script_path: str) -> Settings:
    """Load the sidecar settings for a script if it exists.

    Returns defaults when the file is missing or malformed; unknown keys are
    ignored and invalid values fall back to their defaults.
    """
    settings = Settings()
    path = settings_path(script_path)
    if not os.path.exists(path):
        return settings
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Malformed settings file: %s, using defaults", path)
        return settings
    if not isinstance(data, dict):
        logger.warning("Settings file %s is not a JSON object, using defaults", path)
        return settings

    for key in ("seconds_per_word", "min_block_seconds"):
        if key in data:
            value = data[key]
            if _is_positive_number(value):
                setattr(settings, key, float(value))
            else:
                logger.warning("Ignoring %s=%r in %s: must be a finite positive number", key, value, path)

    voices = data.get("voices")
    if voices is not None:
        if isinstance(voices, list) and len(voices) == 2 and all(isinstance(v, str) and v for v in voices):
            settings.voices = tuple(voices)
        else:
            logger.warning("Ignoring voices in %s: expected two voice names", path)

    if isinstance(data.get("rate"), str):
        settings.rate = data["rate"]

    if "policy" in data:
        try:
            settings.policy = Policy(data["policy"])
        except ValueError:
            logger.warning("Unknown policy %r in %s, using %s", data["policy"], path, settings.policy.value)

    return settings
