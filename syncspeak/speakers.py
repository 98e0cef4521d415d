"""Speaker detection from "Name:" line prefixes."""

import logging
import re

from syncspeak.constants import MAX_SPEAKERS, PLACEHOLDER_SPEAKERS

logger = logging.getLogger(__name__)

# "Joe:" / "Dr Smith:" / "A:" at the start of a line; lowercase-led names never match
_SPEAKER_RE = re.compile(r"^([A-Z][A-Za-z0-9_ ]*):", re.MULTILINE)


def detect_speakers(text: str) -> list[str]:
    """Return up to two speaker names in first-appearance order.

    Pure function of the text. Case is preserved; "JOE" and "Joe" are
    distinct names.
    """
    speakers = []
    for match in _SPEAKER_RE.finditer(text):
        name = match.group(1).rstrip()
        if name in speakers:
            continue
        speakers.append(name)
        if len(speakers) == MAX_SPEAKERS:
            break
    return speakers


def speaker_of(text: str, speakers) -> str | None:
    """Attribute a block to a speaker by the prefix of its first non-blank line, if known."""
    match = _SPEAKER_RE.match(text.lstrip())
    if not match:
        return None
    name = match.group(1).rstrip()
    return name if name in speakers else None


def resolve_speakers(detected) -> list[str]:
    """Pad detected speakers to exactly two distinct names.

    Missing slots take the placeholder for that position; a placeholder
    already used by a real speaker is skipped.
    """
    speakers = list(detected)[:MAX_SPEAKERS]
    if not speakers:
        logger.warning("No speakers detected, using placeholders %s", ", ".join(PLACEHOLDER_SPEAKERS))

    for slot in range(len(speakers), MAX_SPEAKERS):
        candidates = [PLACEHOLDER_SPEAKERS[slot]] + list(PLACEHOLDER_SPEAKERS)
        speakers.append(next(p for p in candidates if p not in speakers))
    return speakers
