"""Split script text into timed, speaker-attributed blocks."""

import logging
import re

from syncspeak.constants import COLLAPSIBLE_SUMMARY, MIN_BLOCK_SECONDS, SECONDS_PER_WORD
from syncspeak.errors import EmptyScript
from syncspeak.models import Block
from syncspeak.speakers import speaker_of

logger = logging.getLogger(__name__)

# Blank-line paragraph separators: two or more newlines in a row
_PARAGRAPH_SPLIT_RE = re.compile(r"(?:\r?\n){2,}")

# Markup tags: <details>, </summary>, <br/> ...
_TAG_RE = re.compile(r"<[^>]*>")


def split_paragraphs(text: str) -> list[str]:
    """Split on blank-line separators, dropping empty and whitespace-only segments."""
    return [p for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def strip_markup(text: str) -> str:
    """Remove angle-bracket tags, keeping the text between them."""
    return _TAG_RE.sub("", text)


def count_words(text: str) -> int:
    """Count whitespace-separated words, ignoring markup tags."""
    return len(strip_markup(text).split())


def estimate_duration(
    text: str,
    seconds_per_word: float = SECONDS_PER_WORD,
    min_block_seconds: float = MIN_BLOCK_SECONDS,
) -> float:
    """Heuristic spoken duration of a block, never below the floor."""
    return max(min_block_seconds, count_words(text) * seconds_per_word)


def chain_blocks(items) -> tuple[Block, ...]:
    """Build a contiguous block sequence from (text, duration, speaker) triples.

    Ids are the 0-based position and each block starts where the previous
    one ends, so start(i+1) == start(i) + duration(i) holds exactly.
    """
    blocks = []
    start = 0.0
    for index, (text, duration, speaker) in enumerate(items):
        if not duration > 0:
            raise ValueError(f"Block {index} has non-positive duration: {duration!r}")
        blocks.append(Block(id=index, text=text, start_time=start, duration=duration, speaker=speaker))
        start = start + duration
    return tuple(blocks)


def segment_script(
    text: str,
    speakers=(),
    seconds_per_word: float = SECONDS_PER_WORD,
    min_block_seconds: float = MIN_BLOCK_SECONDS,
) -> tuple[Block, ...]:
    """Segment a script into blocks with heuristic timing.

    Speakers are used for attribution only; they never change where blocks
    split. Any string is accepted: malformed markup or stray colons just end
    up inside a block, and empty input yields no blocks.
    """
    paragraphs = split_paragraphs(text)
    blocks = chain_blocks(
        (para, estimate_duration(para, seconds_per_word, min_block_seconds), speaker_of(para, speakers))
        for para in paragraphs
    )
    logger.debug("Segmented %d chars into %d blocks", len(text), len(blocks))
    return blocks


def clean_script(text: str) -> str:
    """Script text as it should be spoken: markup removed.

    Raises EmptyScript if nothing speakable remains.
    """
    cleaned = strip_markup(text).strip()
    if not cleaned:
        raise EmptyScript("Script has no content to synthesize")
    return cleaned


def wrap_collapsible(text: str, start: int, end: int, summary: str = COLLAPSIBLE_SUMMARY) -> str:
    """Wrap text[start:end] in a collapsible <details> section.

    The selection is padded with blank lines so it stays its own block
    inside the section.
    """
    if not 0 <= start <= end <= len(text):
        raise ValueError(f"Invalid selection {start}:{end} for text of length {len(text)}")
    selected = text[start:end]
    replacement = f"<details>\n<summary>{summary}</summary>\n\n{selected}\n\n</details>"
    return text[:start] + replacement + text[end:]
