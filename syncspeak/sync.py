"""Sync model: the block sequence, playback position, and the mappings between them."""

import bisect
import logging
import math
import threading

from syncspeak.constants import MIN_BLOCK_SECONDS, SECONDS_PER_WORD
from syncspeak.models import Block
from syncspeak.parser import segment_script
from syncspeak.speakers import detect_speakers

logger = logging.getLogger(__name__)

HEURISTIC = "heuristic"
AUTHORITATIVE = "authoritative"


class SyncModel:
    """Single state container for one editing session.

    `set_script` is the only way script-derived state changes; `speakers`
    and `blocks` are recomputed from the text by pure functions and swapped
    in together. `current_time` is written only by the playback source
    through `on_time_update`. Writers hold one lock, so a generation
    finishing on another thread cannot interleave with an edit.
    """

    def __init__(
        self,
        seconds_per_word: float = SECONDS_PER_WORD,
        min_block_seconds: float = MIN_BLOCK_SECONDS,
    ):
        self.seconds_per_word = seconds_per_word
        self.min_block_seconds = min_block_seconds
        self._script = ""
        self._speakers: list[str] = []
        self._blocks: tuple[Block, ...] = ()
        self._starts: list[float] = []
        self._timing = HEURISTIC
        self._current_time = 0.0
        self._listeners = []
        self._lock = threading.RLock()

    @property
    def script(self) -> str:
        return self._script

    @property
    def speakers(self) -> list[str]:
        return list(self._speakers)

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._blocks

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def timing(self) -> str:
        return self._timing

    @property
    def total_duration(self) -> float:
        if not self._blocks:
            return 0.0
        return self._blocks[-1].end_time

    def subscribe(self, listener):
        """Register listener(model, event); returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self):
        """(script, speakers, blocks) read together under the writer lock."""
        with self._lock:
            return self._script, list(self._speakers), self._blocks

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(self, event)

    def _replace_blocks(self, blocks: tuple[Block, ...], timing: str) -> None:
        self._blocks = blocks
        self._starts = [b.start_time for b in blocks]
        self._timing = timing

    def set_script(self, text: str) -> None:
        """Re-derive speakers and blocks from new script text.

        The playback position is left alone even if it now points past the
        end of the new content.
        """
        speakers = detect_speakers(text)
        blocks = segment_script(
            text,
            speakers,
            seconds_per_word=self.seconds_per_word,
            min_block_seconds=self.min_block_seconds,
        )
        with self._lock:
            self._script = text
            self._speakers = speakers
            self._replace_blocks(blocks, HEURISTIC)
            self._notify("script")

    def apply_timing(self, blocks, timing: str = AUTHORITATIVE, script: str | None = None) -> bool:
        """Replace the block sequence wholesale, e.g. with synthesized timing.

        With `script`, the timing is applied only if it still matches the
        current script text; returns False and changes nothing otherwise.
        """
        with self._lock:
            if script is not None and script != self._script:
                logger.debug("Dropped %s timing computed for a previous script", timing)
                return False
            self._replace_blocks(tuple(blocks), timing)
            logger.debug("Applied %s timing to %d blocks", timing, len(self._blocks))
            self._notify("timing")
            return True

    def on_time_update(self, t: float) -> None:
        """Record the playback position; the most recent call wins."""
        if math.isnan(t) or t < 0:
            raise ValueError(f"Playback time must be a non-negative number, got {t!r}")
        with self._lock:
            self._current_time = float(t)
            self._notify("time")

    def block_at(self, t: float) -> Block | None:
        """Block whose [start, end) range contains t, or None."""
        if t < 0:
            return None
        with self._lock:
            starts, blocks = self._starts, self._blocks
        index = bisect.bisect_right(starts, t) - 1
        if index < 0:
            return None
        block = blocks[index]
        if t < block.end_time:
            return block
        return None

    def active_block(self) -> Block | None:
        return self.block_at(self._current_time)

    def seek(self, block_id: int) -> float:
        """Start time of a block, for the player to jump to.

        Does not move `current_time`; that follows from the player's next
        time update.
        """
        if not 0 <= block_id < len(self._blocks):
            raise IndexError(f"No block with id {block_id} (have {len(self._blocks)})")
        return self._blocks[block_id].start_time
