"""Reconcile estimated block timing with synthesized narration."""

import logging
from enum import Enum

from syncspeak.errors import SynthesisFailed
from syncspeak.models import SynthesisResult
from syncspeak.parser import chain_blocks
from syncspeak.sync import AUTHORITATIVE, HEURISTIC

logger = logging.getLogger(__name__)


class Policy(str, Enum):
    AUTHORITATIVE = "authoritative"  # synthesized timing replaces estimates when supplied
    HEURISTIC = "heuristic"          # synthesized timing is always discarded
    SCALE = "scale"                  # like AUTHORITATIVE, else stretch estimates to the audio length


def _rechain(blocks):
    try:
        return chain_blocks((b.text, b.duration, b.speaker) for b in blocks)
    except ValueError as e:
        raise SynthesisFailed(f"Unusable block timing from synthesizer: {e}") from e


def scale_to_duration(blocks, total: float):
    """Stretch durations proportionally so the sequence ends at `total` seconds."""
    if not blocks or total <= 0:
        return tuple(blocks)
    factor = total / blocks[-1].end_time
    return chain_blocks((b.text, b.duration * factor, b.speaker) for b in blocks)


def reconcile(blocks, result: SynthesisResult, policy: Policy = Policy.AUTHORITATIVE):
    """Pick the block sequence to keep once narration audio exists.

    Returns (blocks, timing) where timing is "authoritative" or "heuristic".
    Drift between heuristic timing and the real narration is accepted, not
    an error.
    """
    policy = Policy(policy)
    blocks = tuple(blocks)

    if policy is Policy.HEURISTIC:
        logger.debug("Keeping heuristic timing (policy=%s)", policy.value)
        return blocks, HEURISTIC

    if result.blocks:
        logger.debug("Replacing %d estimated blocks with %d synthesized", len(blocks), len(result.blocks))
        return _rechain(result.blocks), AUTHORITATIVE

    if policy is Policy.SCALE and result.duration > 0:
        logger.debug("Scaling heuristic timing to %.2fs of audio", result.duration)
        return scale_to_duration(blocks, result.duration), HEURISTIC

    return blocks, HEURISTIC
