"""Editing session: sync model plus a single-slot narration generator."""

import logging
import threading

from syncspeak.errors import EmptyScript, GenerationInProgress, SynthesisFailed
from syncspeak.exporter import export_pack
from syncspeak.parser import clean_script
from syncspeak.reconcile import Policy, reconcile
from syncspeak.speakers import resolve_speakers
from syncspeak.sync import SyncModel
from syncspeak.tts import synthesize

logger = logging.getLogger(__name__)

IDLE = "idle"
BUSY = "busy"


def _require_speakable(script: str, blocks) -> None:
    """Raise EmptyScript unless the script has narratable text and blocks."""
    clean_script(script)
    if not blocks:
        raise EmptyScript("Script has no blocks to synthesize")


class Session:
    """Ties the sync model to the synthesis, playback and export collaborators.

    `synthesizer(blocks, speakers)` must return a SynthesisResult. `player`,
    if given, needs `seek(seconds)` and `play()`.
    """

    def __init__(self, model=None, synthesizer=synthesize, policy=Policy.AUTHORITATIVE, player=None):
        self.model = model or SyncModel()
        self.synthesizer = synthesizer
        self.policy = Policy(policy)
        self.player = player
        self.audio = None
        self._slot = threading.Lock()

    @property
    def status(self) -> str:
        return BUSY if self._slot.locked() else IDLE

    def generate_audio(self):
        """Narrate the current script and reconcile block timing.

        Only one generation may run at a time. On failure the model and the
        previous audio are left exactly as they were. If the script is edited
        while synthesis runs, the result is discarded with SynthesisFailed.
        """
        if not self._slot.acquire(blocking=False):
            raise GenerationInProgress("Audio generation is already running")
        try:
            model = self.model
            script, detected, blocks = model.snapshot()
            _require_speakable(script, blocks)
            speakers = resolve_speakers(detected)
            try:
                result = self.synthesizer(blocks, speakers)
            except (SynthesisFailed, EmptyScript):
                raise
            except Exception as e:
                raise SynthesisFailed(f"Synthesis failed: {e}") from e
            if result is None or result.audio is None or len(result.audio) == 0:
                raise SynthesisFailed("Synthesizer returned no audio")

            reconciled, timing = reconcile(blocks, result, self.policy)
            if not model.apply_timing(reconciled, timing, script=script):
                raise SynthesisFailed("Script changed during generation; audio discarded")
            self.audio = result.audio
            logger.info("Generated %.1fs of audio for %d blocks (%s timing)",
                        result.duration, len(reconciled), timing)
            return result
        finally:
            self._slot.release()

    def jump_to(self, block_id: int) -> float:
        """Seek playback to the start of a block and resume playing."""
        t = self.model.seek(block_id)
        if self.player is not None:
            self.player.seek(t)
            self.player.play()
        return t

    def export(self, output_dir: str) -> dict:
        return export_pack(output_dir, self.model.script, self.audio, self.model.blocks)
