"""Dialogue narration via edge-tts, one clip per block."""

import asyncio
import logging
import os
import tempfile
import time

import edge_tts
from pydub import AudioSegment

from syncspeak.constants import (
    MIN_BLOCK_SECONDS,
    SPEAKER_VOICES,
    TTS_RATE,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
)
from syncspeak.errors import EmptyScript, SynthesisFailed
from syncspeak.models import Block, SynthesisResult
from syncspeak.parser import strip_markup

logger = logging.getLogger(__name__)


def _save_clip(text: str, voice: str, output_path: str, rate: str, label: str) -> None:
    """One edge-tts request; an empty output file counts as a failure."""
    communicate = edge_tts.Communicate(text, voice, rate=rate)
    asyncio.run(communicate.save(output_path))
    if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
        raise SynthesisFailed(f"edge-tts wrote an empty file for {label} ({voice})")


def generate_single(
    text: str,
    voice: str,
    output_path: str,
    rate: str = TTS_RATE,
    label: str = "clip",
) -> None:
    """Voice one clip, retrying with exponential backoff.

    `label` names the clip (e.g. "block 3") in retry warnings and in the
    SynthesisFailed raised once every attempt has failed.
    """
    delay = TTS_RETRY_BASE_DELAY
    for attempt in range(1, TTS_RETRY_COUNT + 1):
        try:
            _save_clip(text, voice, output_path, rate, label)
            return
        except Exception as e:
            if attempt == TTS_RETRY_COUNT:
                raise SynthesisFailed(
                    f"TTS for {label} failed after {TTS_RETRY_COUNT} attempts: {e}"
                ) from e
            logger.warning("TTS for %s failed on attempt %d/%d (%s), retrying in %.1fs",
                           label, attempt, TTS_RETRY_COUNT, e, delay)
        time.sleep(delay)
        delay *= 2


def _load_clip(path: str) -> AudioSegment:
    return AudioSegment.from_file(path)


def _clip_filename(index: int, speaker: str) -> str:
    speaker_slug = speaker.replace(" ", "_").lower()
    return f"{index:03d}_{speaker_slug}.mp3"


def voice_plan(blocks, speakers, voices=SPEAKER_VOICES) -> list[tuple[str, str]]:
    """(speaker, voice) for each block.

    Attributed blocks use their speaker's slot; unattributed blocks continue
    with whoever spoke last, starting with the first speaker.
    """
    plan = []
    current = 0
    for block in blocks:
        if block.speaker in speakers:
            current = speakers.index(block.speaker)
        plan.append((speakers[current], voices[current]))
    return plan


def synthesize(
    blocks,
    speakers,
    voices=SPEAKER_VOICES,
    rate: str = TTS_RATE,
    with_timing: bool = True,
    work_dir: str | None = None,
) -> SynthesisResult:
    """Narrate a block sequence as one two-voice audio track.

    Each block is voiced separately and the clips are joined back to back,
    so the length of each clip is that block's authoritative duration.
    With with_timing=False only the audio is returned.

    Any failure is raised as SynthesisFailed; no partial result is returned.
    """
    blocks = list(blocks)
    if not blocks:
        raise EmptyScript("No blocks to synthesize")
    if len(speakers) < 2 or len(voices) < 2:
        raise ValueError("Dialogue synthesis needs two speakers and two voices")

    plan = voice_plan(blocks, speakers, voices)

    with tempfile.TemporaryDirectory() as tmp:
        clip_dir = work_dir or tmp
        os.makedirs(clip_dir, exist_ok=True)

        audio = AudioSegment.empty()
        timed = []
        total = len(blocks)
        for block, (speaker, voice) in zip(blocks, plan):
            spoken = strip_markup(block.text).strip()
            if spoken:
                path = os.path.join(clip_dir, _clip_filename(block.id, speaker))
                logger.info("Synthesizing block %d/%d (%s, %s)", block.id + 1, total, speaker, voice)
                try:
                    generate_single(spoken, voice, path, rate=rate, label=f"block {block.id}")
                    clip = _load_clip(path)
                except Exception as e:
                    raise SynthesisFailed(f"Synthesis failed at block {block.id}: {e}") from e
            else:
                clip = AudioSegment.silent(duration=int(MIN_BLOCK_SECONDS * 1000))

            if len(clip) == 0:
                raise SynthesisFailed(f"Synthesizer returned no audio for block {block.id}")

            timed.append(Block(
                id=block.id,
                text=block.text,
                start_time=len(audio) / 1000,
                duration=len(clip) / 1000,
                speaker=block.speaker,
            ))
            audio += clip

    return SynthesisResult(audio=audio, blocks=timed if with_timing else None)
