"""Shared fixtures for syncspeak tests."""

import pytest
from pydub import AudioSegment

from syncspeak.models import Block, SynthesisResult
from syncspeak.sync import SyncModel


DIALOGUE = "Joe: Hi\n\nJane: Hello\n\nJoe: Bye"


@pytest.fixture
def dialogue():
    """Three two-word turns: every block hits the duration floor."""
    return DIALOGUE


@pytest.fixture
def model(dialogue):
    """SyncModel loaded with the three-turn dialogue."""
    m = SyncModel()
    m.set_script(dialogue)
    return m


@pytest.fixture
def fake_synthesizer():
    """Synthesizer returning 1.5s of silence per block with per-block timing."""
    calls = []

    def synthesizer(blocks, speakers):
        calls.append((tuple(blocks), tuple(speakers)))
        timed = [
            Block(id=b.id, text=b.text, start_time=i * 1.5, duration=1.5, speaker=b.speaker)
            for i, b in enumerate(blocks)
        ]
        return SynthesisResult(audio=AudioSegment.silent(duration=1500 * len(timed)), blocks=timed)

    synthesizer.calls = calls
    return synthesizer
