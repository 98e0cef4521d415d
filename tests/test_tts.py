"""Tests for TTS module (edge-tts always mocked)."""

from unittest.mock import patch, MagicMock

import pytest
from pydub import AudioSegment

from syncspeak.errors import EmptyScript, SynthesisFailed
from syncspeak.models import Block
from syncspeak.parser import segment_script
from syncspeak.tts import generate_single, synthesize, voice_plan


SPEAKERS = ["Joe", "Jane"]
VOICES = ("voice-joe", "voice-jane")


def _make_mock_communicate(duration_ms=100):
    """Create a mock edge_tts.Communicate that writes a short WAV."""
    def factory(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            AudioSegment.silent(duration=duration_ms).export(path, format="wav")
        mock.save = save
        return mock
    return factory


def _fake_generate(text, voice, output_path, rate=None, label=None):
    """Stand-in for generate_single: 500ms of audio per spoken word."""
    AudioSegment.silent(duration=500 * len(text.split())).export(output_path, format="wav")


@pytest.fixture
def fake_tts():
    with patch("syncspeak.tts.generate_single", side_effect=_fake_generate) as gen, \
         patch("syncspeak.tts._load_clip", side_effect=AudioSegment.from_wav):
        yield gen


@patch("syncspeak.tts.edge_tts.Communicate")
def test_tts_generate_single(mock_comm, tmp_path):
    """Single TTS file created at specified path."""
    output = tmp_path / "test.mp3"
    mock_comm.side_effect = _make_mock_communicate()
    generate_single("Hello world", "en-US-GuyNeural", str(output))
    assert output.exists()
    assert output.stat().st_size > 0


@patch("syncspeak.tts.time.sleep")
@patch("syncspeak.tts.edge_tts.Communicate")
def test_tts_generate_single_retry(mock_comm, mock_sleep, tmp_path):
    """Retry works when first attempt fails."""
    output = tmp_path / "test.mp3"
    call_count = 0

    def fail_then_succeed(text, voice, **kwargs):
        nonlocal call_count
        call_count += 1
        mock = MagicMock()
        if call_count == 1:
            async def fail_save(path):
                raise Exception("Network error")
            mock.save = fail_save
        else:
            async def ok_save(path):
                AudioSegment.silent(duration=100).export(path, format="wav")
            mock.save = ok_save
        return mock

    mock_comm.side_effect = fail_then_succeed
    generate_single("Hello", "en-US-GuyNeural", str(output))
    assert output.exists()
    assert call_count == 2
    mock_sleep.assert_called_once_with(1.0)


@patch("syncspeak.tts.time.sleep")
@patch("syncspeak.tts.edge_tts.Communicate")
def test_tts_retry_exhausted(mock_comm, mock_sleep, tmp_path):
    """Raises after all retries exhausted."""
    def always_fail(text, voice, **kwargs):
        mock = MagicMock()
        async def fail_save(path):
            raise Exception("Permanent failure")
        mock.save = fail_save
        return mock

    mock_comm.side_effect = always_fail
    output = tmp_path / "fail.mp3"
    with pytest.raises(Exception, match="Permanent failure"):
        generate_single("Hello", "en-US-GuyNeural", str(output))
    assert mock_sleep.call_count == 2


@patch("syncspeak.tts.time.sleep")
@patch("syncspeak.tts.edge_tts.Communicate")
def test_tts_validates_output_size(mock_comm, mock_sleep, tmp_path):
    """0-byte output treated as failure."""
    call_count_outer = [0]

    def write_empty(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            call_count_outer[0] += 1
            if call_count_outer[0] <= 2:
                open(path, "w").close()  # 0-byte file
            else:
                AudioSegment.silent(duration=100).export(path, format="wav")
        mock.save = save
        return mock

    mock_comm.side_effect = write_empty
    output = tmp_path / "test.mp3"
    generate_single("Hello", "en-US-GuyNeural", str(output))
    assert output.stat().st_size > 0


@patch("syncspeak.tts.time.sleep")
@patch("syncspeak.tts.edge_tts.Communicate")
def test_tts_errors_name_the_clip(mock_comm, mock_sleep, tmp_path, caplog):
    """Retry warnings and the final error say which clip failed."""
    def write_empty(text, voice, **kwargs):
        mock = MagicMock()
        async def save(path):
            open(path, "w").close()
        mock.save = save
        return mock

    mock_comm.side_effect = write_empty
    output = tmp_path / "empty.mp3"
    with caplog.at_level("WARNING", logger="syncspeak.tts"):
        with pytest.raises(SynthesisFailed, match="block 7 failed after 3 attempts"):
            generate_single("Hello", "en-US-GuyNeural", str(output), label="block 7")
    assert "empty file for block 7" in caplog.text
    assert caplog.text.count("TTS for block 7 failed") == 2


def test_synthesize_labels_clips_by_block(fake_tts):
    """Each clip request carries its block id."""
    blocks = segment_script("Joe: Hi\n\nJane: Hello there", SPEAKERS)
    synthesize(blocks, SPEAKERS, voices=VOICES)
    labels = [call.kwargs["label"] for call in fake_tts.call_args_list]
    assert labels == ["block 0", "block 1"]


def test_voice_plan_follows_speakers():
    """Attributed blocks use their slot; unattributed ones continue the last speaker."""
    blocks = segment_script("Jane: Hi\n\nstill Jane\n\nJoe: Hello\n\nmore Joe", SPEAKERS)
    assert voice_plan(blocks, SPEAKERS, VOICES) == [
        ("Jane", "voice-jane"),
        ("Jane", "voice-jane"),
        ("Joe", "voice-joe"),
        ("Joe", "voice-joe"),
    ]


def test_voice_plan_after_whitespace_line():
    """A turn preceded by a spaces-only line is voiced by its own speaker."""
    blocks = segment_script("Jane: hi there\n\n \nJoe: yo", SPEAKERS)
    assert voice_plan(blocks, SPEAKERS, VOICES) == [
        ("Jane", "voice-jane"),
        ("Joe", "voice-joe"),
    ]


def test_voice_plan_defaults_to_first_speaker():
    """Leading unattributed blocks use the first slot."""
    blocks = segment_script("narration", [])
    assert voice_plan(blocks, ["Speaker A", "Speaker B"], VOICES) == [("Speaker A", "voice-joe")]


def test_synthesize_timing_from_clip_lengths(fake_tts):
    """Each block's authoritative duration is its clip length."""
    blocks = segment_script("Joe: Hi there\n\nJane: Hello to you", SPEAKERS)
    result = synthesize(blocks, SPEAKERS, voices=VOICES)
    assert [b.duration for b in result.blocks] == [1.5, 2.0]
    assert [b.start_time for b in result.blocks] == [0.0, 1.5]
    assert len(result.audio) == 3500
    voices_used = [call.args[1] for call in fake_tts.call_args_list]
    assert voices_used == ["voice-joe", "voice-jane"]


def test_synthesize_strips_markup(fake_tts):
    """Tags are not spoken; tag-only blocks become floor-length silence."""
    blocks = segment_script("<b>Joe:</b> Hi\n\n</details>", SPEAKERS)
    result = synthesize(blocks, SPEAKERS, voices=VOICES)
    assert fake_tts.call_count == 1
    assert fake_tts.call_args.args[0] == "Joe: Hi"
    assert result.blocks[1].duration == 2.0


def test_synthesize_without_timing(fake_tts):
    """with_timing=False returns audio only."""
    blocks = segment_script("Joe: Hi", SPEAKERS)
    result = synthesize(blocks, SPEAKERS, voices=VOICES, with_timing=False)
    assert result.blocks is None
    assert len(result.audio) == 1000


def test_synthesize_keeps_clips_in_work_dir(fake_tts, tmp_path):
    """Clips are named by block and speaker when a work dir is given."""
    blocks = segment_script("Joe: Hi\n\nJane: Yo", SPEAKERS)
    synthesize(blocks, SPEAKERS, voices=VOICES, work_dir=str(tmp_path / "clips"))
    names = sorted(p.name for p in (tmp_path / "clips").iterdir())
    assert names == ["000_joe.mp3", "001_jane.mp3"]


def test_synthesize_failure_is_wrapped():
    """Any TTS error surfaces as a single SynthesisFailed."""
    blocks = segment_script("Joe: Hi", SPEAKERS)
    with patch("syncspeak.tts.generate_single", side_effect=RuntimeError("quota exceeded")):
        with pytest.raises(SynthesisFailed, match="quota exceeded"):
            synthesize(blocks, SPEAKERS, voices=VOICES)


def test_synthesize_empty_audio_fails(fake_tts):
    """A zero-length clip counts as no audio."""
    blocks = segment_script("Joe: Hi", SPEAKERS)
    with patch("syncspeak.tts._load_clip", return_value=AudioSegment.empty()):
        with pytest.raises(SynthesisFailed):
            synthesize(blocks, SPEAKERS, voices=VOICES)


def test_synthesize_no_blocks():
    """Nothing to narrate."""
    with pytest.raises(EmptyScript):
        synthesize((), SPEAKERS)


def test_synthesize_needs_two_speakers():
    """Dialogue synthesis always has two voice identities."""
    blocks = [Block(id=0, text="Hi", start_time=0.0, duration=2.0)]
    with pytest.raises(ValueError):
        synthesize(blocks, ["Joe"])
