"""Tests for speech output."""
import asyncio
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from gtts.tts import gTTSError

from lexilearn.services.announcer import GttsAnnouncer, NullAnnouncer, spell_out_parts
from lexilearn.services.timers import RepeatingTimer


def test_spell_out_parts() -> None:
    assert spell_out_parts("cat") == ["cat", "c", "a", "t", "cat"]


def test_spell_out_sequence(announcer) -> None:
    """Test that letters are spoken slower than the word."""
    announcer.spell_out("dog")

    assert announcer.cancels == 1
    assert announcer.spoken == [
        ("dog", 1.0),
        ("d", 0.8),
        ("o", 0.8),
        ("g", 0.8),
        ("dog", 1.0),
    ]


def test_spell_out_empty_word(announcer) -> None:
    announcer.spell_out("")

    assert announcer.spoken == []
    assert announcer.cancels == 0


def test_null_announcer_is_silent() -> None:
    announcer = NullAnnouncer()
    announcer.play("hello")
    announcer.spell_out("hello")
    announcer.cancel()


@pytest.fixture
def player() -> MagicMock:
    return MagicMock()


@pytest.fixture
def gtts_announcer(tmp_path: Path, player: MagicMock) -> GttsAnnouncer:
    return GttsAnnouncer(player=player, lang="en", output_dir=tmp_path)


def write_mp3(path: str) -> None:
    Path(path).write_bytes(b"mp3")


@pytest.mark.asyncio
async def test_play_synthesizes_and_plays(gtts_announcer: GttsAnnouncer, player: MagicMock, tmp_path: Path) -> None:
    """Test that speech is synthesised once and the file handed to the player."""
    with patch("lexilearn.services.announcer.gTTS") as mock_gtts:
        mock_gtts.return_value.save.side_effect = write_mp3

        gtts_announcer.play("Hello world")
        await gtts_announcer.join()
        gtts_announcer.play("Hello world")
        await gtts_announcer.join()

    mock_gtts.assert_called_once_with(text="Hello world", lang="en", slow=False)
    assert player.call_count == 2
    played = player.call_args.args[0]
    assert played.parent == tmp_path
    assert played.name.startswith("hello_world_")
    assert played.suffix == ".mp3"
    await gtts_announcer.aclose()


@pytest.mark.asyncio
async def test_slow_rate_uses_slow_speech(gtts_announcer: GttsAnnouncer) -> None:
    with patch("lexilearn.services.announcer.gTTS") as mock_gtts:
        gtts_announcer.play("a", rate=0.8)
        await gtts_announcer.join()

    mock_gtts.assert_called_once_with(text="a", lang="en", slow=True)
    await gtts_announcer.aclose()


@pytest.mark.asyncio
async def test_speech_failure_is_not_raised(gtts_announcer: GttsAnnouncer, player: MagicMock) -> None:
    """Test that practice continues when synthesis fails."""
    with patch("lexilearn.services.announcer.gTTS") as mock_gtts:
        mock_gtts.return_value.save.side_effect = gTTSError("no network")

        gtts_announcer.play("cat")
        await gtts_announcer.join()
        gtts_announcer.spell_out("cat")
        await gtts_announcer.join()

    player.assert_not_called()
    await gtts_announcer.aclose()


@pytest.mark.asyncio
async def test_slow_synthesis_keeps_timers_running(gtts_announcer: GttsAnnouncer, player: MagicMock) -> None:
    """Test that a spell-out does not stall the event loop while speech is generated."""
    ticks = []
    timer = RepeatingTimer(lambda: ticks.append(1), interval=0.05)

    def slow_save(path: str) -> None:
        time.sleep(0.2)
        write_mp3(path)

    with patch("lexilearn.services.announcer.gTTS") as mock_gtts:
        mock_gtts.return_value.save.side_effect = slow_save
        timer.start()
        gtts_announcer.spell_out("cat")
        await asyncio.sleep(0.5)
        timer.stop()
        await gtts_announcer.aclose()

    assert len(ticks) >= 6
    assert 0 < player.call_count < 5


@pytest.mark.asyncio
async def test_newer_utterance_drops_queued_speech(gtts_announcer: GttsAnnouncer, player: MagicMock) -> None:
    """Test that playing something else discards the rest of a spell-out."""
    with patch("lexilearn.services.announcer.gTTS"):
        gtts_announcer.spell_out("cat")
        gtts_announcer.play("next")
        await gtts_announcer.join()

    assert player.call_count == 1
    assert player.call_args.args[0].name.startswith("next_")
    await gtts_announcer.aclose()


@pytest.mark.asyncio
async def test_newer_utterance_stops_spell_out_midway(tmp_path: Path) -> None:
    """Test that a spell-out interrupted after its first part goes no further."""
    heard = []
    first_heard = threading.Event()
    release = threading.Event()

    def player(path: Path) -> None:
        heard.append(path.name)
        if len(heard) == 1:
            first_heard.set()
            release.wait(timeout=5)

    announcer = GttsAnnouncer(player=player, output_dir=tmp_path)
    with patch("lexilearn.services.announcer.gTTS"):
        announcer.spell_out("cat")
        await asyncio.to_thread(first_heard.wait, 5)
        announcer.play("next")
        release.set()
        await announcer.join()

    assert len(heard) == 2
    assert heard[0].startswith("cat_")
    assert heard[1].startswith("next_")
    await announcer.aclose()


@pytest.mark.asyncio
async def test_aclose_stops_worker(gtts_announcer: GttsAnnouncer, player: MagicMock) -> None:
    with patch("lexilearn.services.announcer.gTTS"):
        gtts_announcer.play("cat")
        await gtts_announcer.aclose()
        await gtts_announcer.aclose()

    player.assert_not_called()


def test_filename_is_sanitised() -> None:
    name = GttsAnnouncer._filename("Don't stop!", slow=True)

    assert name.startswith("don_t_stop__")
    assert name.endswith("_slow.mp3")
    assert GttsAnnouncer._filename("Don't stop!", slow=False) != GttsAnnouncer._filename("don't stop?", slow=False)


if __name__ == "__main__":
    pytest.main([__file__])
