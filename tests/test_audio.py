"""Tests for the audio synchronizer and the pydub-backed player."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydub import AudioSegment

from audio_sync import AudioSynchronizer
from helpers import BlockedPlayer, FakePlayer
from player import MediaError, PydubPlayer


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def wav_file(tmp_path: Path) -> Path:
    path = tmp_path / "narration.wav"
    AudioSegment.silent(duration=2000).export(str(path), format="wav")
    return path


def test_operations_without_track_are_noops() -> None:
    audio = AudioSynchronizer()
    audio.sync(True)
    audio.rewind()
    audio.set_volume(0.3)
    audio.release()
    assert not audio.attached
    assert audio.volume == 0.3


def test_sync_mirrors_playing_and_volume() -> None:
    player = FakePlayer()
    audio = AudioSynchronizer(volume=0.4)
    audio.attach(player, "a.mp3")
    audio.sync(True)
    audio.sync(False)
    assert player.calls == [
        ("set_volume", 0.4),
        ("set_volume", 0.4),
        ("play",),
        ("set_volume", 0.4),
        ("pause",),
    ]


def test_volume_is_clamped() -> None:
    player = FakePlayer()
    audio = AudioSynchronizer()
    audio.attach(player, "a.mp3")
    audio.set_volume(1.7)
    assert audio.volume == 1.0
    audio.set_volume(-1)
    assert audio.volume == 0.0
    assert player.calls[-1] == ("set_volume", 0.0)


def test_attach_replaces_previous_track() -> None:
    first, second = FakePlayer(), FakePlayer()
    audio = AudioSynchronizer()
    audio.attach(first, "first.mp3")
    audio.attach(second, "second.mp3")
    assert first.names()[-2:] == ["pause", "release"]
    assert audio.player is second
    assert audio.name == "second.mp3"


def test_blocked_playback_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    player = BlockedPlayer()
    audio = AudioSynchronizer()
    audio.attach(player, "a.mp3")
    with caplog.at_level(logging.WARNING, logger="speed-reader.audio"):
        audio.sync(True)
    assert "requires a user gesture" in caplog.text


def test_player_tracks_position(wav_file: Path) -> None:
    clock = FakeClock()
    player = PydubPlayer(clock=clock)
    player.load(wav_file)
    assert player.duration_secs == pytest.approx(2.0)

    player.play()
    clock.now += 0.5
    assert player.current_time == pytest.approx(0.5)

    player.pause()
    clock.now += 10
    assert player.current_time == pytest.approx(0.5)

    player.play()
    clock.now += 10
    assert player.current_time == pytest.approx(2.0)


def test_player_seek_and_volume(wav_file: Path) -> None:
    clock = FakeClock()
    player = PydubPlayer(clock=clock)
    player.load(wav_file)
    player.play()
    clock.now += 1.2
    player.set_current_time(0)
    assert player.current_time == 0.0
    clock.now += 0.3
    assert player.current_time == pytest.approx(0.3)

    player.set_volume(3)
    assert player.volume == 1.0


def test_player_requires_loaded_track() -> None:
    with pytest.raises(MediaError):
        PydubPlayer().play()


def test_player_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MediaError):
        PydubPlayer().load(tmp_path / "missing.wav")


def test_player_release(wav_file: Path) -> None:
    player = PydubPlayer()
    player.load(wav_file)
    player.release()
    assert not player.loaded
    assert player.duration_secs == 0.0


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("book.m4b", "mp4"), ("song.m4a", "mp4"), ("clip.aac", "aac"), ("voice.WAV", "wav"), ("noext", None)],
)
def test_player_passes_ffmpeg_format(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, filename: str, expected: str | None
) -> None:
    seen = {}

    def fake_from_file(path, format=None, **kwargs):
        seen["format"] = format
        return AudioSegment.silent(duration=1000)

    monkeypatch.setattr(AudioSegment, "from_file", fake_from_file)
    player = PydubPlayer()
    player.load(tmp_path / filename)
    assert seen["format"] == expected
    assert player.duration_secs == 1.0
