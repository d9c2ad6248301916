# ABOUTME: Keeps the optional audio track in lock-step with text playback (play/pause/rewind/volume)
# ABOUTME: Media failures are logged and ignored; text playback is authoritative
from __future__ import annotations

import logging

from player import MediaPlayer
from store import DEFAULT_VOLUME

logger = logging.getLogger("speed-reader.audio")


class AudioSynchronizer:
    """Owns at most one audio track. Every operation is a no-op without one."""

    def __init__(self, volume: float = DEFAULT_VOLUME):
        self.volume = _clamp_volume(volume)
        self.player: MediaPlayer | None = None
        self.name: str | None = None

    @property
    def attached(self) -> bool:
        return self.player is not None

    def attach(self, player: MediaPlayer, name: str):
        """Replace the current track (if any) with an already-loaded player."""
        self.release()
        self.player = player
        self.name = name
        self._call("set_volume", self.volume)
        logger.info("Attached audio track %s", name)

    def release(self):
        if self.player is None:
            return
        self._call("pause")
        self._call("release")
        logger.info("Released audio track %s", self.name)
        self.player = None
        self.name = None

    def sync(self, playing: bool):
        """Mirror the scheduler's playing flag into the track."""
        self._call("set_volume", self.volume)
        if playing:
            self._call("play")
        else:
            self._call("pause")

    def rewind(self):
        self._call("set_current_time", 0.0)

    def set_volume(self, level: float):
        self.volume = _clamp_volume(level)
        self._call("set_volume", self.volume)

    def _call(self, method: str, *args):
        if self.player is None:
            return
        try:
            getattr(self.player, method)(*args)
        except Exception as e:
            # Autoplay policies and decoder hiccups must not stop the text
            logger.warning("Audio %s failed on %s: %s", method, self.name, e)


def _clamp_volume(level: float) -> float:
    return min(max(float(level), 0.0), 1.0)
