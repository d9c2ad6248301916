# ABOUTME: Media-playback backend for the attached audio track (load/play/pause/seek/volume)
# ABOUTME: Decodes the track with pydub and tracks the play head against a monotonic clock
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Protocol

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

logger = logging.getLogger("speed-reader.player")

# ffmpeg demuxer names for extensions it does not recognise as formats
FORMAT_ALIASES = {"m4a": "mp4", "m4b": "mp4"}


class MediaError(Exception):
    """The media backend refused an operation or could not decode the track."""


class MediaPlayer(Protocol):
    def load(self, source: Path | str) -> None: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def set_current_time(self, seconds: float) -> None: ...
    def set_volume(self, level: float) -> None: ...
    def release(self) -> None: ...


class PydubPlayer:
    """Audio track whose position follows wall-clock time while playing."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._segment: AudioSegment | None = None
        self._offset = 0.0
        self._started_at: float | None = None
        self.volume = 1.0

    def load(self, source: Path | str):
        path = Path(source)
        ext = path.suffix.lstrip(".").lower()
        fmt = FORMAT_ALIASES.get(ext, ext) or None
        try:
            segment = AudioSegment.from_file(str(path), format=fmt)
        except (CouldntDecodeError, OSError) as e:
            raise MediaError(f"Could not decode audio {path.name}: {e}") from e
        self._segment = segment
        self._offset = 0.0
        self._started_at = None
        logger.info("Loaded audio %s (%.1fs)", path.name, segment.duration_seconds)

    @property
    def loaded(self) -> bool:
        return self._segment is not None

    @property
    def duration_secs(self) -> float:
        return self._segment.duration_seconds if self._segment is not None else 0.0

    @property
    def playing(self) -> bool:
        return self._started_at is not None

    @property
    def current_time(self) -> float:
        position = self._offset
        if self._started_at is not None:
            position += self._clock() - self._started_at
        return min(position, self.duration_secs)

    def play(self):
        if self._segment is None:
            raise MediaError("No audio loaded")
        if self._started_at is None:
            self._started_at = self._clock()

    def pause(self):
        if self._started_at is not None:
            self._offset = self.current_time
            self._started_at = None

    def set_current_time(self, seconds: float):
        self._offset = min(max(seconds, 0.0), self.duration_secs)
        if self._started_at is not None:
            self._started_at = self._clock()

    def set_volume(self, level: float):
        self.volume = min(max(level, 0.0), 1.0)

    def release(self):
        self.pause()
        self._segment = None
        self._offset = 0.0
