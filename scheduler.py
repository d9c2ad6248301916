# ABOUTME: Playback state machine: owns the word index, playing flag, loop counter and the one pending timer
# ABOUTME: Every transition cancels the outstanding timer before recomputing pace/delay and rescheduling
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Protocol

from audio_sync import AudioSynchronizer
from loop_control import LoopAction, decide
from pacing import LoopPolicy, PacePolicy, current_pace, delay_ms
from segmenter import Document

logger = logging.getLogger("speed-reader.scheduler")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[[float, Callable[[], None]], TimerHandle]


class Phase(str, Enum):
    IDLE = "idle"
    ADVANCING = "advancing"


@dataclass
class PlaybackState:
    word_index: int = 0
    playing: bool = False
    loop_count: int = 1


def _asyncio_call_later(delay_secs: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay_secs, callback)


class Scheduler:
    """Drives word advancement with a single cancellable one-shot timer.

    All mutations happen on one thread of control (the event loop that owns
    the timers), so no locking is needed. At most one timer is outstanding.
    """

    def __init__(
        self,
        pace: PacePolicy,
        loops: LoopPolicy,
        audio: AudioSynchronizer,
        call_later: CallLater | None = None,
    ):
        self.pace = pace
        self.loops = loops
        self.audio = audio
        self._call_later = call_later or _asyncio_call_later
        self._document = Document.from_text("")
        self._state = PlaybackState()
        self._timer: TimerHandle | None = None
        self._generation = 0

    @property
    def document(self) -> Document:
        return self._document

    @property
    def state(self) -> PlaybackState:
        """Snapshot of the playback state."""
        return replace(self._state)

    @property
    def phase(self) -> Phase:
        return Phase.ADVANCING if self._state.playing else Phase.IDLE

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def current_pace(self) -> int:
        return current_pace(
            self.pace,
            self.loops,
            self._state.word_index,
            self._state.loop_count,
            len(self._document),
        )

    def current_delay_ms(self) -> float:
        word = self._document.word_at(self._state.word_index)
        return delay_ms(word, self.current_pace())

    def progress(self) -> float:
        if not len(self._document):
            return 0.0
        return self._state.word_index / len(self._document)

    # --- transitions ---

    def load(self, document: Document):
        """New document: back to Idle at word 0, loop 1."""
        self._cancel()
        was_playing = self._state.playing
        self._document = document
        self._state = PlaybackState()
        if was_playing:
            self.audio.sync(False)
        logger.info("Loaded document with %d words", len(document))

    def play(self):
        if self._state.playing:
            return
        if self._document.is_empty:
            logger.info("Document is empty, nothing to play")
            return
        self._state.playing = True
        self.audio.sync(True)
        self._schedule()

    def pause(self):
        """Stop advancing; the word index is kept so play resumes in place."""
        self._cancel()
        if not self._state.playing:
            return
        self._state.playing = False
        self.audio.sync(False)

    def toggle(self):
        if self._state.playing:
            self.pause()
        else:
            self.play()

    def launch(self):
        """Start a fresh session from word 0, loop 1."""
        was_playing = self._state.playing
        self._cancel()
        self._state = PlaybackState()
        self.audio.rewind()
        if was_playing and self._document.is_empty:
            self.audio.sync(False)
        self.play()

    def retime(self):
        """Re-derive the pending wait after a pace or loop policy edit."""
        if self._state.playing:
            self._schedule()

    def close(self):
        self._cancel()
        if self._state.playing:
            self._state.playing = False
            self.audio.sync(False)

    # --- timer ---

    def _schedule(self):
        self._cancel()
        self._generation += 1
        generation = self._generation
        delay = self.current_delay_ms()
        self._timer = self._call_later(delay / 1000, lambda: self._fire(generation))

    def _cancel(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int):
        # A handle that was superseded must never advance the index
        if generation != self._generation or self._timer is None:
            return
        self._timer = None
        self._advance()

    def _advance(self):
        if not self._state.playing:
            return
        if self._state.word_index < len(self._document) - 1:
            self._state.word_index += 1
        else:
            self._end_of_pass()
        if self._state.playing:
            self._schedule()

    def _end_of_pass(self):
        action = decide(self.loops, self._state.loop_count)
        self._state.word_index = 0
        if action is LoopAction.RESTART:
            self._state.loop_count += 1
            self.audio.rewind()
            logger.info("Starting loop %d", self._state.loop_count)
        else:
            self._state.playing = False
            self.audio.sync(False)
            self.audio.rewind()
            logger.info("Reading finished after %d loop(s)", self._state.loop_count)
