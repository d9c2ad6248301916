# ABOUTME: Per-word display delay and instantaneous reading pace (WPM)
# ABOUTME: Linear speed ramp, either per pass or across a bounded multi-loop run
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger("speed-reader.pacing")

MIN_WPM = 1

DEFAULT_WPM = 350
DEFAULT_START_WPM = 250
DEFAULT_END_WPM = 700
DEFAULT_MAX_LOOPS = 3  # 0 = unbounded

# Punctuation pauses for natural reading rhythm
SENTENCE_ENDINGS = (".", "!", "?")
CLAUSE_ENDINGS = (",", ";", ":")
SENTENCE_PAUSE = 2.2
CLAUSE_PAUSE = 1.5


@dataclass
class PacePolicy:
    base_wpm: int = DEFAULT_WPM
    ramp_enabled: bool = False
    start_wpm: int = DEFAULT_START_WPM
    end_wpm: int = DEFAULT_END_WPM


@dataclass
class LoopPolicy:
    enabled: bool = False
    max_loops: int = DEFAULT_MAX_LOOPS

    @property
    def bounded(self) -> bool:
        return self.enabled and self.max_loops > 0


def clamp_wpm(value, field: str = "wpm") -> int:
    """Clamp a user-supplied pace to at least MIN_WPM.

    A zero or negative pace would give an undefined delay and stall playback,
    so it is corrected here instead of being rejected.
    """
    try:
        wpm = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r, using %d", field, value, MIN_WPM)
        return MIN_WPM
    if wpm < MIN_WPM:
        logger.warning("Non-positive %s %d clamped to %d", field, wpm, MIN_WPM)
        return MIN_WPM
    return wpm


def delay_ms(word: str, pace_wpm: float) -> float:
    """How long a word stays on screen, in milliseconds."""
    if pace_wpm <= 0:
        raise ValueError(f"pace must be positive, got {pace_wpm}")
    ms = 60000 / pace_wpm
    if word.endswith(SENTENCE_ENDINGS):
        ms *= SENTENCE_PAUSE
    elif word.endswith(CLAUSE_ENDINGS):
        ms *= CLAUSE_PAUSE
    return ms


def ramp_progress(loop_policy: LoopPolicy, word_index: int, loop_count: int, doc_len: int) -> float:
    """Fraction of the ramp covered so far, in [0, 1].

    Bounded looping spreads the ramp over every pass; otherwise (looping off or
    unbounded) the ramp restarts with each pass.
    """
    if loop_policy.bounded:
        absolute = (loop_count - 1) * doc_len + word_index
        progress = absolute / max(1, loop_policy.max_loops * doc_len - 1)
    else:
        progress = word_index / max(1, doc_len - 1)
    return min(max(progress, 0.0), 1.0)


def current_pace(
    policy: PacePolicy,
    loop_policy: LoopPolicy,
    word_index: int,
    loop_count: int,
    doc_len: int,
) -> int:
    if not policy.ramp_enabled:
        return max(MIN_WPM, policy.base_wpm)

    progress = ramp_progress(loop_policy, word_index, loop_count, doc_len)
    wpm = policy.start_wpm + (policy.end_wpm - policy.start_wpm) * progress
    # Round half up
    return max(MIN_WPM, math.floor(wpm + 0.5))
