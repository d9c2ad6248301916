# ABOUTME: Optimal recognition point for RSVP display
# ABOUTME: Splits a word into prefix / highlighted focus letter / suffix
from __future__ import annotations

import math
from dataclasses import dataclass

# Fixed length bands; not a tunable
FOCUS_DIVISOR = 2.5
SHORT_WORD_MAX = 5


@dataclass(frozen=True)
class FocusParts:
    prefix: str
    focus: str
    suffix: str


def focus_position(length: int) -> int:
    """Index of the focus letter for a word of the given length."""
    if length <= 1:
        return 0
    if length <= SHORT_WORD_MAX:
        return 1
    return math.floor(length / FOCUS_DIVISOR)


def focus_point(word: str) -> FocusParts:
    if not word:
        return FocusParts("", "", "")
    pos = focus_position(len(word))
    return FocusParts(prefix=word[:pos], focus=word[pos:pos + 1], suffix=word[pos + 1:])
