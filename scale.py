# ABOUTME: Display font size estimation: fit the longest word to the viewport width
# ABOUTME: Auto mode recomputes on document/viewport change; manual mode keeps the user value
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

MIN_AUTO_PX = 40
MAX_AUTO_PX = 200
MIN_MANUAL_PX = 20
MAX_MANUAL_PX = 300
DEFAULT_PX = 80
DEFAULT_VIEWPORT_PX = 1280

HORIZONTAL_PADDING_PX = 40
CHAR_WIDTH_RATIO = 0.6  # approx glyph width / font size for a heavy sans face
MIN_CHARS = 5


def estimate_size(words: Sequence[str], viewport_width_px: float) -> int:
    """Largest font size (px) at which the longest word still fits, clamped to [40, 200]."""
    longest = max((len(w) for w in words), default=0)
    chars = max(longest, MIN_CHARS)
    raw = math.floor((viewport_width_px - HORIZONTAL_PADDING_PX) / (chars * CHAR_WIDTH_RATIO))
    return min(max(raw, MIN_AUTO_PX), MAX_AUTO_PX)


def clamp_manual_px(value: int) -> int:
    return min(max(int(value), MIN_MANUAL_PX), MAX_MANUAL_PX)


@dataclass
class ScaleMode:
    auto: bool = True
    manual_px: int = DEFAULT_PX

    @property
    def font_px(self) -> int:
        return self.manual_px

    def refresh(self, words: Sequence[str], viewport_width_px: float) -> int:
        """Recompute in auto mode; the result is retained as manual_px."""
        if self.auto:
            self.manual_px = estimate_size(words, viewport_width_px)
        return self.manual_px
