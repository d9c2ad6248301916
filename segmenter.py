# ABOUTME: Splits raw document text into the ordered word tokens shown one at a time
# ABOUTME: A Document is derived once per text change and never mutated in place
from __future__ import annotations

import re
from dataclasses import dataclass

# Any run of CR/LF collapses to a single space before splitting
LINE_BREAKS = re.compile(r"[\r\n]+")
WHITESPACE = re.compile(r"\s+")


def segment(raw: str) -> list[str]:
    """Split text into word tokens. All-whitespace input yields [""]."""
    text = LINE_BREAKS.sub(" ", raw.strip())
    return WHITESPACE.split(text)


@dataclass(frozen=True)
class Document:
    text: str
    words: tuple[str, ...]

    @classmethod
    def from_text(cls, raw: str) -> Document:
        return cls(text=raw, words=tuple(segment(raw)))

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to play (a lone empty token)."""
        return len(self.words) <= 1 and not (self.words and self.words[0])

    def word_at(self, index: int) -> str:
        if 0 <= index < len(self.words):
            return self.words[index]
        return ""

    def __len__(self) -> int:
        return len(self.words)
