from typing import Iterable, Optional

from constants import BANNED_WORDS


class ContentFilter:
    """Case-insensitive substring deny-list. No tokenization, no stemming."""

    def __init__(self, banned_words: Optional[Iterable[str]] = None):
        words = BANNED_WORDS if banned_words is None else banned_words
        self.banned_words = tuple(w.lower() for w in words if w)

    def passes(self, text: str) -> bool:
        lowered = text.lower()
        return not any(word in lowered for word in self.banned_words)
