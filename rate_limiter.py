from collections import deque
from typing import Deque, Dict

from constants import RATE_LIMIT, RATE_LIMIT_WINDOW_MS
from logging_config import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Sliding-window counter: at most ``limit`` admissions per trailing ``window_ms``.

    The window is recomputed exactly on each check; a timestamp stays in the
    window while ``now - t < window_ms``.
    """

    def __init__(self, limit: int = RATE_LIMIT, window_ms: int = RATE_LIMIT_WINDOW_MS):
        self.limit = limit
        self.window_ms = window_ms
        self._history: Dict[str, Deque[int]] = {}

    def admit(self, session_id: str, now: int) -> bool:
        history = self._history.setdefault(session_id, deque())
        while history and now - history[0] >= self.window_ms:
            history.popleft()
        if len(history) >= self.limit:
            logger.info(f"Rate limit hit for session {session_id} ({len(history)}/{self.limit})")
            return False
        history.append(now)
        return True

    def purge(self, session_id: str) -> None:
        if self._history.pop(session_id, None) is not None:
            logger.debug(f"Purged rate state for session {session_id}")

    def tracked(self, session_id: str) -> int:
        return len(self._history.get(session_id, ()))
