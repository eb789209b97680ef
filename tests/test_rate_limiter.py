from __future__ import annotations

from rate_limiter import RateLimiter


def test_eleventh_message_in_window_is_rejected() -> None:
    limiter = RateLimiter(limit=10, window_ms=60_000)
    for i in range(10):
        assert limiter.admit("s1", 1_000 + i)
    assert not limiter.admit("s1", 1_010)


def test_admission_resumes_after_window() -> None:
    limiter = RateLimiter(limit=10, window_ms=60_000)
    for i in range(10):
        assert limiter.admit("s1", i)
    assert not limiter.admit("s1", 59_999)
    # The first timestamp (0) falls out of the window at 60_000
    assert limiter.admit("s1", 60_000)
    assert not limiter.admit("s1", 60_001)


def test_rejections_are_not_recorded() -> None:
    limiter = RateLimiter(limit=2, window_ms=1_000)
    assert limiter.admit("s1", 0)
    assert limiter.admit("s1", 10)
    for t in range(20, 900, 100):
        assert not limiter.admit("s1", t)
    assert limiter.tracked("s1") == 2


def test_sessions_are_independent() -> None:
    limiter = RateLimiter(limit=1, window_ms=1_000)
    assert limiter.admit("a", 0)
    assert not limiter.admit("a", 1)
    assert limiter.admit("b", 1)


def test_purge_forgets_history() -> None:
    limiter = RateLimiter(limit=1, window_ms=1_000)
    assert limiter.admit("a", 0)
    limiter.purge("a")
    assert limiter.tracked("a") == 0
    assert limiter.admit("a", 1)
    limiter.purge("never-seen")
