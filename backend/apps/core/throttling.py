"""
Fixed-window rate limiting for abuse-prone operations.

Counters live in Django's cache framework. With the default local-memory
cache each worker process enforces its own limits; pointing ``CACHES`` at a
shared backend makes the limit cluster-wide.

Usage::

    from apps.core.throttling import check_rate_limit

    check_rate_limit(f"onboarding:{subject}", max_requests=3, window_seconds=3600)
"""

from django.core.cache import cache

from apps.core.exceptions import RateLimitedError
from apps.core.logging import get_logger

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "rate_limit"


class RateLimiter:
    """
    Fixed-window counter keyed by an arbitrary string.

    The first call for a key (or the first call after its window expired)
    opens a new window with count 1. Subsequent calls are allowed while the
    count is below ``max_requests``.
    """

    def __init__(self, prefix: str = CACHE_KEY_PREFIX) -> None:
        self.prefix = prefix

    def _cache_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Record an attempt and return whether it is allowed.

        ``cache.add()`` opens the window (no-op while it is live) and
        ``cache.incr()`` counts the attempt; the window's expiry is set once
        by ``add()`` and not extended by later attempts.
        """
        cache_key = self._cache_key(key)
        cache.add(cache_key, 0, timeout=window_seconds)
        try:
            current = cache.incr(cache_key)
        except ValueError:
            # Window expired between add() and incr()
            cache.set(cache_key, 1, timeout=window_seconds)
            return True
        return current <= max_requests

    def count(self, key: str) -> int:
        """Attempts recorded in the key's live window."""
        return cache.get(self._cache_key(key), 0)

    def reset(self, key: str) -> None:
        cache.delete(self._cache_key(key))


rate_limiter = RateLimiter()


def check_rate_limit(
    key: str,
    *,
    max_requests: int,
    window_seconds: int,
) -> None:
    """
    Check and increment a rate limit counter.

    Args:
        key: Bucket identifier (e.g., "onboarding:owner@example.com").
        max_requests: Maximum allowed requests within the window.
        window_seconds: Time window in seconds.

    Raises:
        RateLimitedError: If the limit has been reached.
    """
    if not rate_limiter.check(key, max_requests, window_seconds):
        logger.warning("rate_limit_exceeded", key=key, limit=max_requests, window=window_seconds)
        raise RateLimitedError(retry_after=window_seconds)
