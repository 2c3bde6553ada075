"""
Login redirect de-duplication.

Remembers, in Django's cache, that a login redirect was started for a
client so that repeated navigation evaluations within the window do not
start another one. The marker simply expires; it is not a lock.
"""

from django.core.cache import cache

LOGIN_GUARD_WINDOW_SECONDS = 120
CACHE_KEY_PREFIX = "login_guard"


class LoginAttemptGuard:
    def __init__(self, window_seconds: int = LOGIN_GUARD_WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds

    def _cache_key(self, key: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{key}"

    def can_trigger(self, key: str) -> bool:
        """True when no login was started for ``key`` within the window."""
        return cache.get(self._cache_key(key)) is None

    def mark_started(self, key: str) -> None:
        cache.set(self._cache_key(key), 1, timeout=self.window_seconds)

    def try_start(self, key: str) -> bool:
        """Mark a login as started unless one already is. Returns True when marked."""
        return cache.add(self._cache_key(key), 1, timeout=self.window_seconds)

    def clear(self, key: str) -> None:
        cache.delete(self._cache_key(key))


login_guard = LoginAttemptGuard()
