import logging
import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """
    Key/value cache whose entries expire a fixed number of seconds after
    they were stored.

    Writes elsewhere in the application never invalidate entries, so a
    reader may see data up to ``ttl_seconds`` old. ``invalidate`` exists for
    callers that need to drop an entry early.

    Expired entries are dropped when read, and swept from storage at most
    once per ``ttl_seconds`` on write.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._next_sweep = clock() + ttl_seconds
        self._lock = Lock()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            self._entries[key] = (now + self.ttl_seconds, value)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self.ttl_seconds
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))

    def invalidate(self, key: str) -> bool:
        """Drop one entry; returns whether it was present"""
        with self._lock:
            return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)


def cached(cache: TTLCache, key: str, compute: Callable[[], Any]) -> Any:
    """Read-through helper: return the cached value or compute and store it"""
    value = cache.get(key, _MISSING)
    if value is not _MISSING:
        logger.debug("Cache hit for %s", key)
        return value
    value = compute()
    cache.set(key, value)
    logger.debug("Cached data for %s", key)
    return value
