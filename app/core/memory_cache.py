"""Process-local cache whose entries expire with change tokens."""
import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from cachetools import LRUCache

from app.config import settings
from app.core.signal import ChangeToken

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("value", "tokens", "registrations")

    def __init__(self, value: Any, tokens: Tuple[ChangeToken, ...]):
        self.value = value
        self.tokens = tokens
        self.registrations: List[Callable[[], None]] = []

    def release(self) -> None:
        """Cancel the token callbacks of an entry that left the cache"""
        registrations, self.registrations = self.registrations, []
        for cancel in registrations:
            cancel()

    @property
    def expired(self) -> bool:
        return any(token.has_changed for token in self.tokens)


class _EntryCache(LRUCache):
    """LRUCache that releases the entries it evicts to stay under maxsize"""

    def popitem(self):
        key, entry = super().popitem()
        entry.release()
        return key, entry


class MemoryCache:
    """
    Thread-safe LRU cache. An entry stored with change tokens is evicted as
    soon as one of its tokens changes.

    Usage:
        token = signal.get_token("key")
        value = load()  # read AFTER taking the token
        memory_cache.set("key", value, token)
    """

    def __init__(self, maxsize: int = 128):
        self._cache: LRUCache = _EntryCache(maxsize=maxsize)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.expired:
                self._drop(key)
                return None

            return entry.value

    def set(self, key: str, value: Any, *tokens: ChangeToken) -> None:
        entry = _Entry(value, tokens)

        for token in tokens:
            entry.registrations.append(
                token.register_change_callback(lambda: self._evict(key, entry))
            )

        # The value was read after the token was taken: if the token already
        # changed, the value may predate the change.
        if entry.expired:
            entry.release()
            logger.debug(f"Not caching '{key}': change token already expired")
            return

        with self._lock:
            self._drop(key)
            self._cache[key] = entry

    def remove(self, key: str) -> None:
        with self._lock:
            self._drop(key)

    def clear(self) -> None:
        with self._lock:
            # popitem releases each entry
            while self._cache:
                self._cache.popitem()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def _drop(self, key: str) -> None:
        entry = self._cache.pop(key, None)
        if entry is not None:
            entry.release()

    def _evict(self, key: str, entry: _Entry) -> None:
        with self._lock:
            # A newer entry may already have replaced this one
            if self._cache.get(key) is entry:
                del self._cache[key]
                entry.release()
                logger.debug(f"Evicted '{key}' from memory cache")


# Global cache instance
memory_cache = MemoryCache(maxsize=settings.cache_max_entries)
