"""In-process query cache adapter."""

import logging
from typing import Any, Callable

from daybook.core.keys import QueryKey, is_prefix

logger = logging.getLogger(__name__)


class MemoryQueryCache:
    """
    Hierarchical in-memory cache keyed by tuples.

    Implements CacheStore protocol. Invalidation marks every key under a
    prefix as stale without dropping its value, so readers keep showing the
    last known data until a refetch replaces it.
    """

    def __init__(self):
        self._data: dict[QueryKey, Any] = {}
        self._stale: set[QueryKey] = set()
        self._subscribers: list[Callable[[QueryKey], None]] = []

    def get(self, key: QueryKey) -> Any:
        """Return the cached value, or None if absent."""
        return self._data.get(key)

    def has(self, key: QueryKey) -> bool:
        return key in self._data

    def set(self, key: QueryKey, value: Any) -> None:
        """Store a value, clear its stale flag and notify subscribers."""
        self._data[key] = value
        self._stale.discard(key)
        self._notify(key)

    def invalidate(self, prefix: QueryKey, exact: bool = False) -> None:
        """Mark every cached key under a prefix as stale, or only the key itself when `exact`."""
        if exact:
            matched = [prefix] if prefix in self._data else []
        else:
            matched = self.keys_under(prefix)
        self._stale.update(matched)
        logger.debug(f"Invalidated {len(matched)} cache keys under {prefix}")
        for key in matched:
            self._notify(key)

    def remove(self, prefix: QueryKey) -> None:
        """Drop every cached key under a prefix."""
        for key in self.keys_under(prefix):
            del self._data[key]
            self._stale.discard(key)
            self._notify(key)

    def is_stale(self, key: QueryKey) -> bool:
        return key in self._stale

    def keys_under(self, prefix: QueryKey) -> list[QueryKey]:
        return [key for key in self._data if is_prefix(prefix, key)]

    def subscribe(self, callback: Callable[[QueryKey], None]) -> Callable[[], None]:
        """Register a change callback. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        self._data.clear()
        self._stale.clear()

    def _notify(self, key: QueryKey) -> None:
        for callback in list(self._subscribers):
            try:
                callback(key)
            except Exception as e:
                logger.error(f"Cache subscriber failed for {key}: {e}")
