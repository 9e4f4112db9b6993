"""Local cache interface."""

from typing import Any, Callable, Protocol

from daybook.core.keys import QueryKey


class CacheStore(Protocol):
    """Interface for the keyed client-side cache the UI reads from."""

    def get(self, key: QueryKey) -> Any:
        """Return the cached value, or None if absent."""
        ...

    def has(self, key: QueryKey) -> bool:
        """Check whether a value is cached for a key."""
        ...

    def set(self, key: QueryKey, value: Any) -> None:
        """Store a value and notify subscribers."""
        ...

    def invalidate(self, prefix: QueryKey, exact: bool = False) -> None:
        """Mark every key under a prefix (or only the key itself) as stale so it is refetched."""
        ...

    def remove(self, prefix: QueryKey) -> None:
        """Drop every key under a prefix."""
        ...

    def keys_under(self, prefix: QueryKey) -> list[QueryKey]:
        """List cached keys under a prefix."""
        ...

    def subscribe(self, callback: Callable[[QueryKey], None]) -> Callable[[], None]:
        """Register a change callback. Returns an unsubscribe function."""
        ...
