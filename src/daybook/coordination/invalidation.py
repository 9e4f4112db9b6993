"""Deferred, coalesced cache invalidation."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date

from daybook.core.keys import entry_data_keys, entry_key
from daybook.ports.cache_store import CacheStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invalidation:
    """Request to refresh an owner's entry data, optionally for specific dates."""

    owner_id: str
    dates: frozenset[date] = field(default_factory=frozenset)
    reason: str = ""


class InvalidationScheduler:
    """
    Queue invalidations for the next event-loop turn.

    Running them later than the mutation's own completion keeps the
    optimistic cache write visible to any synchronous re-render before a
    refetch can replace it. Requests for the same owner made within one turn
    collapse into a single invalidation.
    """

    def __init__(self, cache: CacheStore):
        self.cache = cache
        self._pending: dict[str, set[date]] = {}
        self._reasons: dict[str, list[str]] = {}
        self._handle: asyncio.Handle | None = None
        self._flushed = asyncio.Event()
        self.flush_count = 0

    def enqueue(self, invalidation: Invalidation) -> None:
        dates = self._pending.setdefault(invalidation.owner_id, set())
        dates.update(invalidation.dates)
        if invalidation.reason:
            self._reasons.setdefault(invalidation.owner_id, []).append(invalidation.reason)

        if self._handle is None:
            self._flushed.clear()
            self._handle = asyncio.get_running_loop().call_soon(self._flush)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _flush(self) -> None:
        pending, self._pending = self._pending, {}
        reasons, self._reasons = self._reasons, {}
        self._handle = None

        for owner_id, dates in pending.items():
            keys = entry_data_keys(owner_id)
            keys.extend(entry_key(owner_id, d) for d in sorted(dates))
            logger.debug(f"Invalidating cache for {owner_id} after {', '.join(reasons.get(owner_id, [])) or 'mutation'}")
            for key in keys:
                self.cache.invalidate(key)

        self.flush_count += 1
        self._flushed.set()

    async def drain(self) -> None:
        """Wait until no invalidation is queued."""
        while self._handle is not None:
            await self._flushed.wait()

    def cancel(self) -> None:
        """Drop anything queued without running it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending.clear()
        self._reasons.clear()
        self._flushed.set()
