"""Best-effort recalculation of derived aggregates after a mutation."""

import logging

from daybook.core.keys import streak_key
from daybook.errors import DependentRecomputationFailure
from daybook.ports.cache_store import CacheStore
from daybook.ports.journal_api import JournalApi

logger = logging.getLogger(__name__)


class StreakRecomputation:
    """Recalculates the owner's streak from the remote store and caches it."""

    def __init__(self, api: JournalApi, cache: CacheStore, enabled: bool = True):
        self.api = api
        self.cache = cache
        self.enabled = enabled
        self.failures: list[DependentRecomputationFailure] = []

    async def on_mutation_success(self, owner_id: str) -> None:
        """Recompute the streak. Never raises; failures are logged and recorded."""
        if not self.enabled:
            return
        try:
            streak = await self.api.recompute_derived_aggregate(owner_id)
        except Exception as e:
            failure = DependentRecomputationFailure(f"Streak recalculation failed for {owner_id}: {e}")
            self.failures.append(failure)
            logger.error(str(failure))
            return
        self.cache.set(streak_key(owner_id), streak)
        logger.debug(f"Streak for {owner_id} is now {streak}")
