"""Per-session wiring of the mutation layer."""

import logging

from daybook.core.keys import EntryKey
from daybook.core.moods import MOOD_EMOJIS
from daybook.ports.cache_store import CacheStore
from daybook.ports.identity import IdentityProvider
from daybook.ports.journal_api import JournalApi

from .coordinator import EntryMutationCoordinator, KeyState
from .invalidation import InvalidationScheduler
from .locks import LockRegistry
from .mutations import EntryMutations
from .recompute import StreakRecomputation
from .versions import VersionTracker

logger = logging.getLogger(__name__)


class MutationSession:
    """
    Owns the locks, version stamps and schedulers for one application session.

    Build one per signed-in session and close it on sign-out so no
    coordination state leaks into the next session.
    """

    def __init__(
        self,
        api: JournalApi,
        cache: CacheStore,
        identity: IdentityProvider,
        moods: tuple[str, ...] = MOOD_EMOJIS,
        recompute_streak: bool = True,
    ):
        self.api = api
        self.cache = cache
        self.locks = LockRegistry()
        self.versions = VersionTracker()
        self.scheduler = InvalidationScheduler(cache)
        self.recompute = StreakRecomputation(api, cache, enabled=recompute_streak)
        self.coordinator = EntryMutationCoordinator(
            api,
            cache,
            identity,
            locks=self.locks,
            versions=self.versions,
            scheduler=self.scheduler,
            recompute=self.recompute,
            moods=moods,
        )
        self.mutations = EntryMutations(self.coordinator)
        self.closed = False

    def state(self, key: EntryKey) -> KeyState:
        return self.coordinator.state(key)

    async def settle(self) -> None:
        """Wait for in-flight mutations and everything they scheduled."""
        await self.mutations.wait()
        await self.coordinator.settle()

    async def close(self) -> None:
        """Finish outstanding work and drop all coordination state."""
        if self.closed:
            return
        await self.settle()
        await self.locks.close()
        self.versions.clear()
        self.scheduler.cancel()
        self.closed = True
        logger.debug("Mutation session closed")

    async def __aenter__(self) -> "MutationSession":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
