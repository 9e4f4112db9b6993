"""Entry mutation coordinator.

Every mutation follows the same path: stamp a version, take the entry's
lock, write the optimistic result to the cache, call the remote store, then
either commit (and schedule streak recomputation plus cache invalidation) or
roll the cache back. Cache writes and rollbacks only happen while the
attempt's stamp is still the newest for its key; otherwise a later mutation
owns the cache state and the stale outcome is discarded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable

from daybook.core import entries as transforms
from daybook.core.entries import (
    JournalEntry,
    synthesize_entry,
    validate_index,
    validate_mood,
    validate_statement,
)
from daybook.core.keys import EntryKey, QueryKey, entries_key, entry_key, total_count_key
from daybook.core.moods import MOOD_EMOJIS
from daybook.errors import AuthenticationRequired, DaybookError, RemoteFailure, StaleOptimisticState
from daybook.ports.cache_store import CacheStore
from daybook.ports.identity import IdentityProvider
from daybook.ports.journal_api import JournalApi

from .invalidation import Invalidation, InvalidationScheduler
from .locks import LockRegistry, MutationKind
from .recompute import StreakRecomputation
from .versions import Attempt, VersionTracker

logger = logging.getLogger(__name__)

# Passed as `mood` to edit_statement: keep whatever mood the statement has.
UNSET: Any = object()


class KeyState(Enum):
    """Lifecycle of a key while a mutation holds its lock."""

    IDLE = "idle"
    LOCKED = "locked"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"


@dataclass
class _Plan:
    kind: MutationKind
    entry_date: date
    optimistic: Callable[[JournalEntry | None, Attempt, Any], JournalEntry | None]
    remote: Callable[[str, Any], Awaitable[Any]]
    prepare: Callable[[str, JournalEntry | None], Awaitable[Any]] | None = None
    commit_result: bool = False
    removes_from_lists: bool = False


@dataclass
class _ListRemoval:
    items: dict[QueryKey, list[tuple[int, Any]]] = field(default_factory=dict)
    decremented_count: bool = False


class EntryMutationCoordinator:
    """Applies statement, mood and entry mutations with optimistic cache updates."""

    def __init__(
        self,
        api: JournalApi,
        cache: CacheStore,
        identity: IdentityProvider,
        locks: LockRegistry | None = None,
        versions: VersionTracker | None = None,
        scheduler: InvalidationScheduler | None = None,
        recompute: StreakRecomputation | None = None,
        moods: tuple[str, ...] = MOOD_EMOJIS,
    ):
        self.api = api
        self.cache = cache
        self.identity = identity
        self.locks = locks or LockRegistry()
        self.versions = versions or VersionTracker()
        self.scheduler = scheduler or InvalidationScheduler(cache)
        self.recompute = recompute or StreakRecomputation(api, cache)
        self.moods = moods
        self._states: dict[EntryKey, KeyState] = {}
        self._followups: set[asyncio.Task] = set()
        # Keys whose cached state may include writes of a failed, superseded attempt.
        self._unconfirmed: set[EntryKey] = set()

    def state(self, key: EntryKey) -> KeyState:
        return self._states.get(key, KeyState.IDLE)

    # ============== Mutations ==============

    async def append_statement(
        self, entry_date: date, statement: str, mood: str | None = None
    ) -> JournalEntry | None:
        """Add a statement to the day's entry, creating the entry if needed."""
        owner_id = self._require_owner()
        statement = validate_statement(statement)
        mood = validate_mood(mood, self.moods)

        def optimistic(entry: JournalEntry | None, attempt: Attempt, _) -> JournalEntry:
            if entry is None:
                return synthesize_entry(owner_id, entry_date, statement, mood, attempt.version)
            return transforms.append_statement(entry, statement, mood)

        return await self._run(
            owner_id,
            _Plan(
                kind=MutationKind.APPEND_STATEMENT,
                entry_date=entry_date,
                optimistic=optimistic,
                remote=lambda owner, _: self.api.append_statement(owner, entry_date, statement, mood),
                commit_result=True,
            ),
        )

    async def edit_statement(self, entry_date: date, index: int, statement: str, mood: Any = UNSET) -> None:
        """
        Replace the statement at `index`.

        Without an explicit `mood` the statement keeps its current mood, read
        from the cache or, if the day is not cached, from the remote store.
        Passing `mood=None` clears it.
        """
        owner_id = self._require_owner()
        index = validate_index(index)
        statement = validate_statement(statement)
        if mood is not UNSET:
            mood = validate_mood(mood, self.moods)

        async def resolve(owner: str, snapshot: JournalEntry | None) -> str | None:
            if mood is not UNSET:
                return mood
            return await self._resolve_mood(owner, entry_date, index, snapshot)

        def optimistic(entry: JournalEntry | None, _, resolved: str | None) -> JournalEntry | None:
            if entry is None:
                return None
            return transforms.edit_statement(entry, index, statement, resolved)

        await self._run(
            owner_id,
            _Plan(
                kind=MutationKind.EDIT_STATEMENT,
                entry_date=entry_date,
                optimistic=optimistic,
                remote=lambda owner, resolved: self.api.edit_statement(
                    owner, entry_date, index, statement, resolved
                ),
                prepare=resolve,
            ),
        )

    async def delete_statement(self, entry_date: date, index: int) -> None:
        """Remove the statement at `index`. Later moods shift down with their statements."""
        owner_id = self._require_owner()
        index = validate_index(index)

        def optimistic(entry: JournalEntry | None, *_) -> JournalEntry | None:
            if entry is None:
                return None
            return transforms.delete_statement(entry, index)

        await self._run(
            owner_id,
            _Plan(
                kind=MutationKind.DELETE_STATEMENT,
                entry_date=entry_date,
                optimistic=optimistic,
                remote=lambda owner, _: self.api.delete_statement(owner, entry_date, index),
            ),
        )

    async def delete_entry(self, entry_date: date) -> None:
        """Delete the whole day. Cached lists drop the date immediately."""
        owner_id = self._require_owner()
        await self._run(
            owner_id,
            _Plan(
                kind=MutationKind.DELETE_ENTRY,
                entry_date=entry_date,
                optimistic=lambda *_: None,
                remote=lambda owner, _: self.api.delete_entry(owner, entry_date),
                removes_from_lists=True,
            ),
        )

    async def set_mood(self, entry_date: date, index: int, mood: str | None) -> None:
        """Set or clear the mood of one statement without touching its text."""
        owner_id = self._require_owner()
        index = validate_index(index)
        mood = validate_mood(mood, self.moods)

        def optimistic(entry: JournalEntry | None, *_) -> JournalEntry | None:
            if entry is None:
                return None
            return transforms.set_mood(entry, index, mood)

        await self._run(
            owner_id,
            _Plan(
                kind=MutationKind.SET_MOOD,
                entry_date=entry_date,
                optimistic=optimistic,
                remote=lambda owner, _: self.api.set_mood(owner, entry_date, index, mood),
            ),
        )

    # ============== Lifecycle ==============

    async def settle(self) -> None:
        """Wait for streak recomputation and queued invalidations to finish."""
        while self._followups:
            await asyncio.gather(*list(self._followups), return_exceptions=True)
        await self.scheduler.drain()

    # ============== Internals ==============

    def _require_owner(self) -> str:
        owner_id = self.identity.current_owner_id()
        if not owner_id:
            raise AuthenticationRequired()
        return owner_id

    async def _resolve_mood(
        self, owner_id: str, entry_date: date, index: int, cached: JournalEntry | None
    ) -> str | None:
        if cached is not None:
            return cached.mood_at(index)
        logger.debug(f"No cached entry for {entry_date.isoformat()}, reading mood from remote")
        entry = await self.api.read_entry_by_date(owner_id, entry_date)
        return entry.mood_at(index) if entry else None

    async def _run(self, owner_id: str, plan: _Plan) -> Any:
        key = EntryKey(owner_id, plan.entry_date)
        cache_key = entry_key(owner_id, plan.entry_date)
        attempt = self.versions.stamp(key)

        async with self.locks.hold(key, plan.kind):
            self._states[key] = KeyState.LOCKED
            try:
                had_entry = self.cache.has(cache_key)
                snapshot = self.cache.get(cache_key)
                removal: _ListRemoval | None = None

                try:
                    context = await plan.prepare(owner_id, snapshot) if plan.prepare else None
                    if self._settle(attempt, "optimistic write"):
                        updated = plan.optimistic(snapshot, attempt, context)
                        # Nothing cached and nothing to show: leave the slot absent.
                        if had_entry or updated is not None or plan.removes_from_lists:
                            self.cache.set(cache_key, updated)
                        if plan.removes_from_lists:
                            removal = self._remove_from_lists(owner_id, plan.entry_date)
                    result = await plan.remote(owner_id, context)
                except (Exception, asyncio.CancelledError) as e:
                    self._states[key] = KeyState.ROLLING_BACK
                    if self._settle(attempt, "rollback"):
                        self._restore(cache_key, had_entry, snapshot)
                        if removal is not None:
                            self._restore_lists(owner_id, removal)
                        logger.warning(f"{plan.kind.value} on {key} failed, cache rolled back: {e}")
                        if key in self._unconfirmed:
                            # The snapshot may still hold writes of an earlier failed attempt.
                            self._unconfirmed.discard(key)
                            self._refetch(owner_id, plan)
                    else:
                        self._unconfirmed.add(key)
                        self._refetch(owner_id, plan)
                    if isinstance(e, (asyncio.CancelledError, DaybookError)):
                        raise
                    raise RemoteFailure(plan.kind.value, e) from e

                self._states[key] = KeyState.COMMITTING
                if attempt.is_current():
                    self._unconfirmed.discard(key)
                if plan.commit_result and result is not None and self._settle(attempt, "commit"):
                    self.cache.set(cache_key, result)
            finally:
                self._states.pop(key, None)

        logger.debug(f"{plan.kind.value} on {key} v{attempt.version} succeeded")
        self._schedule_followup(owner_id, plan)
        return result

    def _settle(self, attempt: Attempt, action: str) -> bool:
        """Single point where a superseded attempt's outcome is discarded."""
        if attempt.is_current():
            return True
        logger.debug(
            f"{StaleOptimisticState.__name__}: skipping {action} for {attempt.key} "
            f"v{attempt.version}, {attempt.superseded_by} newer attempt(s)"
        )
        return False

    def _restore(self, cache_key: QueryKey, had_entry: bool, snapshot: JournalEntry | None) -> None:
        if had_entry:
            self.cache.set(cache_key, snapshot)
        else:
            self.cache.remove(cache_key)

    def _refetch(self, owner_id: str, plan: _Plan) -> None:
        self.scheduler.enqueue(
            Invalidation(
                owner_id=owner_id,
                dates=frozenset({plan.entry_date}),
                reason=f"{plan.kind.value} failed",
            )
        )

    def _list_keys(self, owner_id: str) -> list[QueryKey]:
        prefix = entries_key(owner_id)
        return [
            key
            for key in self.cache.keys_under(prefix)
            if not (len(key) > len(prefix) and isinstance(key[-1], tuple) and key[-1][0] == "date")
        ]

    def _remove_from_lists(self, owner_id: str, entry_date: date) -> _ListRemoval:
        """Drop a deleted day from every cached list of the owner's entries, then mark them stale."""
        removal = _ListRemoval()
        count_key = total_count_key(owner_id)
        for key in self._list_keys(owner_id):
            value = self.cache.get(key)
            if key == count_key or not isinstance(value, list):
                continue
            dropped = [(i, item) for i, item in enumerate(value) if _item_date(item) == entry_date]
            if dropped:
                removal.items[key] = dropped
                self.cache.set(key, [item for item in value if _item_date(item) != entry_date])

        count = self.cache.get(count_key)
        if removal.items and isinstance(count, int) and count > 0:
            self.cache.set(count_key, count - 1)
            removal.decremented_count = True

        for key in self._list_keys(owner_id):
            self.cache.invalidate(key, exact=True)
        return removal

    def _restore_lists(self, owner_id: str, removal: _ListRemoval) -> None:
        """Put back only the items this deletion removed. Other days' changes stay."""
        for key, dropped in removal.items.items():
            value = self.cache.get(key)
            if not isinstance(value, list):
                continue
            restored = list(value)
            for position, item in dropped:
                restored.insert(min(position, len(restored)), item)
            self.cache.set(key, restored)

        count_key = total_count_key(owner_id)
        count = self.cache.get(count_key)
        if removal.decremented_count and isinstance(count, int):
            self.cache.set(count_key, count + 1)

    def _schedule_followup(self, owner_id: str, plan: _Plan) -> None:
        async def followup() -> None:
            await self.recompute.on_mutation_success(owner_id)
            self.scheduler.enqueue(
                Invalidation(owner_id=owner_id, dates=frozenset({plan.entry_date}), reason=plan.kind.value)
            )

        task = asyncio.create_task(followup())
        self._followups.add(task)
        task.add_done_callback(self._followups.discard)


def _item_date(item: Any) -> date | None:
    if isinstance(item, JournalEntry):
        return item.entry_date
    if isinstance(item, date):
        return item
    return None
