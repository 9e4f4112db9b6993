"""Per-entry mutual exclusion for mutations."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator

from daybook.core.keys import EntryKey
from daybook.errors import LockReleaseError

logger = logging.getLogger(__name__)


class MutationKind(Enum):
    """Kinds of entry mutations. Values double as log and error labels."""

    APPEND_STATEMENT = "append_statement"
    EDIT_STATEMENT = "edit_statement"
    DELETE_STATEMENT = "delete_statement"
    DELETE_ENTRY = "delete_entry"
    SET_MOOD = "set_mood"


@dataclass
class LockHandle:
    """A lock held (or queued for) on one entry key."""

    key: EntryKey
    kind: MutationKind
    done: asyncio.Event = field(default_factory=asyncio.Event)
    requested_at: float = field(default_factory=time.monotonic)
    released: bool = False


class LockRegistry:
    """
    FIFO mutex per entry key.

    Each acquisition chains onto the completion signal of the lock registered
    before it for the same key, and installs its own signal which is set only
    by `release`. Keys never block each other.
    """

    def __init__(self):
        self._tails: dict[EntryKey, LockHandle] = {}
        self._active: dict[EntryKey, LockHandle] = {}
        self._forwarders: set[asyncio.Task] = set()

    async def acquire(self, key: EntryKey, kind: MutationKind) -> LockHandle:
        """Wait for every earlier lock on `key`, then hold the lock."""
        handle = LockHandle(key=key, kind=kind)
        previous = self._tails.get(key)
        self._tails[key] = handle

        if previous is not None and not previous.done.is_set():
            logger.debug(f"{kind.value} on {key} waiting for {previous.kind.value}")
            try:
                await previous.done.wait()
            except asyncio.CancelledError:
                # Never held: pass the turn on once the predecessor finishes.
                self._forward(previous, handle)
                raise

        self._active[key] = handle
        return handle

    def release(self, handle: LockHandle) -> None:
        """Signal completion and let the next queued mutation on the key proceed."""
        if handle.released:
            raise LockReleaseError(f"Lock for {handle.key} ({handle.kind.value}) released twice")
        handle.released = True
        if self._active.get(handle.key) is handle:
            del self._active[handle.key]
        if self._tails.get(handle.key) is handle:
            del self._tails[handle.key]
        handle.done.set()

    @asynccontextmanager
    async def hold(self, key: EntryKey, kind: MutationKind) -> AsyncIterator[LockHandle]:
        """Hold the lock for the duration of the block, releasing it on every exit path."""
        handle = await self.acquire(key, kind)
        try:
            yield handle
        finally:
            self.release(handle)

    def active(self, key: EntryKey) -> LockHandle | None:
        return self._active.get(key)

    def is_locked(self, key: EntryKey) -> bool:
        return key in self._active

    def __len__(self) -> int:
        return len(self._active)

    def _forward(self, previous: LockHandle, handle: LockHandle) -> None:
        async def release_after() -> None:
            await previous.done.wait()
            self.release(handle)

        task = asyncio.create_task(release_after())
        self._forwarders.add(task)
        task.add_done_callback(self._forwarders.discard)

    async def close(self) -> None:
        """Wait for pending hand-offs, then drop all bookkeeping."""
        if self._forwarders:
            await asyncio.gather(*self._forwarders, return_exceptions=True)
        if self._active:
            logger.warning(f"Closing lock registry with {len(self._active)} locks still held")
        self._tails.clear()
        self._active.clear()
