"""Tests for the per-entry lock registry."""

import asyncio
from datetime import date

import pytest

from daybook.coordination.locks import LockRegistry, MutationKind
from daybook.core.keys import EntryKey
from daybook.errors import LockReleaseError

KEY = EntryKey("user-1", date(2025, 1, 15))
OTHER_KEY = EntryKey("user-1", date(2025, 1, 16))


@pytest.fixture
def locks():
    return LockRegistry()


class TestLockRegistry:
    @pytest.mark.asyncio
    async def test_acquire_free_key(self, locks):
        handle = await locks.acquire(KEY, MutationKind.APPEND_STATEMENT)

        assert locks.is_locked(KEY)
        assert locks.active(KEY) is handle
        assert handle.kind == MutationKind.APPEND_STATEMENT

        locks.release(handle)
        assert not locks.is_locked(KEY)
        assert handle.done.is_set()

    @pytest.mark.asyncio
    async def test_waits_for_release_not_for_time(self, locks):
        first = await locks.acquire(KEY, MutationKind.EDIT_STATEMENT)
        waiter = asyncio.create_task(locks.acquire(KEY, MutationKind.DELETE_STATEMENT))

        await asyncio.sleep(0.05)
        assert not waiter.done()
        assert locks.active(KEY) is first

        locks.release(first)
        second = await waiter
        assert locks.active(KEY) is second
        locks.release(second)

    @pytest.mark.asyncio
    async def test_fifo_per_key(self, locks):
        order = []

        async def mutate(label):
            async with locks.hold(KEY, MutationKind.APPEND_STATEMENT):
                order.append(f"{label}-start")
                await asyncio.sleep(0.01 if label == "a" else 0)
                order.append(f"{label}-end")

        await asyncio.gather(mutate("a"), mutate("b"), mutate("c"))

        assert order == ["a-start", "a-end", "b-start", "b-end", "c-start", "c-end"]

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self, locks):
        held = await locks.acquire(KEY, MutationKind.APPEND_STATEMENT)

        other = await asyncio.wait_for(locks.acquire(OTHER_KEY, MutationKind.APPEND_STATEMENT), timeout=1)

        assert locks.is_locked(KEY)
        assert locks.is_locked(OTHER_KEY)
        assert len(locks) == 2
        locks.release(held)
        locks.release(other)

    @pytest.mark.asyncio
    async def test_double_release_raises(self, locks):
        handle = await locks.acquire(KEY, MutationKind.SET_MOOD)
        locks.release(handle)

        with pytest.raises(LockReleaseError):
            locks.release(handle)

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self, locks):
        with pytest.raises(RuntimeError):
            async with locks.hold(KEY, MutationKind.DELETE_ENTRY):
                raise RuntimeError("boom")

        assert not locks.is_locked(KEY)
        handle = await asyncio.wait_for(locks.acquire(KEY, MutationKind.DELETE_ENTRY), timeout=1)
        locks.release(handle)

    @pytest.mark.asyncio
    async def test_cancelled_waiter_passes_turn_on(self, locks):
        first = await locks.acquire(KEY, MutationKind.APPEND_STATEMENT)
        cancelled = asyncio.create_task(locks.acquire(KEY, MutationKind.APPEND_STATEMENT))
        last = asyncio.create_task(locks.acquire(KEY, MutationKind.APPEND_STATEMENT))
        await asyncio.sleep(0)

        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled
        assert not last.done()

        locks.release(first)
        handle = await asyncio.wait_for(last, timeout=1)
        assert locks.active(KEY) is handle
        locks.release(handle)
        await locks.close()

    @pytest.mark.asyncio
    async def test_close_clears_bookkeeping(self, locks):
        await locks.acquire(KEY, MutationKind.APPEND_STATEMENT)

        await locks.close()

        assert not locks.is_locked(KEY)
        assert len(locks) == 0
