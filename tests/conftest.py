"""Shared fixtures: an in-memory remote store whose calls can be delayed, gated or failed."""

import asyncio
from datetime import date

import pytest

from daybook.adapters.memory_cache import MemoryQueryCache
from daybook.coordination.session import MutationSession
from daybook.core import entries as transforms
from daybook.core.entries import JournalEntry
from daybook.core.streak import calculate_streak

OWNER = "user-1"
TODAY = date(2025, 1, 15)


class StaticIdentity:
    def __init__(self, owner_id: str | None = OWNER):
        self.owner_id = owner_id

    def current_owner_id(self) -> str | None:
        return self.owner_id


class FakeJournalApi:
    """In-memory JournalApi. Every call is recorded in `calls`."""

    def __init__(self, today: date = TODAY):
        self.today = today
        self.entries: dict[tuple[str, date], JournalEntry] = {}
        self.calls: list[tuple] = []
        self.gates: dict[str, list[asyncio.Event]] = {}
        self.failures: dict[str, list[BaseException | None]] = {}
        self.recompute_error: Exception | None = None

    def gate(self, op: str) -> asyncio.Event:
        """Make the next call to `op` wait until the returned event is set."""
        event = asyncio.Event()
        self.gates.setdefault(op, []).append(event)
        return event

    def fail(self, op: str, error: BaseException | None) -> None:
        """Queue the outcome of the next call to `op`: raise `error`, or succeed if None."""
        self.failures.setdefault(op, []).append(error)

    def seed(self, entry: JournalEntry) -> None:
        self.entries[(entry.owner_id, entry.entry_date)] = entry

    async def _enter(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        gates = self.gates.get(op)
        if gates:
            await gates.pop(0).wait()
        else:
            await asyncio.sleep(0)
        outcomes = self.failures.get(op)
        if outcomes:
            error = outcomes.pop(0)
            if error is not None:
                raise error

    def _require(self, owner_id: str, entry_date: date, index: int) -> JournalEntry:
        entry = self.entries.get((owner_id, entry_date))
        if entry is None or index >= len(entry.statements):
            raise IndexError(f"No statement at index {index}")
        return entry

    async def append_statement(self, owner_id, entry_date, statement, mood=None):
        await self._enter("append_statement", owner_id, entry_date, statement, mood)
        entry = self.entries.get((owner_id, entry_date))
        if entry is None:
            entry = JournalEntry(id=f"entry-{entry_date.isoformat()}", owner_id=owner_id, entry_date=entry_date)
        entry = transforms.append_statement(entry, statement, mood)
        self.seed(entry)
        return entry

    async def edit_statement(self, owner_id, entry_date, index, statement, mood=None):
        await self._enter("edit_statement", owner_id, entry_date, index, statement, mood)
        entry = self._require(owner_id, entry_date, index)
        self.seed(transforms.edit_statement(entry, index, statement, mood))

    async def delete_statement(self, owner_id, entry_date, index):
        await self._enter("delete_statement", owner_id, entry_date, index)
        entry = transforms.delete_statement(self._require(owner_id, entry_date, index), index)
        if entry is None:
            del self.entries[(owner_id, entry_date)]
        else:
            self.seed(entry)

    async def delete_entry(self, owner_id, entry_date):
        await self._enter("delete_entry", owner_id, entry_date)
        self.entries.pop((owner_id, entry_date), None)

    async def set_mood(self, owner_id, entry_date, index, mood):
        await self._enter("set_mood", owner_id, entry_date, index, mood)
        entry = self._require(owner_id, entry_date, index)
        self.seed(transforms.set_mood(entry, index, mood))

    async def read_entry_by_date(self, owner_id, entry_date):
        await self._enter("read_entry_by_date", owner_id, entry_date)
        return self.entries.get((owner_id, entry_date))

    async def list_entries(self, owner_id):
        await self._enter("list_entries", owner_id)
        owned = [e for (owner, _), e in self.entries.items() if owner == owner_id]
        return sorted(owned, key=lambda e: e.entry_date, reverse=True)

    async def recompute_derived_aggregate(self, owner_id):
        await self._enter("recompute_derived_aggregate", owner_id)
        if self.recompute_error is not None:
            raise self.recompute_error
        dates = [d for (owner, d), e in self.entries.items() if owner == owner_id and e.statements]
        return calculate_streak(dates, self.today)


@pytest.fixture
def api():
    return FakeJournalApi()


@pytest.fixture
def cache():
    return MemoryQueryCache()


@pytest.fixture
def identity():
    return StaticIdentity()


@pytest.fixture
def session(api, cache, identity):
    return MutationSession(api, cache, identity)


@pytest.fixture
def coordinator(session):
    return session.coordinator


def make_entry(statements, moods=None, entry_date=TODAY, owner_id=OWNER, entry_id="entry-1"):
    return JournalEntry(
        id=entry_id,
        owner_id=owner_id,
        entry_date=entry_date,
        statements=tuple(statements),
        moods=dict(moods or {}),
    )
