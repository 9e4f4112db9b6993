"""Entry keys and cache query keys."""

from dataclasses import dataclass
from datetime import date

ROOT = ("daybook",)

QueryKey = tuple


@dataclass(frozen=True)
class EntryKey:
    """Identity of one owner's entry for one day. Locks and stamps are keyed by it."""

    owner_id: str
    entry_date: date

    def __str__(self) -> str:
        return f"{self.owner_id}:{self.entry_date.isoformat()}"


def entries_key(owner_id: str) -> QueryKey:
    """List of all entries for an owner, newest first."""
    return (*ROOT, "entries", owner_id)


def entry_key(owner_id: str, entry_date: date) -> QueryKey:
    return (*entries_key(owner_id), ("date", entry_date.isoformat()))


def entries_by_month_key(owner_id: str, year: int, month: int) -> QueryKey:
    """Dates with entries for a calendar month."""
    return (*entries_key(owner_id), ("month", year, month))


def total_count_key(owner_id: str) -> QueryKey:
    return (*entries_key(owner_id), "total_count")


def streak_key(owner_id: str) -> QueryKey:
    return (*ROOT, "streaks", owner_id)


def entry_data_keys(owner_id: str, entry_date: date | None = None) -> list[QueryKey]:
    """Keys to invalidate after an entry mutation."""
    keys = [entries_key(owner_id)]
    if entry_date is not None:
        keys.append(entry_key(owner_id, entry_date))
    keys.append(streak_key(owner_id))
    keys.append(total_count_key(owner_id))
    return keys


def is_prefix(prefix: QueryKey, key: QueryKey) -> bool:
    """Whether `key` falls under `prefix` in the key hierarchy."""
    return key[: len(prefix)] == prefix
