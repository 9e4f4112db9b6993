"""Remote journal store interface."""

from datetime import date
from typing import Protocol

from daybook.core.entries import JournalEntry


class JournalApi(Protocol):
    """Interface for the authoritative remote store. All calls are async and may fail."""

    async def append_statement(
        self, owner_id: str, entry_date: date, statement: str, mood: str | None = None
    ) -> JournalEntry | None:
        """Append a statement, creating the entry if needed. Returns the updated entry."""
        ...

    async def edit_statement(
        self, owner_id: str, entry_date: date, index: int, statement: str, mood: str | None = None
    ) -> None:
        """Replace the statement at an index. `mood` is stored as given."""
        ...

    async def delete_statement(self, owner_id: str, entry_date: date, index: int) -> None:
        """Delete a statement. Deletes the entry if it becomes empty."""
        ...

    async def delete_entry(self, owner_id: str, entry_date: date) -> None:
        """Delete a whole day's entry."""
        ...

    async def set_mood(self, owner_id: str, entry_date: date, index: int, mood: str | None) -> None:
        """Set or clear the mood for one statement."""
        ...

    async def read_entry_by_date(self, owner_id: str, entry_date: date) -> JournalEntry | None:
        """Read one entry. Returns None if not found."""
        ...

    async def list_entries(self, owner_id: str) -> list[JournalEntry]:
        """Read all entries, newest first."""
        ...

    async def recompute_derived_aggregate(self, owner_id: str) -> int:
        """Recalculate and return the owner's current streak."""
        ...
