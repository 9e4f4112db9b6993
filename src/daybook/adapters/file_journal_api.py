"""File-based journal store adapter."""

import json
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Callable

from daybook.core.entries import JournalEntry, utcnow
from daybook.core.moods import reindex_after_delete
from daybook.core.streak import calculate_streak

logger = logging.getLogger(__name__)


class FileJournalApi:
    """
    File-based journal store.

    Implements JournalApi protocol. Each owner gets a directory and each day
    a JSON document. Used as the authoritative store in local mode.
    """

    def __init__(self, data_dir: Path | str, today: Callable[[], date] = date.today):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._today = today

    def _owner_dir(self, owner_id: str) -> Path:
        return self.data_dir / owner_id

    def _path_for_date(self, owner_id: str, entry_date: date) -> Path:
        """Get the file path for an owner's entry on a given date."""
        return self._owner_dir(owner_id) / f"{entry_date.isoformat()}.json"

    def _load(self, owner_id: str, entry_date: date) -> JournalEntry | None:
        path = self._path_for_date(owner_id, entry_date)
        if not path.exists():
            return None
        return JournalEntry.from_dict(json.loads(path.read_text()))

    def _save(self, entry: JournalEntry) -> None:
        path = self._path_for_date(entry.owner_id, entry.entry_date)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(entry.to_dict(), ensure_ascii=False, indent=2))

    def _require(self, owner_id: str, entry_date: date, index: int) -> JournalEntry:
        entry = self._load(owner_id, entry_date)
        if entry is None:
            raise LookupError(f"No entry for {entry_date.isoformat()}")
        if index >= len(entry.statements):
            raise IndexError(f"No statement at index {index} for {entry_date.isoformat()}")
        return entry

    async def append_statement(
        self, owner_id: str, entry_date: date, statement: str, mood: str | None = None
    ) -> JournalEntry | None:
        """Append a statement, creating the entry if needed."""
        entry = self._load(owner_id, entry_date)
        now = utcnow()
        if entry is None:
            entry = JournalEntry(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                entry_date=entry_date,
                created_at=now,
            )
        statements = (*entry.statements, statement)
        moods = dict(entry.moods)
        if mood:
            moods[len(statements) - 1] = mood
        entry = JournalEntry(
            id=entry.id,
            owner_id=owner_id,
            entry_date=entry_date,
            statements=statements,
            moods=moods,
            created_at=entry.created_at,
            updated_at=now,
        )
        self._save(entry)
        return entry

    async def edit_statement(
        self, owner_id: str, entry_date: date, index: int, statement: str, mood: str | None = None
    ) -> None:
        entry = self._require(owner_id, entry_date, index)
        statements = list(entry.statements)
        statements[index] = statement
        moods = dict(entry.moods)
        if mood:
            moods[index] = mood
        else:
            moods.pop(index, None)
        self._save(self._updated(entry, tuple(statements), moods))

    async def delete_statement(self, owner_id: str, entry_date: date, index: int) -> None:
        """Delete a statement. The entry file is removed once it is empty."""
        entry = self._require(owner_id, entry_date, index)
        statements = entry.statements[:index] + entry.statements[index + 1 :]
        if not statements:
            self._path_for_date(owner_id, entry_date).unlink()
            return
        self._save(self._updated(entry, statements, reindex_after_delete(entry.moods, index)))

    async def delete_entry(self, owner_id: str, entry_date: date) -> None:
        path = self._path_for_date(owner_id, entry_date)
        if path.exists():
            path.unlink()
        else:
            logger.debug(f"No entry to delete for {owner_id} on {entry_date.isoformat()}")

    async def set_mood(self, owner_id: str, entry_date: date, index: int, mood: str | None) -> None:
        entry = self._require(owner_id, entry_date, index)
        moods = dict(entry.moods)
        if mood:
            moods[index] = mood
        else:
            moods.pop(index, None)
        self._save(self._updated(entry, entry.statements, moods))

    async def read_entry_by_date(self, owner_id: str, entry_date: date) -> JournalEntry | None:
        return self._load(owner_id, entry_date)

    async def list_entries(self, owner_id: str) -> list[JournalEntry]:
        """Read all entries for an owner, newest first."""
        entries = []
        for entry_date in self.list_dates(owner_id):
            entry = self._load(owner_id, entry_date)
            if entry and entry.statements:
                entries.append(entry)
        return sorted(entries, key=lambda e: e.entry_date, reverse=True)

    async def recompute_derived_aggregate(self, owner_id: str) -> int:
        """Recalculate the owner's current streak from stored entries."""
        entries = await self.list_entries(owner_id)
        return calculate_streak((e.entry_date for e in entries), self._today())

    def list_dates(self, owner_id: str) -> list[date]:
        """List dates with entries for an owner."""
        owner_dir = self._owner_dir(owner_id)
        if not owner_dir.exists():
            return []
        dates = []
        for path in owner_dir.glob("*.json"):
            try:
                dates.append(date.fromisoformat(path.stem))
            except ValueError:
                continue
        return sorted(dates)

    @staticmethod
    def _updated(entry: JournalEntry, statements: tuple[str, ...], moods: dict[int, str]) -> JournalEntry:
        return JournalEntry(
            id=entry.id,
            owner_id=entry.owner_id,
            entry_date=entry.entry_date,
            statements=statements,
            moods=moods,
            created_at=entry.created_at,
            updated_at=utcnow(),
        )
