"""Journal entry model and the pure transforms applied to it."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone

from daybook.core.moods import prune_moods, reindex_after_delete
from daybook.errors import InvalidInput


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JournalEntry:
    """One owner's gratitude entry for a calendar day."""

    id: str
    owner_id: str
    entry_date: date
    statements: tuple[str, ...] = ()
    moods: dict[int, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_temporary(self) -> bool:
        """True for entries synthesized locally and not yet confirmed remotely."""
        return self.id.startswith("temp-")

    def mood_at(self, index: int) -> str | None:
        return self.moods.get(index)

    def to_dict(self) -> dict:
        """Serialize to the remote wire format."""
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "entry_date": self.entry_date.isoformat(),
            "statements": list(self.statements),
            "moods": {str(i): m for i, m in sorted(self.moods.items())},
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        """Parse the remote wire format. Moods pointing past the statements are dropped."""
        statements = tuple(data.get("statements") or ())
        raw_moods = data.get("moods") or {}
        moods = {int(i): m for i, m in raw_moods.items() if m}
        return cls(
            id=str(data["id"]),
            owner_id=str(data["user_id"]),
            entry_date=date.fromisoformat(data["entry_date"]),
            statements=statements,
            moods=prune_moods(moods, len(statements)),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return utcnow()
    return datetime.fromisoformat(value)


# ============== Validation ==============


def validate_statement(statement: str) -> str:
    """Return the statement stripped of surrounding whitespace, or raise if empty."""
    if not isinstance(statement, str) or not statement.strip():
        raise InvalidInput("Statement cannot be empty", field_name="statement")
    return statement.strip()


def validate_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise InvalidInput("Statement index must be a non-negative integer", field_name="statement_index")
    return index


def validate_mood(mood: str | None, allowed: tuple[str, ...]) -> str | None:
    if mood is None:
        return None
    if mood not in allowed:
        raise InvalidInput(f"Unknown mood: {mood}", field_name="mood")
    return mood


# ============== Optimistic transforms ==============


def synthesize_entry(
    owner_id: str,
    entry_date: date,
    statement: str,
    mood: str | None,
    version: int,
    now: datetime | None = None,
) -> JournalEntry:
    """Minimal local entry for the first statement of a day."""
    now = now or utcnow()
    return JournalEntry(
        id=f"temp-{int(now.timestamp() * 1000)}-{version}",
        owner_id=owner_id,
        entry_date=entry_date,
        statements=(statement,),
        moods={0: mood} if mood else {},
        created_at=now,
        updated_at=now,
    )


def append_statement(entry: JournalEntry, statement: str, mood: str | None = None) -> JournalEntry:
    statements = (*entry.statements, statement)
    moods = dict(entry.moods)
    if mood:
        moods[len(statements) - 1] = mood
    return replace(entry, statements=statements, moods=moods, updated_at=utcnow())


def edit_statement(entry: JournalEntry, index: int, text: str, mood: str | None) -> JournalEntry:
    """Replace the statement at `index`; `mood` becomes its mood (None clears it)."""
    if index >= len(entry.statements):
        return entry
    statements = list(entry.statements)
    statements[index] = text
    moods = dict(entry.moods)
    if mood:
        moods[index] = mood
    else:
        moods.pop(index, None)
    return replace(entry, statements=tuple(statements), moods=moods, updated_at=utcnow())


def delete_statement(entry: JournalEntry, index: int) -> JournalEntry | None:
    """Remove the statement at `index`. Returns None when no statements remain."""
    if index >= len(entry.statements):
        return entry
    statements = entry.statements[:index] + entry.statements[index + 1 :]
    if not statements:
        return None
    moods = reindex_after_delete(entry.moods, index)
    return replace(entry, statements=statements, moods=moods, updated_at=utcnow())


def set_mood(entry: JournalEntry, index: int, mood: str | None) -> JournalEntry:
    """Update only the mood mapping at `index`; statements are untouched."""
    if index >= len(entry.statements):
        return entry
    moods = dict(entry.moods)
    if mood:
        moods[index] = mood
    else:
        moods.pop(index, None)
    return replace(entry, moods=moods, updated_at=utcnow())
