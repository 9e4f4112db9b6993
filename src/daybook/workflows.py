"""Shared workflow layer between the CLI and other front ends.

Builds a mutation session for the configured backend and provides the
read helpers that fill the cache the mutations work against.
"""

from datetime import date
from pathlib import Path

from .adapters.file_journal_api import FileJournalApi
from .adapters.http_journal_api import HttpJournalApi
from .adapters.memory_cache import MemoryQueryCache
from .adapters.session_identity import SessionIdentity
from .config import DATA_DIR, Config, Session, load_config
from .coordination.session import MutationSession
from .core.entries import JournalEntry
from .core.keys import entries_key, entry_key, streak_key
from .core.moods import allowed_moods
from .errors import AuthenticationRequired
from .ports.journal_api import JournalApi


def get_journal_api(config: Config, session: Session | None = None) -> JournalApi:
    """Resolve the remote store from config: HTTP when a base URL is set, else local files."""
    if config.api_base_url:
        return HttpJournalApi(config, session)
    if config.data_dir:
        return FileJournalApi(Path(config.data_dir).expanduser(), today=config.today)
    return FileJournalApi(DATA_DIR, today=config.today)


def build_session(
    config: Config | None = None,
    session: Session | None = None,
    api: JournalApi | None = None,
) -> MutationSession:
    """Create a mutation session wired to the configured backend."""
    config = config or load_config()
    session = session or Session.load()
    return MutationSession(
        api=api or get_journal_api(config, session),
        cache=MemoryQueryCache(),
        identity=SessionIdentity(session),
        moods=allowed_moods(config.extra_moods),
        recompute_streak=config.recompute_streak,
    )


def current_owner(mutation_session: MutationSession) -> str:
    """Owner id of the session, or raise if nobody is signed in."""
    owner_id = mutation_session.coordinator.identity.current_owner_id()
    if not owner_id:
        raise AuthenticationRequired()
    return owner_id


async def fetch_entry(mutation_session: MutationSession, entry_date: date) -> JournalEntry | None:
    """Read one day from the remote store into the cache."""
    owner_id = current_owner(mutation_session)
    entry = await mutation_session.api.read_entry_by_date(owner_id, entry_date)
    mutation_session.cache.set(entry_key(owner_id, entry_date), entry)
    return entry


async def fetch_entries(mutation_session: MutationSession) -> list[JournalEntry]:
    """Read all entries from the remote store into the cache."""
    owner_id = current_owner(mutation_session)
    entries = await mutation_session.api.list_entries(owner_id)
    mutation_session.cache.set(entries_key(owner_id), entries)
    for entry in entries:
        mutation_session.cache.set(entry_key(owner_id, entry.entry_date), entry)
    return entries


def cached_entry(mutation_session: MutationSession, entry_date: date) -> JournalEntry | None:
    return mutation_session.cache.get(entry_key(current_owner(mutation_session), entry_date))


def cached_streak(mutation_session: MutationSession) -> int | None:
    return mutation_session.cache.get(streak_key(current_owner(mutation_session)))
