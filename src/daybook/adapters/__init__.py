"""Adapters - I/O implementations of ports."""

from .file_journal_api import FileJournalApi
from .http_journal_api import HttpJournalApi
from .memory_cache import MemoryQueryCache
from .session_identity import SessionIdentity

__all__ = [
    "FileJournalApi",
    "HttpJournalApi",
    "MemoryQueryCache",
    "SessionIdentity",
]
