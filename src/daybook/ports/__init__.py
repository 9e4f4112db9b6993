"""Ports - interfaces/protocols for external dependencies."""

from .cache_store import CacheStore
from .identity import IdentityProvider
from .journal_api import JournalApi

__all__ = [
    "CacheStore",
    "IdentityProvider",
    "JournalApi",
]
