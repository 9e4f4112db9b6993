"""Functional core - entry model and pure transforms with no I/O."""

from .entries import JournalEntry, synthesize_entry
from .keys import EntryKey, entries_key, entry_key, streak_key
from .moods import MOOD_EMOJIS, allowed_moods
from .streak import calculate_streak

__all__ = [
    # Entries
    "JournalEntry",
    "synthesize_entry",
    # Keys
    "EntryKey",
    "entries_key",
    "entry_key",
    "streak_key",
    # Moods
    "MOOD_EMOJIS",
    "allowed_moods",
    # Streak
    "calculate_streak",
]
