"""Mood markers attached to individual statements."""

from typing import Iterable

MOOD_EMOJIS = ("😊", "🙏", "🌟", "💪", "🧘")


def allowed_moods(extra: Iterable[str] = ()) -> tuple[str, ...]:
    """Default mood markers followed by any configured extras, without duplicates."""
    moods = list(MOOD_EMOJIS)
    for mood in extra:
        if mood and mood not in moods:
            moods.append(mood)
    return tuple(moods)


def reindex_after_delete(moods: dict[int, str], deleted_index: int) -> dict[int, str]:
    """
    Shift moods down after the statement at `deleted_index` is removed.

    The deleted statement's mood is dropped; moods for later statements
    follow their statement to its new index.
    """
    shifted = {}
    for index, mood in moods.items():
        if index < deleted_index:
            shifted[index] = mood
        elif index > deleted_index:
            shifted[index - 1] = mood
    return shifted


def prune_moods(moods: dict[int, str], statement_count: int) -> dict[int, str]:
    """Drop moods whose index no longer points at a statement."""
    return {i: m for i, m in moods.items() if 0 <= i < statement_count}
