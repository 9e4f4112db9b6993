"""Consecutive-day streak calculation."""

from datetime import date, timedelta
from typing import Iterable

MAX_STREAK = 1000


def calculate_streak(entry_dates: Iterable[date], today: date) -> int:
    """
    Count consecutive days with an entry, walking back from today.

    A missing entry today does not break the streak: counting starts from
    yesterday instead, so the streak survives until the day is over.
    """
    dates = set(entry_dates)
    streak = 0
    check = today

    while streak < MAX_STREAK:
        if check not in dates:
            if check == today and streak == 0:
                check -= timedelta(days=1)
                continue
            break
        streak += 1
        check -= timedelta(days=1)

    return streak
