"""Tests for optimistic version stamps."""

from datetime import date

from daybook.coordination.versions import VersionTracker
from daybook.core.keys import EntryKey

KEY = EntryKey("user-1", date(2025, 1, 15))
OTHER_KEY = EntryKey("user-2", date(2025, 1, 15))


class TestVersionTracker:
    def test_starts_at_one_and_increases(self):
        versions = VersionTracker()
        assert versions.current(KEY) == 0
        assert [versions.next(KEY) for _ in range(3)] == [1, 2, 3]
        assert versions.current(KEY) == 3

    def test_keys_are_independent(self):
        versions = VersionTracker()
        versions.next(KEY)
        versions.next(KEY)
        assert versions.next(OTHER_KEY) == 1

    def test_only_latest_is_current(self):
        versions = VersionTracker()
        first = versions.next(KEY)
        second = versions.next(KEY)

        assert not versions.is_current(KEY, first)
        assert versions.is_current(KEY, second)
        assert not versions.is_current(OTHER_KEY, first)

    def test_attempt_tracks_supersession(self):
        versions = VersionTracker()
        attempt = versions.stamp(KEY)
        assert attempt.is_current()
        assert attempt.superseded_by == 0

        versions.stamp(KEY)
        versions.stamp(KEY)
        assert not attempt.is_current()
        assert attempt.superseded_by == 2

    def test_clear(self):
        versions = VersionTracker()
        versions.next(KEY)
        versions.clear()
        assert versions.current(KEY) == 0
