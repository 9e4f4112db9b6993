"""Tests for the in-memory query cache."""

from datetime import date

from daybook.adapters.memory_cache import MemoryQueryCache
from daybook.core.keys import entries_key, entry_key, streak_key

D = date(2025, 1, 15)


class TestMemoryQueryCache:
    def test_get_set(self):
        cache = MemoryQueryCache()
        assert cache.get(entry_key("u", D)) is None
        assert not cache.has(entry_key("u", D))

        cache.set(entry_key("u", D), None)
        assert cache.has(entry_key("u", D))

    def test_prefix_invalidation_keeps_values(self):
        cache = MemoryQueryCache()
        cache.set(entries_key("u"), ["x"])
        cache.set(entry_key("u", D), "entry")
        cache.set(streak_key("u"), 2)

        cache.invalidate(entries_key("u"))

        assert cache.is_stale(entries_key("u"))
        assert cache.is_stale(entry_key("u", D))
        assert not cache.is_stale(streak_key("u"))
        assert cache.get(entry_key("u", D)) == "entry"

    def test_exact_invalidation(self):
        cache = MemoryQueryCache()
        cache.set(entries_key("u"), [])
        cache.set(entry_key("u", D), "entry")

        cache.invalidate(entries_key("u"), exact=True)

        assert cache.is_stale(entries_key("u"))
        assert not cache.is_stale(entry_key("u", D))

    def test_set_clears_stale(self):
        cache = MemoryQueryCache()
        cache.set(streak_key("u"), 1)
        cache.invalidate(streak_key("u"))
        cache.set(streak_key("u"), 2)
        assert not cache.is_stale(streak_key("u"))

    def test_remove(self):
        cache = MemoryQueryCache()
        cache.set(entries_key("u"), [])
        cache.set(entry_key("u", D), "entry")
        cache.set(streak_key("u"), 1)

        cache.remove(entries_key("u"))

        assert cache.keys_under(("daybook",)) == [streak_key("u")]

    def test_subscribers_notified(self):
        cache = MemoryQueryCache()
        seen = []
        unsubscribe = cache.subscribe(seen.append)

        cache.set(streak_key("u"), 1)
        cache.invalidate(streak_key("u"))
        unsubscribe()
        cache.set(streak_key("u"), 2)

        assert seen == [streak_key("u"), streak_key("u")]

    def test_failing_subscriber_does_not_break_writes(self):
        cache = MemoryQueryCache()

        def broken(key):
            raise RuntimeError("render failed")

        cache.subscribe(broken)
        cache.set(streak_key("u"), 1)
        assert cache.get(streak_key("u")) == 1
