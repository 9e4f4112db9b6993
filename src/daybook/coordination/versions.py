"""Optimistic version stamps per entry key."""

from dataclasses import dataclass

from daybook.core.keys import EntryKey


class VersionTracker:
    """Strictly increasing counter per key, used to detect superseded optimistic writes."""

    def __init__(self):
        self._versions: dict[EntryKey, int] = {}

    def next(self, key: EntryKey) -> int:
        """Return a stamp greater than any previous one for `key`, starting at 1."""
        version = self._versions.get(key, 0) + 1
        self._versions[key] = version
        return version

    def current(self, key: EntryKey) -> int:
        """Latest stamp issued for `key`, or 0 if none."""
        return self._versions.get(key, 0)

    def is_current(self, key: EntryKey, version: int) -> bool:
        return self._versions.get(key, 0) == version

    def stamp(self, key: EntryKey) -> "Attempt":
        """Issue the next stamp bundled with its key."""
        return Attempt(key=key, version=self.next(key), tracker=self)

    def clear(self) -> None:
        self._versions.clear()


@dataclass(frozen=True)
class Attempt:
    """One mutation attempt under a version stamp."""

    key: EntryKey
    version: int
    tracker: VersionTracker

    def is_current(self) -> bool:
        return self.tracker.is_current(self.key, self.version)

    @property
    def superseded_by(self) -> int:
        """How many newer attempts exist for the same key."""
        return self.tracker.current(self.key) - self.version
