"""Identity provider interface."""

from typing import Protocol


class IdentityProvider(Protocol):
    """Interface for resolving the signed-in owner."""

    def current_owner_id(self) -> str | None:
        """Return the current owner id, or None if nobody is signed in."""
        ...
