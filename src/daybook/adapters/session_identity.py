"""Identity provider backed by the saved session."""

from daybook.config import Session


class SessionIdentity:
    """
    Resolves the owner from the saved session file.

    Implements IdentityProvider protocol. The session is re-read on every
    call so signing out takes effect immediately.
    """

    def __init__(self, session: Session | None = None):
        self._session = session

    def current_owner_id(self) -> str | None:
        session = self._session or Session.load()
        return session.owner_id or None
