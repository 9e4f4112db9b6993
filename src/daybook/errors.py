"""Error types raised by the mutation layer."""


class DaybookError(Exception):
    """Base class for all daybook errors."""

    pass


class AuthenticationRequired(DaybookError):
    """Raised when no owner id is available at call time."""

    def __init__(self, message: str = "Not signed in. Run 'daybook login' first."):
        super().__init__(message)


class InvalidInput(DaybookError):
    """Raised when a mutation payload fails client-side validation."""

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


class RemoteFailure(DaybookError):
    """Raised when the remote store rejected a mutation."""

    def __init__(self, kind: str, cause: BaseException):
        super().__init__(f"{kind} failed: {cause}")
        self.kind = kind
        self.cause = cause

    @property
    def user_message(self) -> str:
        return describe_failure(self.kind)


class StaleOptimisticState(DaybookError):
    """A write or rollback was skipped because a newer stamp exists.

    Never raised to callers; used to label the skip in logs.
    """

    pass


class DependentRecomputationFailure(DaybookError):
    """Recomputing a derived aggregate failed. Logged only."""

    pass


class LockReleaseError(DaybookError):
    """A lock handle was released twice or by the wrong registry."""

    pass


_FAILURE_MESSAGES = {
    "append_statement": "Couldn't save your gratitude statement. Please try again.",
    "edit_statement": "Couldn't update your gratitude statement. Please try again.",
    "delete_statement": "Couldn't delete your gratitude statement. Please try again.",
    "delete_entry": "Couldn't delete this day's entry. Please try again.",
    "set_mood": "Couldn't save your mood. Please try again.",
}


def describe_failure(kind: str) -> str:
    """Generic user-facing message for a failed mutation kind."""
    return _FAILURE_MESSAGES.get(kind, "Something went wrong. Please try again.")
