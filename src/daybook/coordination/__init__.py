"""Coordination - serializes and applies entry mutations against the cache."""

from .coordinator import UNSET, EntryMutationCoordinator, KeyState
from .invalidation import Invalidation, InvalidationScheduler
from .locks import LockHandle, LockRegistry, MutationKind
from .mutations import EntryMutations, Mutation
from .recompute import StreakRecomputation
from .session import MutationSession
from .versions import Attempt, VersionTracker

__all__ = [
    "UNSET",
    "EntryMutationCoordinator",
    "KeyState",
    "Invalidation",
    "InvalidationScheduler",
    "LockHandle",
    "LockRegistry",
    "MutationKind",
    "EntryMutations",
    "Mutation",
    "StreakRecomputation",
    "MutationSession",
    "Attempt",
    "VersionTracker",
]
