"""Fire-and-observe mutation handles for the UI layer."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from daybook.errors import DaybookError

from .coordinator import EntryMutationCoordinator

logger = logging.getLogger(__name__)


class Mutation:
    """
    One mutation kind as seen by a screen.

    `mutate` starts the mutation in the background and returns immediately;
    progress is observed through `is_pending` and `error`, and results
    through the cache. `run` is the awaitable variant.
    """

    def __init__(self, name: str, fn: Callable[..., Awaitable[Any]]):
        self.name = name
        self._fn = fn
        self._in_flight = 0
        self._tasks: set[asyncio.Task] = set()
        self.error: DaybookError | None = None

    @property
    def is_pending(self) -> bool:
        return self._in_flight > 0

    async def run(self, *args, **kwargs) -> Any:
        """Run the mutation and return its result, recording any user-visible error."""
        self._in_flight += 1
        self.error = None
        try:
            return await self._fn(*args, **kwargs)
        except DaybookError as e:
            self.error = e
            raise
        finally:
            self._in_flight -= 1

    def mutate(self, *args, **kwargs) -> asyncio.Task:
        """Start the mutation without waiting for it."""
        task = asyncio.create_task(self._observe(*args, **kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _observe(self, *args, **kwargs) -> None:
        try:
            await self.run(*args, **kwargs)
        except DaybookError as e:
            logger.info(f"{self.name} failed: {e}")

    async def wait(self) -> None:
        """Wait for every mutation started with `mutate`."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class EntryMutations:
    """The mutation handles a journal screen binds to."""

    def __init__(self, coordinator: EntryMutationCoordinator):
        self.append_statement = Mutation("append_statement", coordinator.append_statement)
        self.edit_statement = Mutation("edit_statement", coordinator.edit_statement)
        self.delete_statement = Mutation("delete_statement", coordinator.delete_statement)
        self.delete_entry = Mutation("delete_entry", coordinator.delete_entry)
        self.set_mood = Mutation("set_mood", coordinator.set_mood)

    def __iter__(self):
        return iter(
            (self.append_statement, self.edit_statement, self.delete_statement, self.delete_entry, self.set_mood)
        )

    @property
    def is_pending(self) -> bool:
        return any(m.is_pending for m in self)

    async def wait(self) -> None:
        for mutation in self:
            await mutation.wait()
