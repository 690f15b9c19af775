"""Mutation operations over the cached profile.

Every operation follows the same read-modify-write cycle:

1. Compute a new garden sequence from a copy of the cached one (addGarden and
   addTask may instead start from a caller-supplied sequence).
2. Write the whole sequence to the profile document's `gardens` field.
3. Only after the write succeeds, swap the new sequence into the cache.

If no profile is cached the operation does nothing and returns None. A failed
write raises PersistenceFailure and leaves the cache untouched; nothing is
retried.

There is no locking and no version check. Two operations started before
either finishes both start from the same cached sequence, and the write that
lands last wins. Passing the result of add_garden into add_task avoids this
for that one sequence only.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union
from pydantic import ValidationError

from whackatask.database.profile_repository import ProfileRepository
from whackatask.engine import mutations
from whackatask.models.profile import Garden, Task
from whackatask.models.task_factory import create_task, utc_now
from whackatask.session.errors import PersistenceFailure, ValidationFailed
from whackatask.session.store import ProfileStore

logger = logging.getLogger(__name__)


class ProfileOperations:
    """The five state transitions over a cached profile's gardens."""

    def __init__(
        self,
        store: ProfileStore,
        repository: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.repository = repository
        self.clock = clock

    async def _commit(self, operation: str, gardens: List[Garden]) -> None:
        username = self.store.profile.username
        try:
            await self.repository.write_gardens(username, gardens)
        except Exception as e:
            logger.error(f"{operation} for {username!r} failed: {type(e).__name__}: {str(e)}")
            raise PersistenceFailure(operation, e) from e
        self.store.replace_gardens(gardens)

    async def add_garden(self, name: str) -> Optional[List[Garden]]:
        """Append an empty garden.

        Returns:
            The full new garden sequence, suitable as `gardens_override` for a
            following add_task, or None if no profile is cached
        """
        if self.store.profile is None:
            return None
        gardens = mutations.with_garden_added(self.store.gardens, name)
        await self._commit("add_garden", gardens)
        return gardens

    async def add_task(
        self,
        garden_name: str,
        name: str,
        description: str = "",
        due_date: Union[date, str, None] = None,
        gardens_override: Optional[List[Garden]] = None,
    ) -> Optional[Task]:
        """Create a task and append it to the garden named `garden_name`.

        If no garden matches, the unchanged sequence is still written.

        Returns:
            The created task, or None if no profile is cached
        """
        if self.store.profile is None:
            return None
        task = create_task(name, description, due_date or None, clock=self.clock)
        base = gardens_override if gardens_override is not None else self.store.gardens
        gardens = mutations.with_task_added(base, garden_name, task)
        await self._commit("add_task", gardens)
        return task

    async def update_task(self, garden_name: str, task_id: str, updates: Dict[str, Any]) -> Optional[List[Garden]]:
        """Merge `updates` (name, description, status, dueDate) into one task.

        Status may be set to any value; there is no enforced order.

        Raises:
            ValidationFailed: An update value does not fit the task model (nothing is written)
            PersistenceFailure: The write failed
        """
        if self.store.profile is None:
            return None
        try:
            gardens = mutations.with_task_updated(self.store.gardens, garden_name, task_id, updates)
        except ValidationError as e:
            fields = ", ".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
            raise ValidationFailed(f"Invalid value for {fields or 'task'}.") from e
        await self._commit("update_task", gardens)
        return gardens

    async def delete_task(self, garden_name: str, task_id: str) -> Optional[List[Garden]]:
        """Remove one task. Deleting a missing task is a successful no-op."""
        if self.store.profile is None:
            return None
        gardens = mutations.with_task_deleted(self.store.gardens, garden_name, task_id)
        await self._commit("delete_task", gardens)
        return gardens

    async def delete_garden(self, garden_name: str) -> Optional[List[Garden]]:
        """Remove a garden and all its tasks. Deleting a missing garden is a no-op."""
        if self.store.profile is None:
            return None
        gardens = mutations.with_garden_deleted(self.store.gardens, garden_name)
        await self._commit("delete_garden", gardens)
        return gardens
