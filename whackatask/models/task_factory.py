"""Task creation factory for Whack-A-Task.

This module centralizes task creation so every new task gets the same
defaults: a timestamp-derived id, ``unwhacked`` status and a creation time.
"""

from datetime import date, datetime, timezone
from typing import Callable, Optional

from whackatask.models.profile import Task, TaskStatus


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_task_id(now: datetime) -> str:
    """Derive a task id from a timestamp (milliseconds since the epoch).

    Two tasks created within the same millisecond get the same id; nothing
    re-checks uniqueness.
    """
    return str(int(now.timestamp() * 1000))


def create_task(
    name: str,
    description: str = "",
    due_date: Optional[date] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Task:
    """Create a new task with defaults applied.

    Args:
        name: Task name (required)
        description: Optional details
        due_date: Optional calendar due date
        clock: Source of the current time (injectable for tests)

    Returns:
        Task with status UNWHACKED and created_at set to now
    """
    now = clock()
    return Task(
        id=generate_task_id(now),
        name=name,
        description=description or "",
        status=TaskStatus.UNWHACKED,
        due_date=due_date,
        created_at=now,
    )
