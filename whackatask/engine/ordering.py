"""Display ordering and progress summaries for gardens.

Tasks are shown unwhacked first, then in-whacking, then whacked. Within a
status, earlier due dates come first and undated tasks go last. This order
is for presentation only; storage keeps insertion order.
"""

from datetime import date
from typing import List, NamedTuple, Optional

from whackatask.models.constants import STATUS_ORDER
from whackatask.models.profile import Garden, Profile, Task, TaskStatus


class GardenProgress(NamedTuple):
    """Whacked/total counts for one garden."""
    whacked: int
    total: int

    @property
    def percent(self) -> float:
        return (self.whacked / self.total) * 100 if self.total > 0 else 0.0

    @property
    def complete(self) -> bool:
        return self.total > 0 and self.whacked == self.total


def sort_tasks_for_display(tasks: List[Task]) -> List[Task]:
    """Sort tasks by status order, then by due date (undated last).

    The sort is stable, so tasks that tie keep their insertion order.

    Args:
        tasks: Tasks of one garden

    Returns:
        New list in display order
    """
    return sorted(tasks, key=lambda task: (_status_sort_key(task), _due_date_sort_key(task)))


def _status_sort_key(task: Task) -> int:
    # Unknown statuses sort with unwhacked
    return STATUS_ORDER.get(str(getattr(task.status, "value", task.status)), 0)


def _due_date_sort_key(task: Task) -> tuple:
    if task.due_date:
        return (0, task.due_date.toordinal())
    return (1, 0)


def garden_progress(garden: Garden) -> GardenProgress:
    """Count whacked tasks in a garden."""
    whacked = sum(1 for task in garden.tasks if task.status == TaskStatus.WHACKED)
    return GardenProgress(whacked=whacked, total=len(garden.tasks))


def profile_totals(profile: Optional[Profile]) -> GardenProgress:
    """Whacked/total task counts across every garden of a profile."""
    if profile is None:
        return GardenProgress(whacked=0, total=0)
    whacked = 0
    total = 0
    for garden in profile.gardens:
        progress = garden_progress(garden)
        whacked += progress.whacked
        total += progress.total
    return GardenProgress(whacked=whacked, total=total)


def due_date_label(due: Optional[date], today: Optional[date] = None) -> Optional[str]:
    """Human-friendly due date text relative to ``today``.

    Returns None when there is no due date.
    """
    if due is None:
        return None
    today = today or date.today()
    diff_days = (due - today).days

    if diff_days < 0:
        overdue = abs(diff_days)
        return f"{overdue} day{'' if overdue == 1 else 's'} overdue"
    if diff_days == 0:
        return "Due today"
    if diff_days == 1:
        return "Due tomorrow"
    if diff_days <= 7:
        return f"Due in {diff_days} days"
    return f"{due.strftime('%b')} {due.day}"
