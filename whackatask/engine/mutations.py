"""Pure state transitions over a profile's garden sequence.

Every function takes the current sequence and returns a new one; the input
is never modified. Gardens are matched by exact name and tasks by id. A
missing garden or task leaves the sequence unchanged.
"""

from typing import Any, Dict, List

from whackatask.models.profile import Garden, Task

# Task fields an edit is allowed to change
EDITABLE_TASK_FIELDS = ("name", "description", "status", "due_date")

_FIELD_ALIASES = {"dueDate": "due_date"}


def copy_gardens(gardens: List[Garden]) -> List[Garden]:
    """Deep copy of a garden sequence."""
    return [garden.model_copy(deep=True) for garden in gardens]


def with_garden_added(gardens: List[Garden], name: str) -> List[Garden]:
    """Append an empty garden named ``name``."""
    return copy_gardens(gardens) + [Garden(name=name, tasks=[])]


def with_task_added(gardens: List[Garden], garden_name: str, task: Task) -> List[Garden]:
    """Append ``task`` to the garden named ``garden_name``."""
    updated = copy_gardens(gardens)
    for garden in updated:
        if garden.name == garden_name:
            garden.tasks.append(task.model_copy(deep=True))
            break
    return updated


def normalize_task_updates(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Map update keys to model field names and drop non-editable fields.

    Accepts both the persisted spelling (``dueDate``) and the attribute name
    (``due_date``). ``id`` and ``createdAt`` are never editable.
    """
    normalized: Dict[str, Any] = {}
    for key, value in updates.items():
        field = _FIELD_ALIASES.get(key, key)
        if field not in EDITABLE_TASK_FIELDS:
            continue
        if field == "due_date" and value == "":
            value = None
        normalized[field] = value
    return normalized


def with_task_updated(
    gardens: List[Garden],
    garden_name: str,
    task_id: str,
    updates: Dict[str, Any],
) -> List[Garden]:
    """Merge ``updates`` into the matching task, leaving everything else untouched.

    Raises:
        pydantic.ValidationError: An update value does not fit the task model
    """
    changes = normalize_task_updates(updates)
    updated = copy_gardens(gardens)
    for garden in updated:
        if garden.name != garden_name:
            continue
        for index, task in enumerate(garden.tasks):
            if task.id == task_id:
                merged = {**task.model_dump(), **changes}
                garden.tasks[index] = Task.model_validate(merged)
    return updated


def with_task_deleted(gardens: List[Garden], garden_name: str, task_id: str) -> List[Garden]:
    """Remove the matching task from the matching garden."""
    updated = copy_gardens(gardens)
    for garden in updated:
        if garden.name == garden_name:
            garden.tasks = [task for task in garden.tasks if task.id != task_id]
    return updated


def with_garden_deleted(gardens: List[Garden], garden_name: str) -> List[Garden]:
    """Remove the matching garden and all of its tasks."""
    return [garden for garden in copy_gardens(gardens) if garden.name != garden_name]
