"""Schema normalization for stored profile documents.

Profile documents are schemaless and may have been written by earlier
versions of the app. Normalization decodes the document shape into an
explicit tag, applies the migration for that tag and reports whether the
migrated ``gardens`` must be written back to the store.

Known shapes:
- LEGACY_FLAT_LIST: a single top-level ``tasks`` list, no ``gardens``.
  Migrating it discards the old tasks and starts with no gardens.
- PARTIALLY_MIGRATED: ``gardens`` missing, or tasks still using the boolean
  ``completed`` flag, missing ``status`` or missing ``dueDate``. Tasks with
  a non-string ``id``, an unknown ``status`` or a null ``description`` are
  repaired here too, so one stray task cannot make a profile unloadable.
- CANONICAL: already in the current shape.
"""

import copy
import logging
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Tuple

from whackatask.models.profile import Profile, TaskStatus

logger = logging.getLogger(__name__)


class DocumentShape(str, Enum):
    """Decoded shape of a raw profile document."""
    LEGACY_FLAT_LIST = "legacy_flat_list"
    PARTIALLY_MIGRATED = "partially_migrated"
    CANONICAL = "canonical"


class NormalizationResult(NamedTuple):
    """Outcome of normalizing one raw document."""
    profile: Profile
    must_persist: bool
    shape: DocumentShape


_VALID_STATUSES = tuple(status.value for status in TaskStatus)


def _task_needs_upgrade(task: Dict[str, Any]) -> bool:
    return (
        task.get("status") not in _VALID_STATUSES
        or "dueDate" not in task
        or task.get("dueDate") == ""
        or ("id" in task and not isinstance(task["id"], str))
        or ("description" in task and task["description"] is None)
    )


def _iter_raw_tasks(gardens: Any):
    for garden in gardens or []:
        if isinstance(garden, dict):
            for task in garden.get("tasks") or []:
                if isinstance(task, dict):
                    yield task


def classify_document(raw: Dict[str, Any]) -> DocumentShape:
    """Decode the shape of a raw profile document.

    Args:
        raw: Document data as read from the store

    Returns:
        DocumentShape tag selecting the migration to apply
    """
    if "tasks" in raw and "gardens" not in raw:
        return DocumentShape.LEGACY_FLAT_LIST
    if raw.get("gardens") is None:
        return DocumentShape.PARTIALLY_MIGRATED
    if any(_task_needs_upgrade(task) for task in _iter_raw_tasks(raw["gardens"])):
        return DocumentShape.PARTIALLY_MIGRATED
    return DocumentShape.CANONICAL


def upgrade_task(task: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """Bring one raw task up to the canonical shape.

    Args:
        task: Raw task dict (not modified)

    Returns:
        (upgraded task dict, whether anything changed)
    """
    upgraded = dict(task)
    changed = False

    if upgraded.get("status") is None and "completed" in upgraded:
        upgraded["status"] = (
            TaskStatus.WHACKED.value if upgraded["completed"] is True else TaskStatus.UNWHACKED.value
        )
        changed = True
    if upgraded.get("status") is None or upgraded["status"] not in _VALID_STATUSES:
        upgraded["status"] = TaskStatus.UNWHACKED.value
        changed = True
    upgraded.pop("completed", None)

    # Early clients stored numeric ids (Date.now())
    if upgraded.get("id") is not None and not isinstance(upgraded["id"], str):
        upgraded["id"] = str(upgraded["id"])
        changed = True
    if "description" in upgraded and upgraded["description"] is None:
        upgraded["description"] = ""
        changed = True

    if "dueDate" not in upgraded:
        upgraded["dueDate"] = None
        changed = True
    elif upgraded["dueDate"] == "":
        # Cleared date inputs submit an empty string
        upgraded["dueDate"] = None
        changed = True

    return upgraded, changed


def _migrate_legacy_flat_list(raw: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], bool]:
    # The flat task list is dropped rather than converted into a garden.
    dropped = len(raw.get("tasks") or [])
    if dropped:
        logger.warning(f"Discarding {dropped} legacy top-level tasks for {raw.get('username')!r}")
    return [], True


def _migrate_gardens(raw: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], bool]:
    must_persist = False
    gardens: List[Dict[str, Any]] = []
    for garden in raw.get("gardens") or []:
        tasks = []
        for task in garden.get("tasks") or []:
            upgraded, changed = upgrade_task(task)
            must_persist = must_persist or changed
            tasks.append(upgraded)
        gardens.append({**garden, "tasks": tasks})
    return gardens, must_persist


def _keep_canonical(raw: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], bool]:
    return copy.deepcopy(raw["gardens"]), False


_MIGRATIONS = {
    DocumentShape.LEGACY_FLAT_LIST: _migrate_legacy_flat_list,
    DocumentShape.PARTIALLY_MIGRATED: _migrate_gardens,
    DocumentShape.CANONICAL: _keep_canonical,
}


def normalize_document(raw: Dict[str, Any]) -> NormalizationResult:
    """Convert a possibly-legacy profile document into a canonical Profile.

    The raw document is not modified. ``must_persist`` is True when the
    stored document differs from the canonical shape in a way that should be
    written back so later loads skip the migration.

    Args:
        raw: Document data as read from the profiles collection

    Returns:
        NormalizationResult(profile, must_persist, shape)
    """
    shape = classify_document(raw)
    gardens, must_persist = _MIGRATIONS[shape](raw)

    profile = Profile(
        email=raw.get("email", ""),
        username=raw.get("username", ""),
        gardens=gardens,
    )
    if must_persist:
        logger.debug(f"Profile {profile.username!r} decoded as {shape.value}; write-back required")
    return NormalizationResult(profile=profile, must_persist=must_persist, shape=shape)
