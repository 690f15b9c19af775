"""Profile normalization and state-transition engine for Whack-A-Task."""

from whackatask.engine.normalizer import normalize_document, classify_document, DocumentShape, NormalizationResult
from whackatask.engine.mutations import (
    with_garden_added,
    with_task_added,
    with_task_updated,
    with_task_deleted,
    with_garden_deleted,
)
from whackatask.engine.ordering import sort_tasks_for_display, garden_progress, profile_totals, due_date_label

__all__ = [
    "normalize_document",
    "classify_document",
    "DocumentShape",
    "NormalizationResult",
    "with_garden_added",
    "with_task_added",
    "with_task_updated",
    "with_task_deleted",
    "with_garden_deleted",
    "sort_tasks_for_display",
    "garden_progress",
    "profile_totals",
    "due_date_label",
]
