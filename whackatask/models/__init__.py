"""Data models for Whack-A-Task."""

from whackatask.models.profile import Profile, Garden, Task, TaskStatus

__all__ = [
    "Profile",
    "Garden",
    "Task",
    "TaskStatus",
]
