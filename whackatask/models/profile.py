"""Profile, garden and task data models for Whack-A-Task.

The persisted document uses camelCase keys (``dueDate``, ``createdAt``); the
models expose snake_case attributes and accept either spelling on input.
"""

from datetime import date, datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Task (mole) status enumeration."""
    UNWHACKED = "unwhacked"
    IN_WHACKING = "in-whacking"
    WHACKED = "whacked"


class Task(BaseModel):
    """A single trackable item owned by exactly one garden."""

    id: str = Field(..., description="Task identifier (millisecond timestamp string)")
    name: str = Field(..., description="Task name")
    description: str = Field("", description="Optional free-text details")
    status: TaskStatus = Field(TaskStatus.UNWHACKED, description="Task status")
    due_date: Optional[date] = Field(None, alias="dueDate", description="Optional calendar due date")
    created_at: Optional[datetime] = Field(
        None,
        alias="createdAt",
        description="Creation timestamp (absent on documents written before it was recorded)",
    )

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class Garden(BaseModel):
    """A named collection of tasks."""

    name: str = Field(..., description="Garden name")
    tasks: List[Task] = Field(default_factory=list, description="Tasks in insertion order")

    model_config = ConfigDict(populate_by_name=True)


class Profile(BaseModel):
    """Canonical per-user profile document."""

    email: str = Field(..., description="Email address set at signup")
    username: str = Field(..., description="Unique username, also the document key")
    gardens: List[Garden] = Field(default_factory=list, description="Gardens in insertion order")

    model_config = ConfigDict(populate_by_name=True)


def gardens_to_documents(gardens: List[Garden]) -> List[dict]:
    """Serialize gardens into the persisted (camelCase, JSON-safe) layout."""
    return [garden.model_dump(mode="json", by_alias=True) for garden in gardens]


def profile_to_document(profile: Profile) -> dict:
    """Serialize a profile into the persisted layout."""
    return profile.model_dump(mode="json", by_alias=True)
