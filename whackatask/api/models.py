"""Request/response models for the Whack-A-Task API."""

from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field

from whackatask.models.profile import Garden, Profile, Task, TaskStatus


class SignupRequest(BaseModel):
    """Request model for account creation."""
    email: str
    password: str
    username: str


class LoginRequest(BaseModel):
    """Request model for sign-in by email or username."""
    identifier: str = Field(..., description="Email address or username")
    password: str


class AuthResponse(BaseModel):
    """Response model for authentication."""
    access_token: str
    token_type: str = "bearer"
    profile: Optional[Profile] = None


class Totals(BaseModel):
    """Whacked/total task counts."""
    whacked: int
    total: int


class ProfileResponse(BaseModel):
    """Cached profile plus task counts."""
    profile: Profile
    totals: Totals


class GardenRequest(BaseModel):
    """Request model for creating a garden."""
    name: str


class GardensResponse(BaseModel):
    """Full garden sequence after a mutation."""
    gardens: List[Garden]


class TaskView(BaseModel):
    """A task as shown in a garden listing."""
    task: Task
    due_label: Optional[str] = None


class GardenViewResponse(BaseModel):
    """One garden with tasks in display order."""
    name: str
    whacked: int
    total: int
    percent: float
    tasks: List[TaskView]


class TaskCreateRequest(BaseModel):
    """Request model for adding a task to a known garden."""
    name: str
    description: str = ""
    due_date: Optional[date] = None


class SpotTaskRequest(TaskCreateRequest):
    """Add a task to an existing garden, or to a new one created first."""
    garden_name: Optional[str] = None
    new_garden_name: Optional[str] = None


class TaskUpdateRequest(BaseModel):
    """Partial task edit; omitted fields stay unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None


class TaskResponse(BaseModel):
    """Response wrapping a single task."""
    task: Task
