"""FastAPI web application for Whack-A-Task."""

import logging
from typing import Dict
from fastapi import Depends, FastAPI, HTTPException, status

from whackatask.api.models import (
    AuthResponse,
    GardenRequest,
    GardensResponse,
    GardenViewResponse,
    LoginRequest,
    ProfileResponse,
    SignupRequest,
    SpotTaskRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
    TaskView,
    Totals,
)
from whackatask.auth.dependencies import get_current_session, get_registry
from whackatask.auth.jwt import create_access_token
from whackatask.engine.ordering import due_date_label, garden_progress, profile_totals, sort_tasks_for_display
from whackatask.session.context import ClientSession, SessionRegistry
from whackatask.session.errors import AuthRejected, PersistenceFailure, ValidationFailed
from whackatask.session.validation import validate_new_garden_name, validate_task_fields, validate_task_updates

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Whack-A-Task API",
    description="Smash your to-dos into oblivion: gardens of tasks, synced to your profile",
    version="0.1.0",
)

# Codes caused by bad signup input rather than bad credentials
_SIGNUP_INPUT_CODES = {"auth/invalid-email", "auth/weak-password", "auth/email-already-in-use"}


def _require_profile(session: ClientSession):
    if session.store.profile is None:
        raise HTTPException(status_code=404, detail="No profile found for this account.")
    return session.store.profile


def _persistence_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Failed to {action}. Please try again.",
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/auth/signup", response_model=AuthResponse, status_code=201)
async def signup(request: SignupRequest, registry: SessionRegistry = Depends(get_registry)):
    """Create an account with an empty profile and sign in."""
    session = registry.create()
    try:
        identity = await session.binder.signup(request.email, request.password, request.username)
    except ValidationFailed as e:
        registry.discard(session.id)
        raise HTTPException(status_code=400, detail=e.message)
    except AuthRejected as e:
        registry.discard(session.id)
        code = status.HTTP_400_BAD_REQUEST if e.code in _SIGNUP_INPUT_CODES else status.HTTP_401_UNAUTHORIZED
        raise HTTPException(status_code=code, detail=e.message)
    except Exception as e:
        registry.discard(session.id)
        logger.error(f"Signup failed: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=session.binder.error or "Something went wrong. Please try again.")

    return AuthResponse(
        access_token=create_access_token(session.id, identity.uid),
        profile=session.store.profile,
    )


@app.post("/auth/login", response_model=AuthResponse)
async def login(request: LoginRequest, registry: SessionRegistry = Depends(get_registry)):
    """Sign in by email or username."""
    session = registry.create()
    try:
        identity = await session.binder.login(request.identifier, request.password)
    except AuthRejected as e:
        registry.discard(session.id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    return AuthResponse(
        access_token=create_access_token(session.id, identity.uid),
        profile=session.store.profile,
    )


@app.post("/auth/logout")
async def logout(
    session: ClientSession = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_registry),
) -> Dict[str, str]:
    """Sign out and drop the session's cached profile."""
    await session.binder.logout()
    registry.discard(session.id)
    return {"status": "signed_out"}


@app.get("/profile", response_model=ProfileResponse)
async def get_profile(session: ClientSession = Depends(get_current_session)):
    """Cached profile with overall whacked/total counts."""
    profile = _require_profile(session)
    totals = profile_totals(profile)
    return ProfileResponse(profile=profile, totals=Totals(whacked=totals.whacked, total=totals.total))


@app.get("/gardens/{garden_name}", response_model=GardenViewResponse)
async def view_garden(garden_name: str, session: ClientSession = Depends(get_current_session)):
    """One garden with its tasks in display order."""
    profile = _require_profile(session)
    garden = next((g for g in profile.gardens if g.name == garden_name), None)
    if garden is None:
        raise HTTPException(status_code=404, detail=f"Garden {garden_name!r} not found")

    progress = garden_progress(garden)
    return GardenViewResponse(
        name=garden.name,
        whacked=progress.whacked,
        total=progress.total,
        percent=progress.percent,
        tasks=[
            TaskView(task=task, due_label=due_date_label(task.due_date))
            for task in sort_tasks_for_display(garden.tasks)
        ],
    )


@app.post("/gardens", response_model=GardensResponse, status_code=201)
async def create_garden(request: GardenRequest, session: ClientSession = Depends(get_current_session)):
    """Create an empty garden."""
    profile = _require_profile(session)
    try:
        name = validate_new_garden_name(request.name, profile.gardens)
        gardens = await session.operations.add_garden(name)
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceFailure:
        raise _persistence_error("create garden")
    return GardensResponse(gardens=gardens)


@app.delete("/gardens/{garden_name}", response_model=GardensResponse)
async def delete_garden(garden_name: str, session: ClientSession = Depends(get_current_session)):
    """Delete a garden and all of its tasks."""
    _require_profile(session)
    try:
        gardens = await session.operations.delete_garden(garden_name)
    except PersistenceFailure:
        raise _persistence_error("delete garden")
    return GardensResponse(gardens=gardens)


@app.post("/tasks", response_model=TaskResponse, status_code=201)
async def spot_task(request: SpotTaskRequest, session: ClientSession = Depends(get_current_session)):
    """Add a task, creating its garden first when `new_garden_name` is given."""
    profile = _require_profile(session)
    try:
        gardens_override = None
        garden_name = request.garden_name
        if request.new_garden_name is not None:
            new_name = validate_new_garden_name(request.new_garden_name, profile.gardens)
            name, description = validate_task_fields(request.name, request.description)
            gardens_override = await session.operations.add_garden(new_name)
            garden_name = new_name
        else:
            if not garden_name:
                raise ValidationFailed("Please select or create a garden.")
            name, description = validate_task_fields(request.name, request.description)

        task = await session.operations.add_task(
            garden_name, name, description, request.due_date, gardens_override=gardens_override
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceFailure:
        raise _persistence_error("add mole")
    return TaskResponse(task=task)


@app.post("/gardens/{garden_name}/tasks", response_model=TaskResponse, status_code=201)
async def add_task(
    garden_name: str,
    request: TaskCreateRequest,
    session: ClientSession = Depends(get_current_session),
):
    """Add a task to an existing garden."""
    _require_profile(session)
    try:
        name, description = validate_task_fields(request.name, request.description)
        task = await session.operations.add_task(garden_name, name, description, request.due_date)
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceFailure:
        raise _persistence_error("add mole")
    return TaskResponse(task=task)


@app.patch("/gardens/{garden_name}/tasks/{task_id}", response_model=GardensResponse)
async def update_task(
    garden_name: str,
    task_id: str,
    request: TaskUpdateRequest,
    session: ClientSession = Depends(get_current_session),
):
    """Edit any subset of a task's name, description, status and due date."""
    _require_profile(session)
    try:
        updates = validate_task_updates(request.model_dump(exclude_unset=True))
        gardens = await session.operations.update_task(garden_name, task_id, updates)
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceFailure:
        raise _persistence_error("update mole")
    return GardensResponse(gardens=gardens)


@app.delete("/gardens/{garden_name}/tasks/{task_id}", response_model=GardensResponse)
async def delete_task(garden_name: str, task_id: str, session: ClientSession = Depends(get_current_session)):
    """Delete a task (succeeds even if it is already gone)."""
    _require_profile(session)
    try:
        gardens = await session.operations.delete_task(garden_name, task_id)
    except PersistenceFailure:
        raise _persistence_error("delete mole")
    return GardensResponse(gardens=gardens)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
