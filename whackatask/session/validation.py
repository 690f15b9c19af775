"""Caller-side input checks, run before any call reaches the store."""

import re
from typing import List, Optional

from whackatask.models.constants import (
    MAX_GARDEN_NAME_LENGTH,
    MAX_TASK_DESCRIPTION_LENGTH,
    MAX_TASK_NAME_LENGTH,
    MIN_USERNAME_LENGTH,
    USERNAME_PATTERN,
)
from whackatask.models.profile import Garden
from whackatask.session.errors import ValidationFailed

_USERNAME_RE = re.compile(USERNAME_PATTERN)


def validate_username(username: str) -> str:
    """Check a signup username (3+ chars; letters, digits and underscores)."""
    username = username or ""
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationFailed(f"Username must be at least {MIN_USERNAME_LENGTH} characters.")
    if not _USERNAME_RE.match(username):
        raise ValidationFailed("Username can only contain letters, numbers, and underscores.")
    return username


def validate_new_garden_name(name: str, gardens: List[Garden]) -> str:
    """Check a garden name about to be created.

    Names are compared case-insensitively against existing gardens.

    Returns:
        The trimmed name
    """
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Please enter a garden name.")
    if len(name) > MAX_GARDEN_NAME_LENGTH:
        raise ValidationFailed(f"Garden names can be at most {MAX_GARDEN_NAME_LENGTH} characters.")
    if any(garden.name.lower() == name.lower() for garden in gardens):
        raise ValidationFailed("A garden with this name already exists!")
    return name


def validate_task_updates(updates: dict) -> dict:
    """Check the fields present in a task edit.

    Returns:
        Copy of `updates` with name and description trimmed
    """
    cleaned = dict(updates)
    # A null status means "leave unchanged"; it is never a valid status
    if cleaned.get("status", "") is None:
        del cleaned["status"]
    if "name" in cleaned:
        cleaned["name"] = (cleaned["name"] or "").strip()
        if not cleaned["name"]:
            raise ValidationFailed("Please enter a mole name.")
        if len(cleaned["name"]) > MAX_TASK_NAME_LENGTH:
            raise ValidationFailed(f"Mole names can be at most {MAX_TASK_NAME_LENGTH} characters.")
    if "description" in cleaned:
        cleaned["description"] = (cleaned["description"] or "").strip()
        if len(cleaned["description"]) > MAX_TASK_DESCRIPTION_LENGTH:
            raise ValidationFailed(f"Descriptions can be at most {MAX_TASK_DESCRIPTION_LENGTH} characters.")
    return cleaned


def validate_task_fields(name: str, description: Optional[str] = None) -> tuple:
    """Check task name and description.

    Returns:
        (trimmed name, trimmed description)
    """
    name = (name or "").strip()
    description = (description or "").strip()
    if not name:
        raise ValidationFailed("Please give this mole a name.")
    if len(name) > MAX_TASK_NAME_LENGTH:
        raise ValidationFailed(f"Mole names can be at most {MAX_TASK_NAME_LENGTH} characters.")
    if len(description) > MAX_TASK_DESCRIPTION_LENGTH:
        raise ValidationFailed(f"Descriptions can be at most {MAX_TASK_DESCRIPTION_LENGTH} characters.")
    return name, description
