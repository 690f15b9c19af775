"""Constants for Whack-A-Task.

This module centralizes the limits, collection names and ordering values used
throughout the application.
"""

from whackatask.models.profile import TaskStatus


# Document store collections (schema-in-code; documents are created on first write)
PROFILES_COLLECTION = "profiles"
USER_MAPPINGS_COLLECTION = "user_mappings"

# Field limits
MAX_TASK_NAME_LENGTH = 100
MAX_TASK_DESCRIPTION_LENGTH = 500
MAX_GARDEN_NAME_LENGTH = 50
MIN_USERNAME_LENGTH = 3
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

# Display ordering only; never enforced as transitions
STATUS_ORDER = {
    TaskStatus.UNWHACKED.value: 0,
    TaskStatus.IN_WHACKING.value: 1,
    TaskStatus.WHACKED.value: 2,
}
