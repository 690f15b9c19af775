"""Client-side cache of the signed-in user's profile."""

import logging
from typing import List, Optional

from whackatask.models.profile import Garden, Profile

logger = logging.getLogger(__name__)


class ProfileStore:
    """Holds at most one canonical profile, for the current identity only.

    Readers get the cached profile as-is. Only the session binder (load and
    clear) and the mutation operations (replace_gardens) change it.
    """

    def __init__(self):
        self._profile: Optional[Profile] = None

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def gardens(self) -> List[Garden]:
        """Cached gardens, or an empty list when nothing is loaded."""
        return self._profile.gardens if self._profile else []

    def load(self, profile: Optional[Profile]) -> None:
        """Cache a freshly loaded profile (None leaves the store empty)."""
        self._profile = profile
        if profile is not None:
            logger.debug(f"Cached profile {profile.username!r}")

    def replace_gardens(self, gardens: List[Garden]) -> None:
        """Swap in a new garden sequence after a successful write."""
        if self._profile is None:
            return
        self._profile = self._profile.model_copy(update={"gardens": gardens})

    def clear(self) -> None:
        """Drop the cached profile."""
        self._profile = None
