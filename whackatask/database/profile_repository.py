"""Repository for profile documents and identity-to-username mappings."""

import logging
from typing import Any, Dict, List, Optional

from whackatask.database.document_store import DocumentStore
from whackatask.engine.normalizer import normalize_document
from whackatask.models.constants import PROFILES_COLLECTION, USER_MAPPINGS_COLLECTION
from whackatask.models.profile import Garden, Profile, gardens_to_documents, profile_to_document

logger = logging.getLogger(__name__)


class ProfileRepository:
    """Reads and writes profile documents through a DocumentStore."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def resolve_username(self, uid: str) -> Optional[str]:
        """Look up the username bound to an identity token, or None."""
        mapping = await self.store.get(USER_MAPPINGS_COLLECTION, uid)
        if not mapping:
            return None
        return mapping.get("username")

    async def get_document(self, username: str) -> Optional[Dict[str, Any]]:
        """Read the raw (possibly legacy) profile document."""
        return await self.store.get(PROFILES_COLLECTION, username)

    async def load(self, username: str) -> Optional[Profile]:
        """Load a profile in canonical shape, migrating the stored document if needed.

        When normalization reports a required write-back, the migrated
        `gardens` are written to the store before returning. A failed
        write-back is logged and ignored; the next load retries it.

        Args:
            username: Profile document key

        Returns:
            Canonical Profile, or None if no document exists
        """
        raw = await self.get_document(username)
        if raw is None:
            return None

        result = normalize_document(raw)
        if result.must_persist:
            try:
                await self.write_gardens(username, result.profile.gardens)
                logger.info(f"Migrated profile {username!r} from {result.shape.value} shape")
            except Exception as e:
                logger.warning(
                    f"Could not write back migrated profile {username!r}: {type(e).__name__}: {str(e)}"
                )
        return result.profile

    async def write_gardens(self, username: str, gardens: List[Garden]) -> None:
        """Replace the `gardens` field of a profile document as a whole."""
        await self.store.update(PROFILES_COLLECTION, username, {"gardens": gardens_to_documents(gardens)})

    async def create(self, profile: Profile) -> Profile:
        """Write a new profile document (replacing any document under the same key)."""
        await self.store.set(PROFILES_COLLECTION, profile.username, profile_to_document(profile))
        logger.debug(f"Created profile {profile.username!r}")
        return profile

    async def bind_identity(self, uid: str, username: str) -> None:
        """Record which username an identity token belongs to."""
        await self.store.set(USER_MAPPINGS_COLLECTION, uid, {"username": username})

    async def usernames(self) -> List[str]:
        """All profile document keys."""
        return await self.store.keys(PROFILES_COLLECTION)
