"""Binds the profile store to the authentication lifecycle.

The binder listens to the identity client: a sign-in loads the user's
profile into the store (through the username mapping and the schema
normalizer), a sign-out clears it. It also runs signup, login and logout and
keeps the session-scoped error message shown by the presentation layer.
"""

import logging
from typing import Callable, Optional

from whackatask.auth.identity import Identity, IdentityClient, IdentityError
from whackatask.database.profile_repository import ProfileRepository
from whackatask.models.profile import Profile
from whackatask.session.errors import (
    AuthRejected,
    GENERIC_ERROR_MESSAGE,
    UNKNOWN_USERNAME_MESSAGE,
    ValidationFailed,
)
from whackatask.session.store import ProfileStore
from whackatask.session.validation import validate_username

logger = logging.getLogger(__name__)


class SessionBinder:
    """Keeps one ProfileStore in step with one IdentityClient."""

    def __init__(self, identity: IdentityClient, repository: ProfileRepository, store: ProfileStore):
        self.identity = identity
        self.repository = repository
        self.store = store
        self.error: str = ""
        self._bound_uid: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self) -> None:
        """Start following identity transitions."""
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.on_identity_changed(self.on_identity_changed)

    def detach(self) -> None:
        """Stop following identity transitions."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def set_error(self, message: str) -> None:
        self.error = message

    async def on_identity_changed(self, identity: Optional[Identity]) -> None:
        """Load on sign-in (unless a profile is already cached), clear on sign-out."""
        if identity is None:
            self._bound_uid = None
            self.store.clear()
            return
        await self._bind(identity)

    async def _bind(self, identity: Identity) -> None:
        # A different identity never sees the previous one's profile
        if identity.uid != self._bound_uid:
            self.store.clear()
            self._bound_uid = identity.uid
        if self.store.profile is None:
            await self.fetch_user_profile(identity.uid)

    async def fetch_user_profile(self, uid: str) -> Optional[Profile]:
        """Resolve an identity to its profile and cache it.

        Returns:
            The canonical profile, or None if the identity has no mapping or
            document (or the store could not be read)
        """
        try:
            username = await self.repository.resolve_username(uid)
            if not username:
                logger.debug(f"No username mapping for identity {uid}")
                return None
            profile = await self.repository.load(username)
        except Exception as e:
            logger.error(f"Error fetching user profile for {uid}: {type(e).__name__}: {str(e)}")
            return None
        if profile is not None:
            self.store.load(profile)
        return profile

    async def signup(self, email: str, password: str, username: str) -> Identity:
        """Create an identity and its empty profile, then cache the profile.

        Raises:
            ValidationFailed: Username fails the format rule or is taken
            AuthRejected: The identity service refused the signup
        """
        self.set_error("")
        try:
            validate_username(username)
            if await self.repository.get_document(username) is not None:
                raise ValidationFailed("This username is already taken.")
        except ValidationFailed as e:
            self.set_error(e.message)
            raise

        try:
            identity = await self.identity.create_identity(email, password)
        except IdentityError as e:
            rejected = AuthRejected(e.code)
            self.set_error(rejected.message)
            raise rejected from e

        profile = Profile(email=identity.email, username=username, gardens=[])
        try:
            await self.repository.create(profile)
            await self.repository.bind_identity(identity.uid, username)
        except Exception:
            self.set_error(GENERIC_ERROR_MESSAGE)
            raise

        # Show the new profile right away instead of waiting for a reload
        self._bound_uid = identity.uid
        self.store.load(profile)
        logger.info(f"Signed up {username!r}")
        return identity

    async def login(self, email_or_username: str, password: str) -> Identity:
        """Sign in with an email or a username.

        Identifiers without "@" are usernames; their email is read from the
        profile document.

        Raises:
            AuthRejected: Unknown username or refused credentials
        """
        self.set_error("")
        email = email_or_username
        if "@" not in (email_or_username or ""):
            document = await self.repository.get_document(email_or_username)
            if document is None:
                self.set_error(UNKNOWN_USERNAME_MESSAGE)
                raise AuthRejected("auth/user-not-found", UNKNOWN_USERNAME_MESSAGE)
            email = document.get("email", "")

        try:
            identity = await self.identity.authenticate(email, password)
        except IdentityError as e:
            rejected = AuthRejected(e.code)
            self.set_error(rejected.message)
            raise rejected from e

        await self._bind(identity)
        return identity

    async def logout(self) -> None:
        """End the identity session and drop the cached profile."""
        self.set_error("")
        try:
            await self.identity.end_session()
        except IdentityError as e:
            rejected = AuthRejected(e.code)
            self.set_error(rejected.message)
            raise rejected from e
        self._bound_uid = None
        self.store.clear()
