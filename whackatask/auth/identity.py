"""Local identity service for Whack-A-Task.

`IdentityService` owns credentials (the `identities` table) and is shared by
the whole process. `IdentityClient` is one client's view of it: it tracks the
currently signed-in identity and notifies listeners on every sign-in and
sign-out, the way a hosted auth SDK does.

Failures raise `IdentityError` carrying a stable error code
(e.g. "auth/wrong-password"); mapping codes to user-facing messages is the
session layer's job.
"""

import asyncio
import logging
import os
import re
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from sqlalchemy.orm import sessionmaker

from whackatask.auth.passwords import hash_password, verify_password
from whackatask.database.models import IdentityDB

load_dotenv()

logger = logging.getLogger(__name__)

# Identity configuration
AUTH_MIN_PASSWORD_LENGTH = int(os.getenv("AUTH_MIN_PASSWORD_LENGTH", "6"))
AUTH_MAX_FAILED_ATTEMPTS = int(os.getenv("AUTH_MAX_FAILED_ATTEMPTS", "5"))
AUTH_LOCKOUT_SECONDS = int(os.getenv("AUTH_LOCKOUT_SECONDS", "60"))

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Error codes
EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
INVALID_EMAIL = "auth/invalid-email"
WEAK_PASSWORD = "auth/weak-password"
USER_NOT_FOUND = "auth/user-not-found"
WRONG_PASSWORD = "auth/wrong-password"
INVALID_CREDENTIAL = "auth/invalid-credential"
TOO_MANY_REQUESTS = "auth/too-many-requests"


class Identity(BaseModel):
    """An authenticated identity."""
    uid: str = Field(..., description="Opaque identity token")
    email: str = Field(..., description="Email the identity signed up with")


class IdentityError(Exception):
    """Identity-layer failure with a machine-readable code."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or code)
        self.code = code


IdentityListener = Callable[[Optional[Identity]], Awaitable[None]]


class IdentityService:
    """Credential storage and verification."""

    def __init__(
        self,
        session_factory: sessionmaker,
        min_password_length: int = AUTH_MIN_PASSWORD_LENGTH,
        max_failed_attempts: int = AUTH_MAX_FAILED_ATTEMPTS,
        lockout_seconds: int = AUTH_LOCKOUT_SECONDS,
    ):
        self.session_factory = session_factory
        self.min_password_length = min_password_length
        self.max_failed_attempts = max_failed_attempts
        self.lockout_seconds = lockout_seconds

    async def register(self, email: str, password: str) -> Identity:
        """Create a new identity.

        Raises:
            IdentityError: invalid-email, weak-password or email-already-in-use
        """
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise IdentityError(INVALID_EMAIL)
        if len(password or "") < self.min_password_length:
            raise IdentityError(WEAK_PASSWORD)
        return await asyncio.to_thread(self._register, email, password)

    async def verify(self, email: str, password: str) -> Identity:
        """Check credentials, applying a lockout after repeated failures.

        Raises:
            IdentityError: invalid-email, user-not-found, wrong-password or too-many-requests
        """
        email = (email or "").strip().lower()
        if not _EMAIL_RE.match(email):
            raise IdentityError(INVALID_EMAIL)
        return await asyncio.to_thread(self._verify, email, password or "")

    def _register(self, email: str, password: str) -> Identity:
        db = self.session_factory()
        try:
            if db.query(IdentityDB).filter(IdentityDB.email == email).first():
                raise IdentityError(EMAIL_ALREADY_IN_USE)
            identity_db = IdentityDB(
                email=email,
                password_hash=hash_password(password),
                last_sign_in_at=datetime.utcnow(),
            )
            db.add(identity_db)
            db.commit()
            db.refresh(identity_db)
            logger.debug(f"Registered identity {identity_db.uid}")
            return identity_db.to_pydantic()
        except IdentityError:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to register identity: {type(e).__name__}: {str(e)}")
            raise
        finally:
            db.close()

    def _verify(self, email: str, password: str) -> Identity:
        db = self.session_factory()
        try:
            identity_db = db.query(IdentityDB).filter(IdentityDB.email == email).first()
            if not identity_db:
                raise IdentityError(USER_NOT_FOUND)

            now = datetime.utcnow()
            if identity_db.locked_until and identity_db.locked_until > now:
                raise IdentityError(TOO_MANY_REQUESTS)

            if not verify_password(password, identity_db.password_hash):
                identity_db.failed_attempts = (identity_db.failed_attempts or 0) + 1
                if identity_db.failed_attempts >= self.max_failed_attempts:
                    identity_db.locked_until = now + timedelta(seconds=self.lockout_seconds)
                    identity_db.failed_attempts = 0
                    logger.info(f"Identity {identity_db.uid} locked for {self.lockout_seconds}s")
                db.commit()
                raise IdentityError(WRONG_PASSWORD)

            identity_db.failed_attempts = 0
            identity_db.locked_until = None
            identity_db.last_sign_in_at = now
            db.commit()
            return identity_db.to_pydantic()
        finally:
            db.close()


class IdentityClient:
    """One client's authentication state on top of an IdentityService."""

    def __init__(self, service: IdentityService):
        self.service = service
        self.current_identity: Optional[Identity] = None
        self._listeners: List[IdentityListener] = []

    def on_identity_changed(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for sign-in/sign-out transitions.

        Returns:
            Callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self) -> None:
        for listener in list(self._listeners):
            await listener(self.current_identity)

    async def create_identity(self, email: str, password: str) -> Identity:
        """Register and sign in as a new identity."""
        identity = await self.service.register(email, password)
        self.current_identity = identity
        await self._emit()
        return identity

    async def authenticate(self, email: str, password: str) -> Identity:
        """Sign in with existing credentials."""
        identity = await self.service.verify(email, password)
        self.current_identity = identity
        await self._emit()
        return identity

    async def end_session(self) -> None:
        """Sign out."""
        self.current_identity = None
        await self._emit()
