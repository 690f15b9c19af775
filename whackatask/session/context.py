"""Per-client session context.

A ClientSession bundles everything one signed-in client needs: its identity
client, its profile store, the binder that keeps the two in step and the
mutation operations. Handlers receive the context explicitly; there is no
process-wide current profile.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from whackatask.auth.identity import IdentityClient, IdentityService
from whackatask.auth.jwt import JWT_EXPIRATION_HOURS
from whackatask.database.profile_repository import ProfileRepository
from whackatask.models.task_factory import utc_now
from whackatask.session.binder import SessionBinder
from whackatask.session.operations import ProfileOperations
from whackatask.session.store import ProfileStore

logger = logging.getLogger(__name__)


class ClientSession:
    """State and operations for one client."""

    def __init__(
        self,
        identity_service: IdentityService,
        repository: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.id = uuid.uuid4().hex
        self.expires_at: Optional[datetime] = None
        self.identity = IdentityClient(identity_service)
        self.store = ProfileStore()
        self.binder = SessionBinder(self.identity, repository, self.store)
        self.operations = ProfileOperations(self.store, repository, clock=clock)
        self.binder.attach()

    def close(self) -> None:
        self.binder.detach()
        self.store.clear()


class SessionRegistry:
    """Live client sessions by id.

    Sessions live as long as the access tokens issued for them
    (JWT_EXPIRATION_HOURS by default). Expired sessions are dropped when
    looked up and swept whenever a new session is created.
    """

    def __init__(
        self,
        identity_service: IdentityService,
        repository: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
        ttl: timedelta = timedelta(hours=JWT_EXPIRATION_HOURS),
    ):
        self.identity_service = identity_service
        self.repository = repository
        self.clock = clock
        self.ttl = ttl
        self._sessions: Dict[str, ClientSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> ClientSession:
        now = self.clock()
        self._sweep(now)
        session = ClientSession(self.identity_service, self.repository, clock=self.clock)
        session.expires_at = now + self.ttl
        self._sessions[session.id] = session
        logger.debug(f"Opened client session {session.id}")
        return session

    def get(self, session_id: str) -> Optional[ClientSession]:
        session = self._sessions.get(session_id)
        if session is not None and session.expires_at is not None and session.expires_at <= self.clock():
            logger.debug(f"Client session {session_id} expired")
            self.discard(session_id)
            return None
        return session

    def discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
            logger.debug(f"Closed client session {session_id}")

    def _sweep(self, now: datetime) -> None:
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.expires_at is not None and session.expires_at <= now
        ]
        for session_id in expired:
            self.discard(session_id)
