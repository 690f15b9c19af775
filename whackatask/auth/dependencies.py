"""FastAPI dependencies for client sessions."""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from whackatask.auth.identity import IdentityService
from whackatask.auth.jwt import get_session_id_from_token
from whackatask.database.database import SessionLocal, init_db
from whackatask.database.document_store import DocumentStore
from whackatask.database.profile_repository import ProfileRepository
from whackatask.session.context import ClientSession, SessionRegistry

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

_registry: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    """Process-wide registry of client sessions (created on first use)."""
    global _registry
    if _registry is None:
        init_db()
        _registry = SessionRegistry(
            IdentityService(SessionLocal),
            ProfileRepository(DocumentStore(SessionLocal)),
        )
    return _registry


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    registry: SessionRegistry = Depends(get_registry),
) -> ClientSession:
    """Get the client session named by the bearer token.

    Raises:
        HTTPException: If the token is missing, invalid or its session is gone
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session_id = get_session_id_from_token(credentials.credentials)
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = registry.get(session_id)
    if session is None or session.identity.current_identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session
