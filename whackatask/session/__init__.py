"""Profile session layer: cache, lifecycle binding and mutation operations."""

from whackatask.session.store import ProfileStore
from whackatask.session.binder import SessionBinder
from whackatask.session.operations import ProfileOperations
from whackatask.session.context import ClientSession, SessionRegistry
from whackatask.session.errors import AuthRejected, ValidationFailed, PersistenceFailure

__all__ = [
    "ProfileStore",
    "SessionBinder",
    "ProfileOperations",
    "ClientSession",
    "SessionRegistry",
    "AuthRejected",
    "ValidationFailed",
    "PersistenceFailure",
]
