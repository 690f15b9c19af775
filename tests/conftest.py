"""Pytest fixtures and configuration for Whack-A-Task tests."""

import os

# Cheap password hashing for tests; must be set before whackatask.auth is imported
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import pytest
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from whackatask.auth.identity import IdentityService
from whackatask.database.database import Base
from whackatask.database.document_store import DocumentStore
from whackatask.database.profile_repository import ProfileRepository
from whackatask.database import models  # noqa: F401
from whackatask.models.constants import PROFILES_COLLECTION, USER_MAPPINGS_COLLECTION
from whackatask.session.context import ClientSession, SessionRegistry

from fakes import FakeClock, run


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def session_factory():
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def document_store(session_factory):
    """DocumentStore backed by the test database."""
    return DocumentStore(session_factory)


@pytest.fixture
def profile_repository(document_store):
    """ProfileRepository over the test document store."""
    return ProfileRepository(document_store)


@pytest.fixture
def identity_service(session_factory):
    """Identity service with cheap settings for tests."""
    return IdentityService(session_factory, max_failed_attempts=3, lockout_seconds=60)


@pytest.fixture
def clock():
    """Fixed starting time for task ids and creation timestamps."""
    return FakeClock(datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def client_session(identity_service, profile_repository, clock):
    """A fresh, signed-out client session."""
    return ClientSession(identity_service, profile_repository, clock=clock)


@pytest.fixture
def signed_in_session(client_session):
    """A client session signed up as `mole_fan` with an empty profile."""
    run(client_session.binder.signup("fan@example.com", "hunter22", "mole_fan"))
    return client_session


@pytest.fixture
def seed_profile(document_store):
    """Write a raw profile document plus its identity mapping directly to the store."""

    def _seed(username: str, document: dict, uid: str = None):
        run(document_store.set(PROFILES_COLLECTION, username, document))
        if uid:
            run(document_store.set(USER_MAPPINGS_COLLECTION, uid, {"username": username}))

    return _seed


@pytest.fixture
def canonical_document():
    """A profile document already in the current shape."""
    return {
        "email": "fan@example.com",
        "username": "mole_fan",
        "gardens": [
            {
                "name": "Work",
                "tasks": [
                    {
                        "id": "1735722000000",
                        "name": "Pay bills",
                        "description": "",
                        "status": "unwhacked",
                        "dueDate": "2025-01-01",
                        "createdAt": "2025-01-01T09:00:00Z",
                    }
                ],
            }
        ],
    }


@pytest.fixture
def legacy_flat_document():
    """A profile document from the single-list era."""
    return {
        "email": "old@example.com",
        "username": "old_timer",
        "tasks": [
            {"id": "1", "name": "Old task", "completed": False},
            {"id": "2", "name": "Older task", "completed": True},
        ],
    }


@pytest.fixture
def test_client(identity_service, profile_repository, clock):
    """FastAPI test client with the session registry bound to the test database."""
    from whackatask.api.app import app
    from whackatask.auth.dependencies import get_registry

    registry = SessionRegistry(identity_service, profile_repository, clock=clock)
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
