"""SQLAlchemy database models for Whack-A-Task."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, DateTime, JSON

from whackatask.database.database import Base


class DocumentDB(Base):
    """A schemaless document, addressed by (collection, key).

    Stands in for a remote key/value document store: the `data` column holds
    the whole document and nothing validates its shape.
    """

    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    key = Column(String, primary_key=True)

    data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class IdentityDB(Base):
    """Credential record for the local identity service."""

    __tablename__ = "identities"

    # Opaque identity token handed to clients
    uid = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)

    email = Column(String, nullable=False, unique=True, index=True)

    # "<iterations>$<salt hex>$<hash hex>"
    password_hash = Column(String, nullable=False)

    # Throttling of repeated bad passwords
    failed_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_sign_in_at = Column(DateTime, nullable=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from whackatask.auth.identity import Identity

        return Identity(uid=self.uid, email=self.email)
