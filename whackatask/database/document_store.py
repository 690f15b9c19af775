"""Document store backed by the `documents` table.

The store offers whole-document semantics only: read a document, replace a
document, or replace named top-level fields of a document. There is no
schema enforcement, no versioning and no compare-and-swap; the last write
wins.

Database work runs in a worker thread so callers on the event loop are not
blocked while a query is in flight.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session, sessionmaker

from whackatask.database.models import DocumentDB

logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    """Raised when updating fields of a document that does not exist."""


class DocumentStore:
    """Key/value document storage grouped into collections.

    Each call opens its own database session, so one store instance can be
    shared by long-lived client sessions.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _find(self, db: Session, collection: str, key: str) -> Optional[DocumentDB]:
        return db.query(DocumentDB).filter(
            DocumentDB.collection == collection,
            DocumentDB.key == key,
        ).first()

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Read a whole document, or None if it does not exist."""
        return await asyncio.to_thread(self._get, collection, key)

    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        """Create or fully replace a document."""
        await asyncio.to_thread(self._set, collection, key, data)

    async def update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        """Replace the named top-level fields of an existing document.

        Each field is replaced as a whole; other fields are left untouched.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        await asyncio.to_thread(self._update, collection, key, fields)

    async def keys(self, collection: str) -> List[str]:
        """List document keys in a collection (insertion order not guaranteed)."""
        return await asyncio.to_thread(self._keys, collection)

    def _get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            doc_db = self._find(db, collection, key)
            return copy.deepcopy(doc_db.data) if doc_db else None
        finally:
            db.close()

    def _set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        db = self.session_factory()
        try:
            doc_db = self._find(db, collection, key)
            if doc_db:
                doc_db.data = copy.deepcopy(data)
            else:
                db.add(DocumentDB(collection=collection, key=key, data=copy.deepcopy(data)))
            db.commit()
            logger.debug(f"Wrote document {collection}/{key}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to write document {collection}/{key}: {type(e).__name__}: {str(e)}")
            raise
        finally:
            db.close()

    def _update(self, collection: str, key: str, fields: Dict[str, Any]) -> None:
        db = self.session_factory()
        try:
            doc_db = self._find(db, collection, key)
            if not doc_db:
                raise DocumentNotFoundError(f"Document {collection}/{key} not found")
            # Assign a new dict so the JSON column registers the change
            doc_db.data = {**doc_db.data, **copy.deepcopy(fields)}
            db.commit()
            logger.debug(f"Updated fields {sorted(fields)} of document {collection}/{key}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to update document {collection}/{key}: {type(e).__name__}: {str(e)}")
            raise
        finally:
            db.close()

    def _keys(self, collection: str) -> List[str]:
        db = self.session_factory()
        try:
            rows = db.query(DocumentDB.key).filter(DocumentDB.collection == collection).all()
            return [row[0] for row in rows]
        finally:
            db.close()
