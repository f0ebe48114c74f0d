"""
In-Memory Document Store

Used in tests and when no backend is configured. Behaves like the hosted
store: server-generated ids, creation timestamps, partial updates.
Returned documents are copies, so callers cannot mutate stored state.
"""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

from ledgerbook.services.storage.interface import (
    Document,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    apply_query,
)


def generate_document_id() -> str:
    """Unique id in the style of hosted stores (20 hex chars)."""
    return uuid4().hex[:20]


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-backed implementation of the document store."""

    def __init__(self):
        self._collections: dict[str, dict[str, Document]] = {}
        self._last_timestamp: Optional[datetime] = None

    def _now(self) -> datetime:
        # Strictly increasing so creation order is total
        now = datetime.utcnow()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    async def list_documents(
        self,
        collection: str,
        search: Optional[tuple[str, str]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Document]:
        documents = [
            doc.model_copy(deep=True)
            for doc in self._collection(collection).values()
        ]
        return apply_query(documents, search, order_by, descending, limit)

    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[Document]:
        doc = self._collection(collection).get(document_id)
        return doc.model_copy(deep=True) if doc else None

    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        documents = self._collection(collection)
        document_id = document_id or generate_document_id()
        if document_id in documents:
            raise DuplicateError(f"Document already exists: {collection}/{document_id}")

        now = self._now()
        doc = Document(
            id=document_id,
            collection=collection,
            created_at=now,
            updated_at=now,
            data=dict(data),
        )
        documents[document_id] = doc
        return doc.model_copy(deep=True)

    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
    ) -> Document:
        documents = self._collection(collection)
        doc = documents.get(document_id)
        if doc is None:
            raise NotFoundError(f"Document not found: {collection}/{document_id}")

        doc.data.update(data)
        doc.updated_at = self._now()
        return doc.model_copy(deep=True)

    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        return self._collection(collection).pop(document_id, None) is not None
