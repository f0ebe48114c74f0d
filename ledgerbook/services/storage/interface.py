"""
Abstract Document Store Interface

DESIGN DECISION: The hosted backend is treated as an opaque key-document
store. We define an abstract interface so that:
1. Google Sheets (or a hosted document database) can back it
2. In-memory storage can be used for testing
3. Business logic stays decoupled from the backend

The interface is intentionally small - list/get/create/update/delete on
flat documents grouped into named collections. Anything richer (joins,
transactions, conflict checks) is not offered; writes are
last-writer-wins.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field


CREATED_AT_FIELD = "$createdAt"


class Document(BaseModel):
    """A stored document: store-assigned identity plus flat fields."""

    id: str
    collection: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    data: dict[str, Any] = Field(default_factory=dict)

    def sort_value(self, field: Optional[str]) -> tuple:
        """Ordering key for `field`; missing values sort below present ones."""
        if field is None or field == CREATED_AT_FIELD:
            return (True, self.created_at)
        value = self.data.get(field)
        if value is None:
            return (False, "")
        return (True, value)


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document store operations.

    Any backend (Google Sheets, hosted document DB, memory) must
    implement these methods. All failures surface as StorageError
    subclasses.
    """

    @abstractmethod
    async def list_documents(
        self,
        collection: str,
        search: Optional[tuple[str, str]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """
        List documents in a collection.

        Args:
            collection: Collection name
            search: (field, text) - keep documents whose field contains
                    text, case-insensitively
            order_by: Field to order by (creation time if None)
            descending: Newest/largest first when True
            limit: Maximum number of results

        Returns:
            Matching documents

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[Document]:
        """
        Retrieve a document by id.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        """
        Create a document.

        Args:
            collection: Collection name
            data: Document fields
            document_id: Explicit id, or None for a server-generated one

        Returns:
            The created document (with id and timestamps)

        Raises:
            DuplicateError: If the id is already taken
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
    ) -> Document:
        """
        Partially update a document; fields not in `data` are kept.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """
        Delete a document by id.

        Returns:
            True if deleted, False if it did not exist
        """
        pass


def apply_query(
    documents: Iterable[Document],
    search: Optional[tuple[str, str]] = None,
    order_by: Optional[str] = None,
    descending: bool = True,
    limit: Optional[int] = None,
) -> list[Document]:
    """Filter, order and cap documents the way list_documents promises."""
    results = list(documents)

    if search is not None:
        field, text = search
        needle = text.lower()
        results = [
            doc for doc in results
            if needle in str(doc.data.get(field) or "").lower()
        ]

    results.sort(key=lambda doc: doc.sort_value(order_by), reverse=descending)

    if limit is not None:
        results = results[:limit]
    return results


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class TransportError(StorageError):
    """A store call failed in transit or was rejected by the backend."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
