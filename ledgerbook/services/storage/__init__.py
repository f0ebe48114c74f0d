"""
Storage Services Package

Provides the abstract document store, its implementations, and typed
collections on top. Google Sheets is the hosted backend; the in-memory
store backs tests and offline use.
"""

from ledgerbook.services.storage.interface import (
    CREATED_AT_FIELD,
    ConnectionError,
    Document,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransportError,
)
from ledgerbook.services.storage.memory import InMemoryDocumentStore
from ledgerbook.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)
from ledgerbook.services.storage.collections import (
    Collection,
    GroupSettlementCollection,
    LandActivityCollection,
    LoanCollection,
)

__all__ = [
    # Interfaces
    "CREATED_AT_FIELD",
    "Document",
    "DocumentStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "TransportError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    # Collections
    "Collection",
    "GroupSettlementCollection",
    "LandActivityCollection",
    "LoanCollection",
]
