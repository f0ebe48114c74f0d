"""Services package."""

from ledgerbook.services.storage import (
    ConnectionError,
    Document,
    DocumentStoreInterface,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    GroupSettlementCollection,
    InMemoryDocumentStore,
    LandActivityCollection,
    LoanCollection,
    NotFoundError,
    StorageError,
    TransportError,
)

__all__ = [
    "ConnectionError",
    "Document",
    "DocumentStoreInterface",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "GroupSettlementCollection",
    "InMemoryDocumentStore",
    "LandActivityCollection",
    "LoanCollection",
    "NotFoundError",
    "StorageError",
    "TransportError",
]
