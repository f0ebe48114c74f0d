"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets backs the document store because:
1. The ledger owner can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Each collection is one worksheet. Each document is one row:
    id | created_at | updated_at | data_json

TRADEOFFS:
- Not suitable for high-volume data (a personal ledger is small)
- No transactions (multi-step writes can be left half done)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledgerbook.config import get_settings
from ledgerbook.services.storage.interface import (
    Document,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    TransportError,
    ConnectionError,
    apply_query,
)
from ledgerbook.services.storage.memory import generate_document_id


DOCUMENT_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "data_json",
]

transport_retry = retry(
    retry=retry_if_exception_type(TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection in self._worksheets:
            return self._worksheets[collection]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(collection)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=collection,
                rows=self._settings.initial_rows,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)

        self._worksheets[collection] = sheet
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Document fields are JSON-serialized into a single cell so that
    collections can evolve without touching the sheet layout.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, doc: Document) -> list:
        """Convert a Document to a spreadsheet row."""
        return [
            doc.id,
            doc.created_at.isoformat(),
            doc.updated_at.isoformat(),
            json.dumps(doc.data, default=str, ensure_ascii=False),
        ]

    def _row_to_document(self, collection: str, row: list) -> Document:
        """Convert a spreadsheet row to a Document."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        data_json = safe_get(3)
        return Document(
            id=safe_get(0),
            collection=collection,
            created_at=datetime.fromisoformat(safe_get(1)),
            updated_at=datetime.fromisoformat(safe_get(2) or safe_get(1)),
            data=json.loads(data_json) if data_json else {},
        )

    def _rows(self, collection: str) -> tuple[gspread.Worksheet, list[list]]:
        sheet = self._client.get_collection_sheet(collection)
        return sheet, sheet.get_all_values()

    def _find_row(
        self,
        rows: list[list],
        document_id: str,
    ) -> Optional[tuple[int, list]]:
        # Sheet rows are 1-based and row 1 is the header
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == document_id:
                return idx, row
        return None

    @transport_retry
    async def list_documents(
        self,
        collection: str,
        search: Optional[tuple[str, str]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """List documents with optional search and ordering."""
        try:
            _, rows = self._rows(collection)
        except ConnectionError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to list {collection}: {e}")

        documents = []
        for row in rows[1:]:  # Skip header
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                documents.append(self._row_to_document(collection, row))
            except ValueError:
                continue  # Skip malformed rows

        return apply_query(documents, search, order_by, descending, limit)

    @transport_retry
    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[Document]:
        """Retrieve a document by its id."""
        try:
            _, rows = self._rows(collection)
        except ConnectionError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to get {collection}/{document_id}: {e}")

        found = self._find_row(rows, document_id)
        if found is None:
            return None
        return self._row_to_document(collection, found[1])

    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        """
        Append a new document row.

        The id and timestamps are fixed before the first attempt, so a retry
        after an append that landed finds its own row instead of writing a
        second copy.
        """
        if document_id is not None:
            if await self.get_document(collection, document_id) is not None:
                raise DuplicateError(f"Document already exists: {collection}/{document_id}")
        else:
            document_id = generate_document_id()

        now = datetime.utcnow()
        doc = Document(
            id=document_id,
            collection=collection,
            created_at=now,
            updated_at=now,
            data=dict(data),
        )
        return await self._append_document(doc)

    @transport_retry
    async def _append_document(self, doc: Document) -> Document:
        try:
            sheet, rows = self._rows(doc.collection)
            if self._find_row(rows, doc.id) is None:
                sheet.append_row(self._document_to_row(doc), value_input_option="RAW")
            return doc
        except ConnectionError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to create document in {doc.collection}: {e}")

    @transport_retry
    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
    ) -> Document:
        """Merge fields into an existing document row."""
        try:
            sheet, rows = self._rows(collection)
            found = self._find_row(rows, document_id)
            if found is None:
                raise NotFoundError(f"Document not found: {collection}/{document_id}")

            idx, row = found
            doc = self._row_to_document(collection, row)
            doc.data.update(data)
            doc.updated_at = datetime.utcnow()

            # Update each cell in the row
            for col_idx, value in enumerate(self._document_to_row(doc), start=1):
                sheet.update_cell(idx, col_idx, value)

            return doc
        except (NotFoundError, ConnectionError):
            raise
        except Exception as e:
            raise TransportError(f"Failed to update {collection}/{document_id}: {e}")

    @transport_retry
    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document row."""
        try:
            sheet, rows = self._rows(collection)
            found = self._find_row(rows, document_id)
            if found is None:
                return False
            sheet.delete_rows(found[0])
            return True
        except ConnectionError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to delete {collection}/{document_id}: {e}")
