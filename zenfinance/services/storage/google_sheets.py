"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted record store because:
1. Users can view their accounts and transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for personal use)
- No transactions: the ledger write is two API calls, so a failed
  balance increment is undone by deleting the appended transaction row.
  If that undo fails too, BalanceAdjustmentError is raised and the
  balance stays out of sync until fixed by hand.
- Increments are read-modify-write; two sessions editing the same
  account at once can lose an update.
- Limited query capabilities (we filter in Python)
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from zenfinance.config import GoogleSheetsSettings, get_settings
from zenfinance.services.storage.interface import (
    BalanceAdjustmentError,
    Document,
    DocumentStoreInterface,
    EntityKind,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)


logger = structlog.get_logger(__name__)


# Column layout per worksheet; "id" is always first
SHEET_COLUMNS: dict[EntityKind, list[str]] = {
    EntityKind.ACCOUNTS: [
        "id",
        "owner_id",
        "name",
        "institution",
        "balance",
        "color",
        "created_at",
    ],
    EntityKind.TRANSACTIONS: [
        "id",
        "owner_id",
        "account_id",
        "amount",
        "kind",
        "category",
        "note",
        "occurred_at",
    ],
    EntityKind.USERS: [
        "id",
        "email",
        "password_hash",
        "salt",
        "created_at",
    ],
}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[EntityKind, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

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
                raise StoreUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreUnavailableError(f"Failed to connect to Google Sheets: {e}")

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
                raise StoreUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, kind: EntityKind) -> gspread.Worksheet:
        """Get or create the worksheet holding one entity kind."""
        if kind in self._worksheets:
            return self._worksheets[kind]

        spreadsheet = self.get_spreadsheet()
        title = self._settings.sheet_name_for(kind.value)
        columns = SHEET_COLUMNS[kind]
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        self._worksheets[kind] = sheet
        return sheet


def _to_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Each entity kind lives in its own worksheet, one document per row.
    All values are stored as text; RecordStore parses them back into models.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, kind: EntityKind, document: Document) -> list[str]:
        """Convert a document to a spreadsheet row."""
        return [_to_cell(document.get(column)) for column in SHEET_COLUMNS[kind]]

    def _row_to_document(self, kind: EntityKind, row: list) -> Document:
        """Convert a spreadsheet row to a document."""
        # Handle missing trailing columns gracefully
        def safe_get(index: int) -> str:
            try:
                return row[index]
            except IndexError:
                return ""

        return {
            column: safe_get(index)
            for index, column in enumerate(SHEET_COLUMNS[kind])
        }

    def _find_row(self, sheet: gspread.Worksheet, document_id: str) -> tuple[int, list]:
        """Locate a document's 1-based row number and its cell values."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == document_id:
                return idx, row
        raise NotFoundError(f"Document not found: {document_id}")

    async def list_documents(
        self,
        kind: EntityKind,
        owner_id: Optional[str] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[Document]:
        try:
            sheet = self._client.get_worksheet(kind)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to list {kind.value}: {e}")

        documents = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            document = self._row_to_document(kind, row)
            if owner_id is not None and document.get("owner_id") != owner_id:
                continue
            if filters and any(
                document.get(key) != _to_cell(value) for key, value in filters.items()
            ):
                continue
            documents.append(document)
        return documents

    async def get_document(self, kind: EntityKind, document_id: str) -> Optional[Document]:
        try:
            sheet = self._client.get_worksheet(kind)
            _, row = self._find_row(sheet, document_id)
            return self._row_to_document(kind, row)
        except NotFoundError:
            return None
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to get {kind.value} {document_id}: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_document(self, kind: EntityKind, fields: Document) -> Document:
        document = {**fields, "id": uuid4().hex}
        try:
            sheet = self._client.get_worksheet(kind)
            sheet.append_row(self._document_to_row(kind, document), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to create {kind.value}: {e}")
        return self._row_to_document(kind, self._document_to_row(kind, document))

    async def update_document(
        self,
        kind: EntityKind,
        document_id: str,
        fields: Document,
    ) -> Document:
        columns = SHEET_COLUMNS[kind]
        try:
            sheet = self._client.get_worksheet(kind)
            row_number, row = self._find_row(sheet, document_id)
            document = self._row_to_document(kind, row)

            for key, value in fields.items():
                if key == "id" or key not in columns:
                    continue
                cell = _to_cell(value)
                if document.get(key) != cell:
                    sheet.update_cell(row_number, columns.index(key) + 1, cell)
                    document[key] = cell
            return document
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to update {kind.value} {document_id}: {e}")

    async def delete_document(self, kind: EntityKind, document_id: str) -> None:
        try:
            sheet = self._client.get_worksheet(kind)
            row_number, _ = self._find_row(sheet, document_id)
            sheet.delete_rows(row_number)
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to delete {kind.value} {document_id}: {e}")

    async def increment_field(
        self,
        kind: EntityKind,
        document_id: str,
        field: str,
        delta: Decimal,
    ) -> Document:
        columns = SHEET_COLUMNS[kind]
        try:
            sheet = self._client.get_worksheet(kind)
            row_number, row = self._find_row(sheet, document_id)
            document = self._row_to_document(kind, row)

            current = Decimal(document.get(field) or "0")
            document[field] = str(current + delta)
            sheet.update_cell(row_number, columns.index(field) + 1, document[field])
            return document
        except StorageError:
            raise
        except Exception as e:
            raise StoreUnavailableError(
                f"Failed to increment {field} of {kind.value} {document_id}: {e}"
            )

    async def create_and_increment(
        self,
        kind: EntityKind,
        fields: Document,
        target_kind: EntityKind,
        target_id: str,
        field: str,
        delta: Decimal,
    ) -> tuple[Document, Document]:
        # Refuse before writing anything if the target is gone
        if await self.get_document(target_kind, target_id) is None:
            raise NotFoundError(f"{target_kind.value} not found: {target_id}")

        created = await self.create_document(kind, fields)
        try:
            updated = await self.increment_field(target_kind, target_id, field, delta)
        except StorageError as increment_error:
            logger.warning(
                "ledger_increment_failed",
                created_id=created["id"],
                target_id=target_id,
                error=str(increment_error),
            )
            try:
                await self.delete_document(kind, created["id"])
            except StorageError as undo_error:
                raise BalanceAdjustmentError(
                    f"Recorded {kind.value} {created['id']} but could not adjust "
                    f"{target_kind.value} {target_id}: {increment_error}; "
                    f"undo also failed: {undo_error}",
                    recorded=created,
                ) from increment_error
            raise StoreUnavailableError(
                f"Could not adjust {target_kind.value} {target_id}; "
                f"{kind.value} was not recorded: {increment_error}"
            ) from increment_error
        return created, updated
