"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted table store because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for one person's finances)
- No transactions (an insert followed by a failed attachment upload leaves
  the row behind; callers accept that)
- Limited query capabilities (we filter in Python)

Each table is one worksheet whose first row holds the column names.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.models.audit import AuditEvent
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TableQuery,
    TableStoreInterface,
    as_iso_date,
    new_record_id,
    sort_key,
)


logger = structlog.get_logger(__name__)


# Column layout per table
TABLE_COLUMNS = {
    "expenses": [
        "id",
        "user_id",
        "created_at",
        "amount",
        "description",
        "category",
        "currency",
        "date",
        "ai_suggested",
    ],
    "expense_attachments": [
        "id",
        "user_id",
        "created_at",
        "expense_id",
        "file_name",
        "file_path",
        "file_type",
        "file_size",
    ],
    "income": [
        "id",
        "user_id",
        "created_at",
        "amount",
        "description",
        "category",
        "currency",
        "date",
        "file_attachments",
    ],
    "reminders": [
        "id",
        "user_id",
        "created_at",
        "title",
        "description",
        "category",
        "due_date",
        "amount",
        "is_completed",
    ],
    "stored_links": [
        "id",
        "user_id",
        "created_at",
        "title",
        "url",
        "description",
        "category",
    ],
}

# Columns holding lists, stored as JSON text
JSON_COLUMNS = {"file_attachments"}

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
]

# Transient Sheets API failures (quota, 5xx) are retried; anything else
# surfaces on the first attempt.
api_retry = retry(
    retry=retry_if_exception_type(APIError),
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

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        self._worksheets[title] = sheet
        return sheet

    def get_table_sheet(self, table: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a table."""
        if table not in TABLE_COLUMNS:
            raise StorageError(f"Unknown table: {table}")
        return self._get_or_create(
            f"{self._settings.sheet_prefix}{table}",
            TABLE_COLUMNS[table],
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def _to_cell(column: str, value: Any) -> str:
    """Serialise one value for a sheet cell."""
    if value is None:
        return ""
    if column in JSON_COLUMNS:
        return json.dumps(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):  # Enum members
        return str(value.value)
    return str(value)


def _from_cell(column: str, cell: str) -> Any:
    """Parse a sheet cell back. Empty cells become None."""
    if cell == "":
        return None
    if column in JSON_COLUMNS:
        return json.loads(cell)
    return cell


class GoogleSheetsTableStore(TableStoreInterface):
    """
    Google Sheets implementation of the table store.

    Records are stored as rows, one worksheet per table.
    Values come back as strings; the record models parse them.

    Each backend call is one retried unit that re-reads the sheet, so a
    retry never acts on a row index from an earlier attempt.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_dict(self, table: str, row: list) -> dict:
        """Convert a spreadsheet row to a column dict."""
        columns = TABLE_COLUMNS[table]
        # Handle missing trailing cells gracefully
        padded = list(row) + [""] * (len(columns) - len(row))
        return {
            column: _from_cell(column, padded[idx])
            for idx, column in enumerate(columns)
        }

    def _dict_to_row(self, table: str, data: dict) -> list:
        """Convert a column dict to a spreadsheet row."""
        return [_to_cell(column, data.get(column)) for column in TABLE_COLUMNS[table]]

    def _find_row(self, all_rows: list, record_id: str, owner_id: str) -> Optional[int]:
        # Sheet rows are 1-based and row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if len(row) > 1 and row[0] == record_id and row[1] == owner_id:
                return idx
        return None

    @api_retry
    def _read_rows(self, table: str) -> list[list]:
        return self._client.get_table_sheet(table).get_all_values()[1:]  # Skip header

    @api_retry
    def _append_row(self, table: str, row: list) -> None:
        sheet = self._client.get_table_sheet(table)
        # An earlier attempt may have landed even though its response was lost
        if row[0] in sheet.col_values(1):
            return
        sheet.append_row(row, value_input_option="RAW")

    @api_retry
    def _update_row(self, table: str, record_id: str, owner_id: str, changes: dict) -> dict:
        sheet = self._client.get_table_sheet(table)
        all_rows = sheet.get_all_values()

        idx = self._find_row(all_rows, record_id, owner_id)
        if idx is None:
            raise NotFoundError(f"{table} row not found: {record_id}")

        current = self._row_to_dict(table, all_rows[idx - 1])
        current.update(changes)
        new_row = self._dict_to_row(table, current)

        # Only touch the cells that changed
        for col_idx, column in enumerate(TABLE_COLUMNS[table], start=1):
            if column in changes:
                sheet.update_cell(idx, col_idx, new_row[col_idx - 1])
        return current

    @api_retry
    def _delete_row(self, table: str, record_id: str, owner_id: str) -> bool:
        sheet = self._client.get_table_sheet(table)
        idx = self._find_row(sheet.get_all_values(), record_id, owner_id)
        if idx is None:
            return False
        sheet.delete_rows(idx)
        return True

    async def select(self, query: TableQuery) -> list[dict]:
        """Select rows, filtering and ordering in Python."""
        try:
            all_rows = self._read_rows(query.table)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {query.table}: {e}")

        results = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            data = self._row_to_dict(query.table, row)

            # Apply filters
            if any(_to_cell(col, value) != _to_cell(col, data.get(col))
                   for col, value in query.equals.items()):
                continue
            if any(as_iso_date(data.get(col)) < cutoff.isoformat()
                   for col, cutoff in query.on_or_after.items()):
                continue

            results.append(data)

        if query.order_by:
            results.sort(
                key=lambda r: sort_key(r.get(query.order_by)),
                reverse=not query.ascending,
            )
        return results

    async def insert(self, table: str, row: dict) -> dict:
        """Append a row, assigning id and created_at once for all attempts."""
        stored = dict(row)
        stored.setdefault("id", new_record_id())
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        try:
            self._append_row(table, self._dict_to_row(table, stored))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to insert into {table}: {e}")
        return stored

    async def update(
        self,
        table: str,
        record_id: str,
        owner_id: str,
        changes: dict,
    ) -> dict:
        """Update an owned row cell by cell."""
        try:
            return self._update_row(table, record_id, owner_id, changes)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {table} row: {e}")

    async def delete(
        self,
        table: str,
        record_id: str,
        owner_id: str,
    ) -> bool:
        """Delete an owned row."""
        try:
            return self._delete_row(table, record_id, owner_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {table} row: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e))
            return False
