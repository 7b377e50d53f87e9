"""
Tests for the hosted storage adapters and the audit logger.

gspread worksheets are replaced with MagicMock; no Google API is called.
"""

import asyncio
import json
import threading
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import cloudinary.uploader
import pytest
from gspread.exceptions import APIError
from tenacity import wait_none

from finance_tracker.audit import AuditLogger
from finance_tracker.config import CloudinarySettings
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.services.storage import (
    GoogleSheetsTableStore,
    NotFoundError,
    StorageError,
    TableQuery,
)
from finance_tracker.services.blob import CloudinaryBlobStorage
from finance_tracker.services.storage.google_sheets import TABLE_COLUMNS


INCOME_HEADER = TABLE_COLUMNS["income"]


def income_cells(record_id, user_id, on, attachments=""):
    return [record_id, user_id, f"{on}T08:00:00+00:00", "100", "Pay", "Salary", "USD", on, attachments]


@pytest.fixture
def sheet():
    worksheet = MagicMock()
    worksheet.get_all_values.return_value = [
        INCOME_HEADER,
        income_cells("i1", "user-1", "2024-06-01", json.dumps(["user-1/i1/a.pdf"])),
        income_cells("i2", "user-1", "2024-06-20"),
        income_cells("i3", "user-2", "2024-06-21"),
        [],
    ]
    return worksheet


@pytest.fixture
def store(sheet):
    client = MagicMock()
    client.get_table_sheet.return_value = sheet
    return GoogleSheetsTableStore(client)


class TestGoogleSheetsTableStore:
    """Tests for the worksheet-backed table store."""

    def test_select_filters_and_orders(self, store):
        """Test owner filter, date cutoff and descending order."""
        rows = asyncio.run(store.select(TableQuery(
            table="income",
            equals={"user_id": "user-1"},
            on_or_after={"date": date(2024, 6, 1)},
            order_by="date",
            ascending=False,
        )))
        assert [r["id"] for r in rows] == ["i2", "i1"]
        assert rows[1]["file_attachments"] == ["user-1/i1/a.pdf"]
        assert rows[0]["file_attachments"] is None

    def test_insert_assigns_server_fields(self, store, sheet):
        """Test that id and created_at are assigned on append."""
        row = asyncio.run(store.insert("income", {
            "user_id": "user-1",
            "amount": "5",
            "description": "Tip",
            "category": "Other",
            "currency": "USD",
            "date": "2024-06-25",
            "file_attachments": [],
        }))
        assert row["id"]
        assert row["created_at"]
        appended = sheet.append_row.call_args.args[0]
        assert appended[0] == row["id"]
        assert appended[INCOME_HEADER.index("file_attachments")] == "[]"

    def test_update_only_touches_changed_cells(self, store, sheet):
        """Test that an update writes just the changed columns."""
        updated = asyncio.run(store.update("income", "i2", "user-1", {"amount": "250"}))
        assert updated["amount"] == "250"
        sheet.update_cell.assert_called_once_with(3, INCOME_HEADER.index("amount") + 1, "250")

    def test_update_of_foreign_row_not_found(self, store):
        """Test that another user's row can't be updated."""
        with pytest.raises(NotFoundError):
            asyncio.run(store.update("income", "i3", "user-1", {"amount": "1"}))

    def test_delete(self, store, sheet):
        """Test owner-scoped delete."""
        assert asyncio.run(store.delete("income", "i3", "user-1")) is False
        assert asyncio.run(store.delete("income", "i2", "user-1")) is True
        sheet.delete_rows.assert_called_once_with(3)

    def test_backend_errors_become_storage_errors(self, store, sheet):
        """Test that gspread failures surface as StorageError."""
        sheet.get_all_values.side_effect = RuntimeError("quota")
        with pytest.raises(StorageError):
            asyncio.run(store.select(TableQuery(table="income")))

    def test_transient_api_error_is_retried(self, store, sheet, monkeypatch):
        """Test that a 503 from the Sheets API is retried with a fresh read."""
        monkeypatch.setattr(GoogleSheetsTableStore._read_rows.retry, "wait", wait_none())
        response = MagicMock()
        response.json.return_value = {
            "error": {"code": 503, "message": "Service unavailable", "status": "UNAVAILABLE"},
        }
        sheet.get_all_values.side_effect = [APIError(response), sheet.get_all_values.return_value]

        rows = asyncio.run(store.select(TableQuery(table="income", equals={"user_id": "user-1"})))

        assert {r["id"] for r in rows} == {"i1", "i2"}
        assert sheet.get_all_values.call_count == 2

    def test_insert_skips_row_already_written(self, store, sheet):
        """Test that an insert whose id already landed isn't appended twice."""
        sheet.col_values.return_value = ["id", "i9"]

        row = asyncio.run(store.insert("income", {
            "id": "i9",
            "user_id": "user-1",
            "amount": "5",
            "description": "Tip",
            "category": "Other",
            "date": "2024-06-25",
        }))

        assert row["id"] == "i9"
        sheet.append_row.assert_not_called()


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_persists_non_debug_events(self):
        """Test that info events reach storage and debug events don't."""
        storage = MagicMock()
        storage.append_event = AsyncMock(return_value=True)
        logger = AuditLogger(storage)

        asyncio.run(logger.log(AuditEventBuilder.record_added("expenses", "e1", "user-1")))
        asyncio.run(logger.log(AuditEventBuilder.records_fetched("expenses", "user-1", 2, None, None)))

        assert storage.append_event.await_count == 1

    def test_storage_failure_never_raises(self):
        """Test that a broken audit sheet doesn't break the caller."""
        storage = MagicMock()
        storage.append_event = AsyncMock(side_effect=RuntimeError("sheet gone"))
        logger = AuditLogger(storage)

        result = asyncio.run(logger.log(AuditEventBuilder.record_deleted("expenses", "e1", "user-1")))

        assert result is False


class TestCloudinaryBlobStorage:
    """Tests for the Cloudinary attachment store (SDK calls patched)."""

    def test_uploads_run_side_by_side(self, monkeypatch):
        """Test that two gathered uploads are in the SDK at the same time."""
        barrier = threading.Barrier(2, timeout=5)

        def upload(content, **options):
            barrier.wait()
            return {"secure_url": f"https://res.cloudinary.com/demo/raw/upload/{options['public_id']}"}

        monkeypatch.setattr(cloudinary.uploader, "upload", upload)
        storage = CloudinaryBlobStorage(
            CloudinarySettings(cloud_name="demo", api_key="key", api_secret="secret")
        )

        async def scenario():
            return await asyncio.gather(
                storage.upload("expense-attachments", "user-1/e1/a.png", b"a", "image/png"),
                storage.upload("expense-attachments", "user-1/e1/b.pdf", b"b", "application/pdf"),
            )

        assert asyncio.run(scenario()) == ["user-1/e1/a.png", "user-1/e1/b.pdf"]
