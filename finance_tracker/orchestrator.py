"""
Application Wiring

This module ties the stores, the bridge and the report service to the
configured backends for one signed-in user.

DESIGN DECISION: Hosted backends are optional.
- storage_backend=google_sheets wires gspread tables, the Sheets audit log
  and Cloudinary attachments.
- If any of those can't be configured, the app keeps working on in-memory
  backends and logs a warning instead of refusing to start.
"""

import asyncio
import datetime as dt
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.bridge import ReminderCompletionBridge
from finance_tracker.config import get_settings
from finance_tracker.filters import SearchDebouncer
from finance_tracker.models.records import TransactionKind, UserSession
from finance_tracker.notifications import Notifier
from finance_tracker.reports import ReportService
from finance_tracker.services.blob import CloudinaryBlobStorage
from finance_tracker.services.storage import (
    AuditStorageInterface,
    BlobStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTableStore,
    InMemoryBlobStorage,
    InMemoryTableStore,
    StorageError,
    TableStoreInterface,
)
from finance_tracker.stores import (
    ExpenseStore,
    IncomeStore,
    ReminderStore,
    RecordStore,
    StoredLinkStore,
)


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything the UI needs for one session."""

    session: Optional[UserSession]
    notifier: Notifier
    audit_logger: AuditLogger
    expenses: ExpenseStore
    income: IncomeStore
    reminders: ReminderStore
    links: StoredLinkStore
    bridge: ReminderCompletionBridge
    reports: ReportService
    backend: str
    search_debouncers: dict[str, SearchDebouncer] = field(default_factory=dict)

    @property
    def transaction_stores(self) -> tuple[ExpenseStore, IncomeStore]:
        return self.expenses, self.income

    async def load_all(self) -> None:
        """Fetch expenses, income and reminders with no filter (aggregations need everything)."""
        await asyncio.gather(
            self.expenses.fetch(),
            self.income.fetch(),
            self.reminders.fetch(),
        )

    def search_debouncer(self, store: RecordStore) -> SearchDebouncer:
        """One debouncer per list view, feeding that store's fetch."""
        if store.table not in self.search_debouncers:
            self.search_debouncers[store.table] = SearchDebouncer(
                lambda request: store.fetch(*request)
            )
        return self.search_debouncers[store.table]


def _hosted_backends() -> tuple[TableStoreInterface, AuditStorageInterface, BlobStorageInterface]:
    """Google Sheets tables + audit log, Cloudinary attachments."""
    client = GoogleSheetsClient()
    client.connect()
    return (
        GoogleSheetsTableStore(client),
        GoogleSheetsAuditStorage(client),
        CloudinaryBlobStorage(),
    )


def create_app_components(
    session: Optional[UserSession],
    notifier: Optional[Notifier] = None,
    table_store: Optional[TableStoreInterface] = None,
    blob_storage: Optional[BlobStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    bridge_kind: TransactionKind = TransactionKind.INCOME,
    clock: Optional[Callable[[], dt.date]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        session: The signed-in user, or None when signed out.
        notifier: Where toasts go. A fresh collector if omitted.
        table_store / blob_storage / audit_storage: Explicit backends
            (tests pass in-memory ones). When omitted they come from
            settings.
        bridge_kind: Whether completed reminders record income or expenses.
        clock: Source of "today" for filters, the bridge and reports.
    """
    app_settings = get_settings().app
    notifier = notifier or Notifier()
    backend = "custom" if table_store is not None else app_settings.storage_backend

    if table_store is None and app_settings.storage_backend == "google_sheets":
        try:
            table_store, hosted_audit, hosted_blobs = _hosted_backends()
            audit_storage = audit_storage or hosted_audit
            blob_storage = blob_storage or hosted_blobs
        except (ValidationError, StorageError) as e:
            # Storage not configured - continue on memory
            logger.warning("hosted_storage_unavailable", error=str(e))
            table_store = None
            backend = "memory"

    if table_store is None:
        table_store = InMemoryTableStore()
        backend = "memory"
    if blob_storage is None:
        blob_storage = InMemoryBlobStorage()

    audit_logger = AuditLogger(audit_storage)

    store_kwargs = dict(
        session=session,
        notifier=notifier,
        audit_logger=audit_logger,
        blob_storage=blob_storage,
        clock=clock,
        max_upload_bytes=app_settings.max_upload_size_bytes,
    )
    expenses = ExpenseStore(table_store, **store_kwargs)
    income = IncomeStore(table_store, **store_kwargs)
    reminders = ReminderStore(table_store, **store_kwargs)
    links = StoredLinkStore(table_store, **store_kwargs)

    transactions = income if bridge_kind == TransactionKind.INCOME else expenses
    bridge = ReminderCompletionBridge(
        reminders,
        transactions,
        kind=bridge_kind,
        audit_logger=audit_logger,
    )
    reports = ReportService(
        notifier=notifier,
        audit_logger=audit_logger,
        currency=app_settings.default_currency,
        clock=clock,
    )

    logger.info(
        "app_components_created",
        backend=backend,
        signed_in=session is not None,
    )

    return AppComponents(
        session=session,
        notifier=notifier,
        audit_logger=audit_logger,
        expenses=expenses,
        income=income,
        reminders=reminders,
        links=links,
        bridge=bridge,
        reports=reports,
        backend=backend,
    )
