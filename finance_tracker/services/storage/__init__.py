"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the external
table store, attachment storage and audit log. Google Sheets is the hosted
backend; the in-memory one backs tests and local development.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    BlobStorageError,
    BlobStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TableQuery,
    TableStoreInterface,
)
from finance_tracker.services.storage.memory import (
    InMemoryBlobStorage,
    InMemoryTableStore,
)
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTableStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BlobStorageInterface",
    "TableQuery",
    "TableStoreInterface",
    # Exceptions
    "BlobStorageError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryBlobStorage",
    "InMemoryTableStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTableStore",
]
