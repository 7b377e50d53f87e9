"""Services package."""

from finance_tracker.services.blob import CloudinaryBlobStorage
from finance_tracker.services.storage import (
    AuditStorageInterface,
    BlobStorageError,
    BlobStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTableStore,
    InMemoryBlobStorage,
    InMemoryTableStore,
    NotFoundError,
    StorageError,
    TableQuery,
    TableStoreInterface,
)

__all__ = [
    # Blob storage
    "CloudinaryBlobStorage",
    # Storage services
    "AuditStorageInterface",
    "BlobStorageError",
    "BlobStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTableStore",
    "InMemoryBlobStorage",
    "InMemoryTableStore",
    "NotFoundError",
    "StorageError",
    "TableQuery",
    "TableStoreInterface",
]
