"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for the external backends.
This allows us to:
1. Swap the hosted table store (Google Sheets today) for a real database
2. Use in-memory storage for testing
3. Keep the record stores decoupled from any particular backend

The table interface is intentionally small - we're not building an ORM.
It covers exactly what the record stores need: select with equality,
lower-bound and ordering predicates, insert, and owner-scoped update/delete.

Every row carries a ``user_id`` column. That column is the only
authorization boundary; backends must refuse to update or delete a row
whose owner doesn't match.
"""

import datetime as dt
from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.audit import AuditEvent


class TableQuery(BaseModel):
    """
    A select against one table.

    Predicates are ANDed together:
    - ``equals``: column == value
    - ``on_or_after``: column >= date (ISO date comparison)
    """

    table: str
    equals: dict[str, Any] = Field(default_factory=dict)
    on_or_after: dict[str, dt.date] = Field(default_factory=dict)
    order_by: Optional[str] = None
    ascending: bool = True


class TableStoreInterface(ABC):
    """
    Abstract interface for the hosted relational table store.

    Any backend (Google Sheets, PostgreSQL, etc.) must implement these
    methods. Rows travel as plain dicts keyed by column name.
    """

    @abstractmethod
    async def select(self, query: TableQuery) -> list[dict]:
        """
        Run a select.

        Returns:
            Matching rows in the requested order

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def insert(self, table: str, row: dict) -> dict:
        """
        Insert a row.

        The backend assigns ``id`` and ``created_at``.

        Returns:
            The row as stored, including the assigned fields

        Raises:
            StorageError: If insert fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        record_id: str,
        owner_id: str,
        changes: dict,
    ) -> dict:
        """
        Update one row owned by ``owner_id``.

        Returns:
            The updated row

        Raises:
            NotFoundError: If no row with that id belongs to the owner
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete(
        self,
        table: str,
        record_id: str,
        owner_id: str,
    ) -> bool:
        """
        Delete one row owned by ``owner_id``.

        Returns:
            True if a row was deleted
        """
        pass


class BlobStorageInterface(ABC):
    """
    Abstract interface for attachment file storage.

    Files live in buckets, addressed by a path of the form
    ``{owner}/{record}/{unique-suffix}.{ext}``.
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Store a file.

        Returns:
            The path the file is stored under

        Raises:
            BlobStorageError: If upload fails
        """
        pass

    @abstractmethod
    async def download(self, bucket: str, path: str) -> bytes:
        """
        Read a stored file back.

        Raises:
            NotFoundError: If nothing is stored at that path
            BlobStorageError: If download fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage (or owned by someone else)."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class BlobStorageError(StorageError):
    """Attachment upload or download failed."""
    pass


def as_iso_date(value: Any) -> str:
    """Normalise a date-ish column value for ISO date comparison."""
    return sort_key(value)[:10]


def sort_key(value: Any) -> str:
    """
    Ordering key for a column value.

    Dates, timestamps and the ISO strings backends return for them all sort
    correctly as text.
    """
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if value is None:
        return ""
    return str(value)


def new_record_id() -> str:
    """Identifiers are opaque strings; we hand out UUIDs."""
    return str(uuid4())
