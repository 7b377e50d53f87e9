"""
Record Store Base

A record store is the client-side cache for one table of the signed-in
user's records: an ordered list, a loading flag, and fetch/add/update/delete
against the external table store.

RULES every store follows:
1. No session, no call. Signed out is a normal state, not an error; every
   operation returns immediately without touching the cache.
2. Fetch failures keep the previous cache. The user gets a toast, the
   cache stays stale-but-consistent.
3. Mutations never patch the cache. After a successful mutation the store
   hands itself to its RefreshStrategy; the default strategy re-fetches.
4. Responses to superseded fetches are dropped (request sequencing), so a
   slow old response can't overwrite the result of a newer filter.
5. Ownership is re-asserted on every update/delete by passing the session's
   user id to the table store.
"""

import asyncio
import datetime as dt
from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar
from uuid import uuid4

import structlog
from pydantic import BaseModel, ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.filters import DEFAULT_SEARCH_FIELDS, apply_search, time_filter_cutoff
from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.models.records import TimeFilter, UploadedFile, UserSession
from finance_tracker.notifications import Notifier
from finance_tracker.services.storage import (
    BlobStorageError,
    BlobStorageInterface,
    StorageError,
    TableQuery,
    TableStoreInterface,
)


logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RefreshStrategy(ABC):
    """What a store does to its cache after a successful mutation."""

    @abstractmethod
    async def after_mutation(self, store: "RecordStore") -> None:
        pass


class RefetchStrategy(RefreshStrategy):
    """Re-run the last fetch. Correctness over latency."""

    async def after_mutation(self, store: "RecordStore") -> None:
        await store.refresh()


class ManualRefresh(RefreshStrategy):
    """Leave the cache alone; the caller re-fetches when it wants to."""

    async def after_mutation(self, store: "RecordStore") -> None:
        return None


def to_column_value(value: Any) -> Any:
    """Convert a Python value to what the table store expects in a column."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


def attachment_path(owner_id: str, record_id: str, extension: str) -> str:
    """Storage key for an attachment: {owner}/{record}/{unique}.{ext}"""
    return f"{owner_id}/{record_id}/{uuid4().hex}.{extension}"


def acceptable_files(files: Iterable[UploadedFile], max_bytes: int) -> list[UploadedFile]:
    """Images and PDFs under the size limit; anything else is dropped."""
    return [f for f in files if f.is_acceptable(max_bytes)]


class RecordStore(Generic[RecordT]):
    """
    Generic cache + CRUD for one table.

    Subclasses set the table layout as class attributes.
    """

    table: str = ""
    model: type[BaseModel] = BaseModel
    create_model: type[BaseModel] = BaseModel

    # Human names used in toasts: "Failed to load expenses." / "Expense added"
    noun: str = "Record"
    plural: str = "records"

    date_column: str = "date"
    order_column: str = "date"
    ascending: bool = False
    search_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS
    updatable_fields: frozenset[str] = frozenset()
    attachment_bucket: Optional[str] = None
    max_upload_bytes: int = 10 * 1024 * 1024

    def __init__(
        self,
        table_store: TableStoreInterface,
        session: Optional[UserSession] = None,
        notifier: Optional[Notifier] = None,
        audit_logger: Optional[AuditLogger] = None,
        blob_storage: Optional[BlobStorageInterface] = None,
        refresh_strategy: Optional[RefreshStrategy] = None,
        clock: Optional[Callable[[], dt.date]] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self._tables = table_store
        self._session = session
        self._notifier = notifier or Notifier()
        self._audit_logger = audit_logger or AuditLogger()
        self._blobs = blob_storage
        self._refresh_strategy = refresh_strategy or RefetchStrategy()
        self._clock = clock or dt.date.today
        if max_upload_bytes is not None:
            self.max_upload_bytes = max_upload_bytes

        self.records: list[RecordT] = []
        self.loading = False
        self.time_filter: Optional[TimeFilter] = None
        self.search: Optional[str] = None
        self._fetch_seq = 0

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Optional[UserSession]:
        return self._session

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def today(self) -> dt.date:
        return self._clock()

    def get(self, record_id: str) -> Optional[RecordT]:
        """Look a record up in the cache."""
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------------------

    def _build_query(self, time_filter: Optional[TimeFilter]) -> TableQuery:
        query = TableQuery(
            table=self.table,
            equals={"user_id": self._session.user_id},
            order_by=self.order_column,
            ascending=self.ascending,
        )
        cutoff = time_filter_cutoff(time_filter, self.today())
        if cutoff is not None:
            query.on_or_after[self.date_column] = cutoff
        return query

    async def _load_rows(self, query: TableQuery) -> list[dict]:
        return await self._tables.select(query)

    def _to_record(self, row: dict) -> RecordT:
        return self.model.model_validate(row)

    async def fetch(
        self,
        time_filter: Optional[TimeFilter] = None,
        search: Optional[str] = None,
    ) -> list[RecordT]:
        """
        Load the user's records into the cache.

        The time filter runs inside the table store; the search runs here on
        what came back. Returns the cache after the call.
        """
        if self._session is None:
            return self.records

        if time_filter is not None:
            time_filter = TimeFilter(time_filter)
        self.time_filter = time_filter
        self.search = search

        self._fetch_seq += 1
        sequence = self._fetch_seq
        self.loading = True
        user_id = self._session.user_id

        try:
            rows = await self._load_rows(self._build_query(time_filter))
            records = [self._to_record(row) for row in rows]
        except (StorageError, ValidationError) as e:
            if sequence == self._fetch_seq:
                self.loading = False
                self._notifier.error(f"Failed to load {self.plural}.")
            await self._audit(AuditEventBuilder.fetch_failed(self.table, user_id, str(e)))
            return self.records

        if sequence != self._fetch_seq:
            await self._audit(AuditEventBuilder.stale_fetch_dropped(
                self.table, user_id, sequence, self._fetch_seq,
            ))
            return self.records

        self.records = apply_search(records, search, self.search_fields)
        self.loading = False
        await self._audit(AuditEventBuilder.records_fetched(
            self.table,
            user_id,
            len(self.records),
            time_filter.value if time_filter else None,
            search,
        ))
        return self.records

    async def refresh(self) -> list[RecordT]:
        """Re-run the last fetch with the same filters."""
        return await self.fetch(self.time_filter, self.search)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _payload(self, data: BaseModel) -> dict:
        payload = data.model_dump(mode="json", exclude_none=True)
        payload["user_id"] = self._session.user_id
        return payload

    async def add(
        self,
        data: Any,
        attachments: Optional[Sequence[UploadedFile]] = None,
    ) -> Optional[RecordT]:
        """
        Insert a record, then upload its attachments.

        The inserted row is not rolled back if an upload fails; the error
        is re-raised after the user has been told. Returns the new record as
        inserted (attachments are picked up by the next fetch).
        """
        if self._session is None:
            return None

        if not isinstance(data, self.create_model):
            data = self.create_model.model_validate(data)
        user_id = self._session.user_id

        files = list(attachments or [])
        accepted = acceptable_files(files, self.max_upload_bytes)
        for skipped in files:
            if skipped not in accepted:
                self._notifier.error(
                    f"{skipped.name} was skipped. Only images and PDFs up to "
                    f"{self.max_upload_bytes // (1024 * 1024)}MB are accepted.",
                    title="Invalid file",
                )

        record = None
        try:
            row = await self._tables.insert(self.table, self._payload(data))
            record = self._to_record(row)
            if accepted:
                await self._store_attachments(record, accepted)
        except (StorageError, ValidationError) as e:
            self._notifier.error(f"Failed to add {self.noun.lower()}.")
            await self._audit(AuditEventBuilder.mutation_failed(
                self.table, "add", user_id, str(e),
                record_id=record.id if record is not None else None,
            ))
            raise

        self._notifier.success(f"{self.noun} added successfully!")
        await self._audit(AuditEventBuilder.record_added(
            self.table, record.id, user_id, len(accepted),
        ))
        await self._refresh_strategy.after_mutation(self)
        return record

    async def update(self, record_id: str, changes: dict) -> Optional[RecordT]:
        """
        Update whitelisted columns of one owned record.

        The cache isn't patched; the refresh strategy takes care of it.
        """
        if self._session is None:
            return None

        allowed = {
            key: to_column_value(value)
            for key, value in changes.items()
            if key in self.updatable_fields
        }
        if not allowed:
            return None
        user_id = self._session.user_id

        try:
            row = await self._tables.update(self.table, record_id, user_id, allowed)
            record = self._to_record(row)
        except (StorageError, ValidationError) as e:
            self._notifier.error(f"Failed to update {self.noun.lower()}.")
            await self._audit(AuditEventBuilder.mutation_failed(
                self.table, "update", user_id, str(e), record_id=record_id,
            ))
            raise

        self._notifier.success(f"{self.noun} updated successfully!")
        await self._audit(AuditEventBuilder.record_updated(
            self.table, record_id, user_id, sorted(allowed),
        ))
        await self._refresh_strategy.after_mutation(self)
        return record

    async def delete(
        self,
        record_id: str,
        confirm: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """
        Delete one owned record.

        When ``confirm`` is given and returns False nothing happens: no
        call, no toast, no error.
        """
        if self._session is None:
            return False
        if confirm is not None and not confirm():
            return False
        user_id = self._session.user_id

        try:
            deleted = await self._tables.delete(self.table, record_id, user_id)
        except StorageError as e:
            self._notifier.error(f"Failed to delete {self.noun.lower()}.")
            await self._audit(AuditEventBuilder.mutation_failed(
                self.table, "delete", user_id, str(e), record_id=record_id,
            ))
            raise

        self._notifier.success(f"{self.noun} deleted successfully!")
        await self._audit(AuditEventBuilder.record_deleted(self.table, record_id, user_id))
        await self._refresh_strategy.after_mutation(self)
        return deleted

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    async def _store_attachments(self, record: RecordT, files: list[UploadedFile]) -> list[str]:
        """
        Upload all files concurrently and wait for every one to settle.

        Fails if any upload failed; the ones that succeeded stay stored.
        """
        if self.attachment_bucket is None:
            raise BlobStorageError(f"{self.plural} don't take attachments")
        if self._blobs is None:
            raise BlobStorageError("Attachment storage is not configured")

        results = await asyncio.gather(
            *(self._upload_one(record, f) for f in files),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _upload_one(self, record: RecordT, file: UploadedFile) -> str:
        user_id = self._session.user_id
        path = attachment_path(user_id, record.id, file.extension)
        try:
            await self._blobs.upload(self.attachment_bucket, path, file.content, file.content_type)
        except StorageError as e:
            await self._audit(AuditEventBuilder.attachment_failed(
                self.table, record.id, user_id, file.name, str(e),
            ))
            raise
        await self._audit(AuditEventBuilder.attachment_uploaded(
            self.table, record.id, user_id, path, file.size,
        ))
        await self._after_upload(record, file, path)
        return path

    async def _after_upload(self, record: RecordT, file: UploadedFile, path: str) -> None:
        """Hook for per-file bookkeeping once a file is stored."""
        return None

    async def download_attachment(self, path: str) -> Optional[bytes]:
        """Read an attachment of one of this user's records back."""
        if self._session is None:
            return None
        if self._blobs is None or self.attachment_bucket is None:
            raise BlobStorageError("Attachment storage is not configured")
        if not path.startswith(f"{self._session.user_id}/"):
            raise BlobStorageError("Attachment belongs to another user")
        return await self._blobs.download(self.attachment_bucket, path)

    async def load_attachment(self, path: str, file_name: str) -> Optional[bytes]:
        """
        download_attachment for display code.

        A missing or unreadable file is reported with a toast and gives None,
        so one broken attachment doesn't take the whole list down.
        """
        try:
            return await self.download_attachment(path)
        except StorageError as e:
            logger.warning("attachment_download_failed", table=self.table, path=path, error=str(e))
            self._notifier.error(f"Could not load {file_name}.", title="Attachment unavailable")
            return None

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    async def _audit(self, event: AuditEvent) -> None:
        await self._audit_logger.log(event)
