"""
In-Memory Storage Implementation

Used by the test suite and by local development when no hosted backend is
configured. Behaves like the hosted store where it matters to callers:
- ids and creation timestamps are assigned on insert
- update/delete are scoped to the row owner
- callers get copies, never the stored rows themselves
"""

import copy
from datetime import datetime, timezone
from typing import Optional

from finance_tracker.services.storage.interface import (
    BlobStorageInterface,
    NotFoundError,
    TableQuery,
    TableStoreInterface,
    as_iso_date,
    new_record_id,
    sort_key,
)


class InMemoryTableStore(TableStoreInterface):
    """Dict-of-lists table store."""

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None):
        self._tables: dict[str, list[dict]] = copy.deepcopy(tables or {})

    def rows(self, table: str) -> list[dict]:
        """Snapshot of a table, for assertions in tests."""
        return copy.deepcopy(self._tables.get(table, []))

    async def select(self, query: TableQuery) -> list[dict]:
        results = []
        for row in self._tables.get(query.table, []):
            if any(row.get(col) != value for col, value in query.equals.items()):
                continue
            if any(
                as_iso_date(row.get(col)) < cutoff.isoformat()
                for col, cutoff in query.on_or_after.items()
            ):
                continue
            results.append(copy.deepcopy(row))

        if query.order_by:
            results.sort(
                key=lambda r: sort_key(r.get(query.order_by)),
                reverse=not query.ascending,
            )
        return results

    async def insert(self, table: str, row: dict) -> dict:
        stored = copy.deepcopy(row)
        stored.setdefault("id", new_record_id())
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._tables.setdefault(table, []).append(stored)
        return copy.deepcopy(stored)

    async def update(
        self,
        table: str,
        record_id: str,
        owner_id: str,
        changes: dict,
    ) -> dict:
        for row in self._tables.get(table, []):
            if row.get("id") == record_id and row.get("user_id") == owner_id:
                row.update(copy.deepcopy(changes))
                return copy.deepcopy(row)
        raise NotFoundError(f"{table} row not found: {record_id}")

    async def delete(
        self,
        table: str,
        record_id: str,
        owner_id: str,
    ) -> bool:
        rows = self._tables.get(table, [])
        for idx, row in enumerate(rows):
            if row.get("id") == record_id and row.get("user_id") == owner_id:
                del rows[idx]
                return True
        return False


class InMemoryBlobStorage(BlobStorageInterface):
    """Bucket -> path -> bytes."""

    def __init__(self):
        self._buckets: dict[str, dict[str, bytes]] = {}

    def paths(self, bucket: str) -> list[str]:
        return sorted(self._buckets.get(bucket, {}))

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> str:
        self._buckets.setdefault(bucket, {})[path] = bytes(content)
        return path

    async def download(self, bucket: str, path: str) -> bytes:
        try:
            return self._buckets[bucket][path]
        except KeyError:
            raise NotFoundError(f"No file at {bucket}/{path}")
