"""Income store."""

from finance_tracker.models.records import Income, IncomeCreate, UploadedFile
from finance_tracker.stores.base import RecordStore


class IncomeStore(RecordStore[Income]):
    """
    Income entries, newest first.

    Attachments are not separate rows here: once every file is stored the
    list of paths is written to the record's ``file_attachments`` column.
    """

    table = "income"
    attachment_bucket = "income-attachments"
    model = Income
    create_model = IncomeCreate
    noun = "Income"
    plural = "income"
    updatable_fields = frozenset({
        "amount",
        "description",
        "category",
        "date",
        "currency",
    })

    async def _store_attachments(self, record: Income, files: list[UploadedFile]) -> list[str]:
        paths = await super()._store_attachments(record, files)
        await self._tables.update(
            self.table,
            record.id,
            self._session.user_id,
            {"file_attachments": paths},
        )
        return paths
