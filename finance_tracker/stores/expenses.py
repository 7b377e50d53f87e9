"""Expense store: expenses plus their attachment rows."""

from collections import defaultdict

from finance_tracker.models.records import Expense, ExpenseCreate, UploadedFile
from finance_tracker.services.storage import TableQuery
from finance_tracker.stores.base import RecordStore


class ExpenseStore(RecordStore[Expense]):
    """
    Expenses, newest first.

    Each stored file gets its own ``expense_attachments`` row; fetch joins
    those rows back onto their expense.
    """

    table = "expenses"
    attachments_table = "expense_attachments"
    attachment_bucket = "expense-attachments"
    model = Expense
    create_model = ExpenseCreate
    noun = "Expense"
    plural = "expenses"
    updatable_fields = frozenset({
        "amount",
        "description",
        "category",
        "currency",
        "date",
        "ai_suggested",
    })

    async def _load_rows(self, query: TableQuery) -> list[dict]:
        rows = await super()._load_rows(query)
        if not rows:
            return rows

        attachment_rows = await self._tables.select(TableQuery(
            table=self.attachments_table,
            equals={"user_id": self._session.user_id},
        ))
        by_expense = defaultdict(list)
        for attachment in attachment_rows:
            by_expense[attachment.get("expense_id")].append(attachment)

        for row in rows:
            row["attachments"] = by_expense.get(row["id"], [])
        return rows

    async def _after_upload(self, record: Expense, file: UploadedFile, path: str) -> None:
        await self._tables.insert(self.attachments_table, {
            "expense_id": record.id,
            "user_id": self._session.user_id,
            "file_name": file.name,
            "file_path": path,
            "file_type": file.content_type,
            "file_size": file.size,
        })
