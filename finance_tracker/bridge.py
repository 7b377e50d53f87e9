"""
Reminder-to-Transaction Bridge

Ticking off a reminder that carries an amount (a paid bill, a received loan
repayment) records that money as a transaction, so the user doesn't have to
enter it twice.

Lifecycle of a reminder here:

    Pending --toggle(completed=True)--> Completed   (+1 transaction if amount)
    Completed --toggle(completed=False)--> Pending  (nothing created or removed)

The transaction is a plain record with no link back to the reminder.
Re-opening and completing again therefore records the payment again; that is
the user's explicit action, not a duplicate we can detect.
"""

from typing import Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.records import (
    ExpenseCategory,
    ExpenseCreate,
    IncomeCategory,
    IncomeCreate,
    Reminder,
    TransactionKind,
)
from finance_tracker.services.storage import StorageError
from finance_tracker.stores import ExpenseStore, IncomeStore, ReminderStore


logger = structlog.get_logger(__name__)


def synthesized_description(reminder: Reminder, kind: TransactionKind) -> str:
    if kind == TransactionKind.INCOME:
        return f"Payment received: {reminder.title}"
    return f"Paid: {reminder.title}"


def synthesized_payload(
    reminder: Reminder,
    kind: TransactionKind,
    today,
) -> Union[IncomeCreate, ExpenseCreate]:
    """The transaction a completed reminder turns into."""
    description = synthesized_description(reminder, kind)
    if kind == TransactionKind.INCOME:
        return IncomeCreate(
            amount=reminder.amount,
            description=description,
            category=IncomeCategory.OTHER,
            date=today,
        )
    return ExpenseCreate(
        amount=reminder.amount,
        description=description,
        category=ExpenseCategory.OTHER,
        date=today,
    )


class ToggleOutcome(BaseModel):
    """What a completion toggle did."""

    committed: bool = False
    transaction_id: Optional[str] = None

    @property
    def synthesized(self) -> bool:
        return self.transaction_id is not None


class ReminderCompletionBridge:
    """
    Wraps a reminder store's completion toggle.

    Synthesis is best effort: if recording the transaction fails, the
    failure is logged and audited but the reminder stays completed.
    """

    def __init__(
        self,
        reminders: ReminderStore,
        transactions: Union[IncomeStore, ExpenseStore],
        kind: Union[TransactionKind, str] = TransactionKind.INCOME,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._reminders = reminders
        self._transactions = transactions
        self._kind = TransactionKind(kind)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def kind(self) -> TransactionKind:
        return self._kind

    async def toggle(self, reminder_id: str, completed: bool) -> ToggleOutcome:
        """
        Set a reminder's completion flag.

        ``committed`` tells whether the flag was stored; ``transaction_id``
        is set only when a transaction was recorded as well.
        """
        session = self._reminders.session
        if session is None:
            return ToggleOutcome()

        # Read the previous state before the store refreshes its cache.
        reminder = self._reminders.get(reminder_id)
        was_completed = reminder.is_completed if reminder is not None else False

        if not await self._reminders.set_completed(reminder_id, completed):
            return ToggleOutcome()

        if not completed or was_completed:
            return ToggleOutcome(committed=True)
        if reminder is None or not reminder.has_amount:
            return ToggleOutcome(committed=True)

        return ToggleOutcome(
            committed=True,
            transaction_id=await self._synthesize(reminder, session.user_id),
        )

    async def _synthesize(self, reminder: Reminder, user_id: str) -> Optional[str]:
        try:
            payload = synthesized_payload(reminder, self._kind, self._reminders.today())
            record = await self._transactions.add(payload)
        except (StorageError, ValidationError) as e:
            logger.warning(
                "reminder_transaction_failed",
                reminder_id=reminder.id,
                kind=self._kind.value,
                error=str(e),
            )
            await self._audit_logger.log(AuditEventBuilder.bridge_failed(
                reminder.id, user_id, self._kind.value, str(e),
            ))
            return None

        record_id = record.id if record is not None else None
        await self._audit_logger.log(AuditEventBuilder.transaction_synthesized(
            reminder.id,
            user_id,
            self._kind.value,
            str(reminder.amount),
            record_id,
        ))
        return record_id
