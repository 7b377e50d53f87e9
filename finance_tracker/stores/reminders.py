"""Reminder store."""

from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.records import Reminder, ReminderCreate
from finance_tracker.services.storage import StorageError
from finance_tracker.stores.base import RecordStore


class ReminderStore(RecordStore[Reminder]):
    """
    Reminders, ordered by due date ascending (upcoming first).

    Time filters and search work as for transactions, keyed on the due date
    and matched against title, description and category.
    """

    table = "reminders"
    model = Reminder
    create_model = ReminderCreate
    noun = "Reminder"
    plural = "reminders"
    date_column = "due_date"
    order_column = "due_date"
    ascending = True
    search_fields = ("title", "description", "category")
    updatable_fields = frozenset({
        "title",
        "description",
        "category",
        "due_date",
        "amount",
        "is_completed",
    })

    async def set_completed(self, reminder_id: str, completed: bool) -> bool:
        """
        Flip the completion checkbox.

        A failure is reported to the user but not raised: the checkbox
        simply stays where it was.
        """
        if self._session is None:
            return False
        user_id = self._session.user_id

        try:
            await self._tables.update(
                self.table, reminder_id, user_id, {"is_completed": completed},
            )
        except StorageError as e:
            self._notifier.error(f"Failed to update {self.noun.lower()}.")
            await self._audit(AuditEventBuilder.mutation_failed(
                self.table, "toggle", user_id, str(e), record_id=reminder_id,
            ))
            return False

        await self._audit(AuditEventBuilder.reminder_toggled(reminder_id, user_id, completed))
        await self._refresh_strategy.after_mutation(self)
        return True

    def upcoming(self, limit: int = 5) -> list[Reminder]:
        """Open reminders due today or later, soonest first."""
        today = self.today()
        pending = [r for r in self.records if not r.is_completed and r.due_date >= today]
        return sorted(pending, key=lambda r: r.due_date)[:limit]

    def overdue(self) -> list[Reminder]:
        """Open reminders whose due date has passed."""
        today = self.today()
        return [r for r in self.records if not r.is_completed and r.due_date < today]
