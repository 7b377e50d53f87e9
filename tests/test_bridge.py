"""
Tests for the reminder-to-transaction bridge.
"""

import asyncio
from decimal import Decimal

import pytest

from finance_tracker.bridge import ReminderCompletionBridge
from finance_tracker.models.records import TransactionKind
from finance_tracker.services.storage import ConnectionError, InMemoryTableStore
from finance_tracker.stores import ExpenseStore, IncomeStore, ReminderStore

from conftest import TODAY


class IncomeOutageTableStore(InMemoryTableStore):
    """Rejects every insert into the income table."""

    async def insert(self, table, row):
        if table == "income":
            raise ConnectionError("income table unavailable")
        return await super().insert(table, row)


class ReminderOutageTableStore(InMemoryTableStore):
    """Rejects every update of the reminders table."""

    async def update(self, table, record_id, owner_id, changes):
        if table == "reminders":
            raise ConnectionError("reminders table unavailable")
        return await super().update(table, record_id, owner_id, changes)


def reminder_state(tables, reminder_id):
    return next(r for r in tables.rows("reminders") if r["id"] == reminder_id)["is_completed"]


@pytest.fixture
def wiring(tables, store_kwargs):
    reminders = ReminderStore(tables, **store_kwargs)
    income = IncomeStore(tables, **store_kwargs)
    bridge = ReminderCompletionBridge(reminders, income, kind=TransactionKind.INCOME)
    asyncio.run(reminders.fetch())
    return reminders, income, bridge


class TestReminderCompletionBridge:
    """Completing a reminder with an amount records exactly one transaction."""

    def test_completion_with_amount_creates_one_income(self, tables, wiring):
        """Test that amount 50 becomes one income of 50 dated today."""
        _, _, bridge = wiring
        before = len(tables.rows("income"))

        outcome = asyncio.run(bridge.toggle("r1", True))
        assert outcome.committed is True
        assert outcome.synthesized is True

        rows = tables.rows("income")
        assert len(rows) == before + 1
        created = rows[-1]
        assert Decimal(created["amount"]) == Decimal("50")
        assert created["description"] == "Payment received: Electricity"
        assert created["category"] == "Other"
        assert created["date"] == TODAY.isoformat()
        assert reminder_state(tables, "r1") is True

    def test_completion_without_amount_creates_nothing(self, tables, wiring):
        """Test that a reminder with no amount only flips the flag."""
        _, _, bridge = wiring
        before = len(tables.rows("income"))

        outcome = asyncio.run(bridge.toggle("r2", True))
        assert outcome.committed is True
        assert outcome.synthesized is False

        assert len(tables.rows("income")) == before
        assert reminder_state(tables, "r2") is True

    def test_reopening_creates_and_deletes_nothing(self, tables, wiring):
        """Test that Completed -> Pending leaves the synthesized income alone."""
        _, _, bridge = wiring
        asyncio.run(bridge.toggle("r1", True))
        after_completion = len(tables.rows("income"))

        assert asyncio.run(bridge.toggle("r1", False)).synthesized is False

        assert len(tables.rows("income")) == after_completion
        assert reminder_state(tables, "r1") is False

    def test_completing_already_completed_creates_nothing(self, tables, wiring):
        """Test that only a Pending -> Completed transition synthesizes."""
        _, _, bridge = wiring
        before = len(tables.rows("income"))

        assert asyncio.run(bridge.toggle("r3", True)).synthesized is False

        assert len(tables.rows("income")) == before

    def test_expense_kind(self, tables, store_kwargs):
        """Test that an expense bridge records a 'Paid:' expense."""
        reminders = ReminderStore(tables, **store_kwargs)
        expenses = ExpenseStore(tables, **store_kwargs)
        bridge = ReminderCompletionBridge(reminders, expenses, kind="expense")
        asyncio.run(reminders.fetch())

        assert asyncio.run(bridge.toggle("r4", True)).synthesized is True

        created = [r for r in tables.rows("expenses") if r["description"] == "Paid: Car loan"]
        assert len(created) == 1
        assert Decimal(created[0]["amount"]) == Decimal("300")
        assert created[0]["category"] == "Other"

    def test_failed_synthesis_keeps_completion(self, tables, store_kwargs, notifier):
        """Test that a failed insert is reported but the reminder stays done."""
        outage = IncomeOutageTableStore({"reminders": tables.rows("reminders")})
        reminders = ReminderStore(outage, **store_kwargs)
        income = IncomeStore(outage, **store_kwargs)
        bridge = ReminderCompletionBridge(reminders, income)
        asyncio.run(reminders.fetch())

        outcome = asyncio.run(bridge.toggle("r1", True))
        assert outcome.committed is True
        assert outcome.synthesized is False

        assert outage.rows("income") == []
        assert reminder_state(outage, "r1") is True
        assert notifier.last.description == "Failed to add income."

    def test_signed_out_does_nothing(self, tables):
        """Test that the bridge is inert without a session."""
        reminders = ReminderStore(tables)
        bridge = ReminderCompletionBridge(reminders, IncomeStore(tables))
        assert asyncio.run(bridge.toggle("r1", True)).committed is False
        assert reminder_state(tables, "r1") is False

    def test_failed_toggle_is_not_committed(self, tables, store_kwargs, notifier):
        """Test that a rejected update reports nothing committed and records nothing."""
        outage = ReminderOutageTableStore({"reminders": tables.rows("reminders")})
        reminders = ReminderStore(outage, **store_kwargs)
        income = IncomeStore(outage, **store_kwargs)
        bridge = ReminderCompletionBridge(reminders, income)
        asyncio.run(reminders.fetch())

        outcome = asyncio.run(bridge.toggle("r1", True))

        assert outcome.committed is False
        assert outcome.synthesized is False
        assert reminder_state(outage, "r1") is False
        assert reminders.get("r1").is_completed is False
        assert outage.rows("income") == []
        assert notifier.last.description == "Failed to update reminder."
