"""
Record Stores Package

One store per table. Stores are the only code that talks to the table and
blob backends; the UI and the aggregator only ever see ``store.records``.
"""

from finance_tracker.stores.base import (
    ManualRefresh,
    RecordStore,
    RefetchStrategy,
    RefreshStrategy,
    acceptable_files,
    attachment_path,
)
from finance_tracker.stores.expenses import ExpenseStore
from finance_tracker.stores.income import IncomeStore
from finance_tracker.stores.links import StoredLinkStore
from finance_tracker.stores.reminders import ReminderStore

__all__ = [
    "ExpenseStore",
    "IncomeStore",
    "ManualRefresh",
    "RecordStore",
    "RefetchStrategy",
    "RefreshStrategy",
    "ReminderStore",
    "StoredLinkStore",
    "acceptable_files",
    "attachment_path",
]
