"""
Shared fixtures for the Finance Tracker tests.

Everything runs against the in-memory backends with a fixed "today";
no test touches the network.
"""

from datetime import date

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.models.records import UserSession
from finance_tracker.notifications import Notifier
from finance_tracker.services.storage import InMemoryBlobStorage, InMemoryTableStore


TODAY = date(2024, 6, 25)
USER_ID = "user-1"


def expense_row(record_id, amount, description, category, on, user_id=USER_ID, currency="INR"):
    return {
        "id": record_id,
        "user_id": user_id,
        "amount": amount,
        "description": description,
        "category": category,
        "currency": currency,
        "date": on,
        "created_at": f"{on}T09:00:00+00:00",
    }


def income_row(record_id, amount, description, category, on, user_id=USER_ID):
    return {
        "id": record_id,
        "user_id": user_id,
        "amount": amount,
        "description": description,
        "category": category,
        "currency": "USD",
        "date": on,
        "created_at": f"{on}T09:00:00+00:00",
    }


def reminder_row(record_id, title, due, amount=None, completed=False, category="bill", user_id=USER_ID):
    return {
        "id": record_id,
        "user_id": user_id,
        "title": title,
        "description": None,
        "category": category,
        "due_date": due,
        "amount": amount,
        "is_completed": completed,
        "created_at": "2024-06-01T09:00:00+00:00",
    }


@pytest.fixture
def session():
    return UserSession(user_id=USER_ID, email="asha@example.com")


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def blobs():
    return InMemoryBlobStorage()


@pytest.fixture
def tables():
    return InMemoryTableStore({
        "expenses": [
            expense_row("e1", "45.99", "Coffee with team", "Food & Dining", "2024-06-24"),
            expense_row("e2", "89.99", "Electric bill", "Bills & Utilities", "2024-06-22"),
            expense_row("e3", "12.00", "Coffee beans", "Food & Dining", "2024-06-01"),
            expense_row("e4", "30.00", "Old coffee subscription", "Food & Dining", "2024-01-10"),
            expense_row("e5", "8.00", "Ancient coffee", "Food & Dining", "2023-05-01"),
            expense_row("x1", "999.00", "Someone else's coffee", "Food & Dining", "2024-06-24",
                        user_id="user-2"),
        ],
        "income": [
            income_row("i1", "1000", "June salary", "Salary", "2024-06-01"),
        ],
        "reminders": [
            reminder_row("r1", "Electricity", "2024-06-28", amount="50"),
            reminder_row("r2", "Take vitamins", "2024-06-26", category="medicine"),
            reminder_row("r3", "Phone recharge", "2024-06-20", amount="15", completed=True,
                         category="recharge"),
            reminder_row("r4", "Car loan", "2024-06-10", amount="300", category="loan"),
        ],
    })


@pytest.fixture
def store_kwargs(session, notifier, audit_logger, blobs):
    return {
        "session": session,
        "notifier": notifier,
        "audit_logger": audit_logger,
        "blob_storage": blobs,
        "clock": lambda: TODAY,
    }
