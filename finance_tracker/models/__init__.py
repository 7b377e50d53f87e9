"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing between the stores, the aggregator and the UI must
conform to these schemas.
"""

from finance_tracker.models.records import (
    Attachment,
    Currency,
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    Income,
    IncomeCategory,
    IncomeCreate,
    Reminder,
    ReminderCategory,
    ReminderCreate,
    ReportPeriod,
    StoredLink,
    StoredLinkCreate,
    TimeFilter,
    TransactionKind,
    UploadedFile,
    UserSession,
    format_amount,
)
from finance_tracker.models.summaries import (
    CalendarDay,
    CalendarMonth,
    CategoryShare,
    FinancialReport,
    FinancialTotals,
    MonthCalendar,
    ReportWindow,
    SpendingInsights,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Attachment",
    "Currency",
    "Expense",
    "ExpenseCategory",
    "ExpenseCreate",
    "Income",
    "IncomeCategory",
    "IncomeCreate",
    "Reminder",
    "ReminderCategory",
    "ReminderCreate",
    "ReportPeriod",
    "StoredLink",
    "StoredLinkCreate",
    "TimeFilter",
    "TransactionKind",
    "UploadedFile",
    "UserSession",
    "format_amount",
    # Summary models
    "CalendarDay",
    "CalendarMonth",
    "CategoryShare",
    "FinancialReport",
    "FinancialTotals",
    "MonthCalendar",
    "ReportWindow",
    "SpendingInsights",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
