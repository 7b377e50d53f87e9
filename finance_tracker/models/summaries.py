"""
Derived Summary Models

Results of the aggregator. Nothing here is ever persisted; every value is
recomputed from the cached record lists.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finance_tracker.models.records import (
    Expense,
    Income,
    Reminder,
    ReportPeriod,
)


class FinancialTotals(BaseModel):
    """Income vs expenses over whatever records were passed in."""

    total_income: Decimal
    total_expenses: Decimal
    net: Decimal

    @property
    def is_overspending(self) -> bool:
        return self.net < 0


class CategoryShare(BaseModel):
    """One slice of a category breakdown."""

    category: str
    amount: Decimal
    percentage: int = Field(
        ...,
        ge=0,
        le=100,
        description="Share of the total, rounded to the nearest integer"
    )


class CalendarDay(BaseModel):
    """Everything dated on one day. Presence only, no amounts."""

    date: dt.date
    expenses: list[Expense] = Field(default_factory=list)
    income: list[Income] = Field(default_factory=list)
    reminders: list[Reminder] = Field(default_factory=list)

    @property
    def has_events(self) -> bool:
        return bool(self.expenses or self.income or self.reminders)


class MonthCalendar(BaseModel):
    """Day grid for one month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    first_weekday: int = Field(
        ...,
        ge=0,
        le=6,
        description="Weekday of the 1st, Sunday = 0 (grid offset)"
    )
    days: list[CalendarDay]


class CalendarMonth(BaseModel):
    """Month cell of the year view."""

    month: int = Field(..., ge=1, le=12)
    total_expenses: Decimal
    total_income: Decimal
    reminder_count: int = Field(ge=0)

    @property
    def has_activity(self) -> bool:
        return bool(self.total_expenses or self.total_income or self.reminder_count)


class ReportWindow(BaseModel):
    """The date range a report covers."""

    period: ReportPeriod
    start: dt.date
    end: dt.date
    label: str
    quarter: Optional[int] = Field(
        default=None,
        ge=0,
        le=3,
        description="0-based quarter index for quarterly reports"
    )

    def contains(self, value: dt.date) -> bool:
        return self.start <= value <= self.end


class FinancialReport(BaseModel):
    """
    Aggregated report for one period.

    average_daily_spending always divides by 30, whatever the period length.
    """

    window: ReportWindow
    generated_on: dt.date
    total_income: Decimal
    total_expenses: Decimal
    net_savings: Decimal
    savings_rate: Decimal
    income_by_category: list[tuple[str, Decimal]]
    expenses_by_category: list[tuple[str, Decimal]]
    top_expenses: list[Expense]
    top_income: list[Income]
    highest_expense_category: Optional[tuple[str, Decimal]] = None
    transaction_count: int = Field(ge=0)
    average_daily_spending: Decimal

    @property
    def is_overspending(self) -> bool:
        return self.net_savings < 0


class SpendingInsights(BaseModel):
    """Figures shown in the dashboard insights panel."""

    total_spent: Decimal
    monthly_estimate: Decimal
    top_category: Optional[str] = None
    top_category_amount: Decimal = Decimal("0")
