"""
Cross-Entity Aggregator

DESIGN DECISION: Aggregation is DETERMINISTIC and PURE.
Every function takes the record lists the stores already hold and returns
a new value. Nothing here touches the network, reads the clock, or mutates
its inputs; "today" is always passed in.

Amounts are summed as Decimal so totals like 45.99 + 89.99 come out exact.
Categories are grouped by their raw string, so a category we've never heard
of simply becomes one more bucket.
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence, TypeVar, Union

from finance_tracker.models.records import (
    Expense,
    Income,
    Reminder,
    ReportPeriod,
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


TransactionT = TypeVar("TransactionT", Expense, Income)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Average daily spending divides by this whatever the report period is.
AVERAGE_DAYS_PER_PERIOD = Decimal("30")
TOP_N = 5

PERIOD_NOUNS = {
    ReportPeriod.MONTHLY: "month",
    ReportPeriod.QUARTERLY: "quarter",
    ReportPeriod.YEARLY: "year",
}


def _round_half_up(value: Decimal, exponent: Decimal) -> Decimal:
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def total_amount(records: Iterable[Union[Expense, Income]]) -> Decimal:
    return sum((Decimal(r.amount) for r in records), ZERO)


# =============================================================================
# TOTALS AND BREAKDOWNS
# =============================================================================

def compute_totals(
    expenses: Sequence[Expense],
    income: Sequence[Income],
) -> FinancialTotals:
    """Income, expenses and the net between them."""
    total_income = total_amount(income)
    total_expenses = total_amount(expenses)
    return FinancialTotals(
        total_income=total_income,
        total_expenses=total_expenses,
        net=total_income - total_expenses,
    )


def sum_by_category(records: Iterable[Union[Expense, Income]]) -> dict[str, Decimal]:
    """Category -> summed amount, in order of first appearance."""
    sums: dict[str, Decimal] = {}
    for record in records:
        sums[record.category] = sums.get(record.category, ZERO) + Decimal(record.amount)
    return sums


def sorted_category_sums(records: Iterable[Union[Expense, Income]]) -> list[tuple[str, Decimal]]:
    """Category sums, largest first."""
    return sorted(sum_by_category(records).items(), key=lambda item: item[1], reverse=True)


def category_breakdown(records: Sequence[Union[Expense, Income]]) -> list[CategoryShare]:
    """
    Share of the total per category, largest first.

    Only categories that actually occur are listed. With a zero total there
    is nothing to divide and the breakdown is empty.
    """
    sums = sorted_category_sums(records)
    total = sum((amount for _, amount in sums), ZERO)
    if total == 0:
        return []

    return [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=int(_round_half_up(amount / total * HUNDRED, Decimal("1"))),
        )
        for category, amount in sums
    ]


def top_transactions(records: Sequence[TransactionT], limit: int = TOP_N) -> list[TransactionT]:
    """The ``limit`` largest records by amount (ties keep their order)."""
    return sorted(records, key=lambda r: r.amount, reverse=True)[:limit]


# =============================================================================
# CALENDAR ROLLUPS
# =============================================================================

def month_calendar(
    year: int,
    month: int,
    expenses: Sequence[Expense],
    income: Sequence[Income],
    reminders: Sequence[Reminder],
) -> MonthCalendar:
    """
    One CalendarDay per day of the month.

    Day granularity only records presence: which expenses, income and
    reminders fall on the day. No amounts are summed here.
    """
    weekday_of_first, days_in_month = calendar.monthrange(year, month)

    days = [
        CalendarDay(date=date(year, month, day))
        for day in range(1, days_in_month + 1)
    ]

    def in_month(value: date) -> bool:
        return value.year == year and value.month == month

    for expense in expenses:
        if in_month(expense.date):
            days[expense.date.day - 1].expenses.append(expense)
    for item in income:
        if in_month(item.date):
            days[item.date.day - 1].income.append(item)
    for reminder in reminders:
        if in_month(reminder.due_date):
            days[reminder.due_date.day - 1].reminders.append(reminder)

    return MonthCalendar(
        year=year,
        month=month,
        # calendar counts Monday as 0; the grid starts on Sunday
        first_weekday=(weekday_of_first + 1) % 7,
        days=days,
    )


def year_calendar(
    year: int,
    expenses: Sequence[Expense],
    income: Sequence[Income],
    reminders: Sequence[Reminder],
) -> list[CalendarMonth]:
    """Twelve months of summed expenses/income and reminder counts."""
    expense_totals = [ZERO] * 12
    income_totals = [ZERO] * 12
    reminder_counts = [0] * 12

    for expense in expenses:
        if expense.date.year == year:
            expense_totals[expense.date.month - 1] += Decimal(expense.amount)
    for item in income:
        if item.date.year == year:
            income_totals[item.date.month - 1] += Decimal(item.amount)
    for reminder in reminders:
        if reminder.due_date.year == year:
            reminder_counts[reminder.due_date.month - 1] += 1

    return [
        CalendarMonth(
            month=idx + 1,
            total_expenses=expense_totals[idx],
            total_income=income_totals[idx],
            reminder_count=reminder_counts[idx],
        )
        for idx in range(12)
    ]


# =============================================================================
# REPORTS
# =============================================================================

def report_window(period: Union[ReportPeriod, str], today: date) -> ReportWindow:
    """
    The window a report covers, anchored on ``today``.

    - monthly: the current calendar month
    - quarterly: the current three-month block (Jan-Mar, Apr-Jun, ...)
    - yearly: the current calendar year
    """
    period = ReportPeriod(period)
    year = today.year

    if period == ReportPeriod.MONTHLY:
        last_day = calendar.monthrange(year, today.month)[1]
        return ReportWindow(
            period=period,
            start=date(year, today.month, 1),
            end=date(year, today.month, last_day),
            label=today.strftime("%B %Y"),
        )

    if period == ReportPeriod.QUARTERLY:
        quarter = (today.month - 1) // 3
        first_month = quarter * 3 + 1
        last_month = first_month + 2
        return ReportWindow(
            period=period,
            start=date(year, first_month, 1),
            end=date(year, last_month, calendar.monthrange(year, last_month)[1]),
            label=f"Q{quarter + 1} {year}",
            quarter=quarter,
        )

    return ReportWindow(
        period=period,
        start=date(year, 1, 1),
        end=date(year, 12, 31),
        label=str(year),
    )


def savings_rate(total_income: Decimal, net: Decimal) -> Decimal:
    """Net as a percentage of income, one decimal. Zero when there's no income."""
    if total_income == 0:
        return ZERO
    return _round_half_up(net / total_income * HUNDRED, Decimal("0.1"))


def savings_insight(net: Decimal, period: ReportPeriod, currency: str = "INR") -> str:
    """One-line verdict on the period."""
    noun = PERIOD_NOUNS[period]
    if net > 0:
        return f"Great job! You saved {format_amount(net, currency)} this {noun}."
    return (
        f"You overspent by {format_amount(abs(net), currency)} this {noun}. "
        "Consider reviewing your expenses."
    )


def build_report(
    period: Union[ReportPeriod, str],
    expenses: Sequence[Expense],
    income: Sequence[Income],
    today: date,
) -> FinancialReport:
    """
    Aggregate both sides of the ledger over the report window.

    average_daily_spending is total expenses / 30 for every period length.
    """
    window = report_window(period, today)
    period_expenses = [e for e in expenses if window.contains(e.date)]
    period_income = [i for i in income if window.contains(i.date)]

    totals = compute_totals(period_expenses, period_income)
    expenses_by_category = sorted_category_sums(period_expenses)

    return FinancialReport(
        window=window,
        generated_on=today,
        total_income=totals.total_income,
        total_expenses=totals.total_expenses,
        net_savings=totals.net,
        savings_rate=savings_rate(totals.total_income, totals.net),
        income_by_category=sorted_category_sums(period_income),
        expenses_by_category=expenses_by_category,
        top_expenses=top_transactions(period_expenses),
        top_income=top_transactions(period_income),
        highest_expense_category=expenses_by_category[0] if expenses_by_category else None,
        transaction_count=len(period_expenses) + len(period_income),
        average_daily_spending=_round_half_up(
            totals.total_expenses / AVERAGE_DAYS_PER_PERIOD, CENT,
        ),
    )


# =============================================================================
# DASHBOARD INSIGHTS
# =============================================================================

def spending_insights(expenses: Sequence[Expense]) -> SpendingInsights:
    """
    Figures for the insights panel.

    The monthly estimate treats the listed expenses as one week of spending
    and scales it to 30 days.
    """
    total = total_amount(expenses)
    monthly_estimate = _round_half_up(total / 7 * 30, CENT) if expenses else ZERO

    top = None
    for category, amount in sum_by_category(expenses).items():
        if top is None or amount >= top[1]:
            top = (category, amount)

    return SpendingInsights(
        total_spent=total,
        monthly_estimate=monthly_estimate,
        top_category=top[0] if top else None,
        top_category_amount=top[1] if top else ZERO,
    )
