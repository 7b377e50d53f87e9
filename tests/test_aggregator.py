"""
Tests for the cross-entity aggregator.

All functions under test are pure; records are built directly.
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models.records import Expense, Income, Reminder, ReportPeriod
from finance_tracker.queries import (
    build_report,
    category_breakdown,
    compute_totals,
    month_calendar,
    report_window,
    spending_insights,
    sum_by_category,
    top_transactions,
    year_calendar,
)


def expense(amount, category="Other", on=date(2024, 6, 24), description="Item", record_id=None):
    return Expense(
        id=record_id or f"e-{on}-{amount}",
        amount=Decimal(amount),
        description=description,
        category=category,
        date=on,
    )


def income(amount, category="Salary", on=date(2024, 6, 1), description="Pay"):
    return Income(
        id=f"i-{on}-{amount}",
        amount=Decimal(amount),
        description=description,
        category=category,
        date=on,
    )


def reminder(title, due, amount=None):
    return Reminder(id=f"r-{title}", title=title, category="bill", due_date=due, amount=amount)


@pytest.fixture
def june_expenses():
    return [
        expense("45.99", "Food & Dining", date(2024, 6, 24), "Coffee with team"),
        expense("89.99", "Bills & Utilities", date(2024, 6, 22), "Electric bill"),
    ]


@pytest.fixture
def june_income():
    return [income("1000", on=date(2024, 6, 1))]


class TestTotals:
    """Tests for compute_totals."""

    def test_june_scenario(self, june_expenses, june_income):
        """Test exact decimal totals for the reference scenario."""
        totals = compute_totals(june_expenses, june_income)
        assert totals.total_expenses == Decimal("135.98")
        assert totals.total_income == Decimal("1000")
        assert totals.net == Decimal("864.02")
        assert totals.is_overspending is False

    def test_no_income(self):
        """Test overspending with nothing earned."""
        totals = compute_totals([expense("50")], [])
        assert totals.net == Decimal("-50")
        assert totals.is_overspending is True

    def test_inputs_not_mutated(self, june_expenses, june_income):
        """Test that aggregation leaves the caches alone."""
        before = [e.model_copy() for e in june_expenses]
        compute_totals(june_expenses, june_income)
        top_transactions(june_expenses)
        category_breakdown(june_expenses)
        assert june_expenses == before


class TestCategoryBreakdown:
    """Tests for category sums and percentages."""

    def test_unknown_categories_get_their_own_bucket(self):
        """Test that unexpected category strings are summed, not dropped."""
        sums = sum_by_category([expense("5", "Pets"), expense("7", "Pets"), expense("1", "Other")])
        assert sums == {"Pets": Decimal("12"), "Other": Decimal("1")}

    def test_percentages_sorted_and_rounded(self, june_expenses):
        """Test largest-first ordering and half-up rounding."""
        shares = category_breakdown(june_expenses)
        assert [s.category for s in shares] == ["Bills & Utilities", "Food & Dining"]
        assert [s.percentage for s in shares] == [66, 34]

    def test_half_rounds_up(self):
        """Test that an exact .5 share rounds up."""
        shares = category_breakdown([expense("1", "A"), expense("7", "B")])
        assert {s.category: s.percentage for s in shares} == {"B": 88, "A": 13}

    @pytest.mark.parametrize("amounts", [
        ["1", "1", "1"],
        ["10", "20", "30", "40"],
        ["0.01", "99.99"],
        ["3.33", "3.33", "3.34", "5"],
    ])
    def test_percentages_sum_to_100_within_rounding(self, amounts):
        """Test the percentage total stays within one point per category."""
        records = [expense(a, f"Cat{i}") for i, a in enumerate(amounts)]
        shares = category_breakdown(records)
        assert abs(sum(s.percentage for s in shares) - 100) <= len(shares) - 1

    def test_zero_total_is_empty(self):
        """Test that a zero total gives an empty breakdown."""
        assert category_breakdown([]) == []
        assert category_breakdown([expense("0", "Other")]) == []


class TestTopTransactions:
    """Tests for top_transactions."""

    def test_limit_and_order(self):
        """Test the five largest come back largest first."""
        records = [expense(str(n), record_id=f"e{n}") for n in range(1, 9)]
        top = top_transactions(records)
        assert [r.id for r in top] == ["e8", "e7", "e6", "e5", "e4"]


class TestCalendars:
    """Tests for month and year calendars."""

    def test_month_grid(self):
        """Test day count, Sunday-based offset and event placement."""
        grid = month_calendar(
            2024, 6,
            [expense("5", on=date(2024, 6, 24)), expense("5", on=date(2024, 7, 1))],
            [income("100", on=date(2024, 6, 1))],
            [reminder("Rent", date(2024, 6, 24))],
        )
        assert len(grid.days) == 30
        # 1 June 2024 was a Saturday
        assert grid.first_weekday == 6
        day_24 = grid.days[23]
        assert len(day_24.expenses) == 1
        assert len(day_24.reminders) == 1
        assert grid.days[0].income and grid.days[0].has_events
        assert sum(1 for d in grid.days if d.has_events) == 2

    def test_leap_february(self):
        """Test February in a leap year."""
        grid = month_calendar(2024, 2, [], [], [])
        assert len(grid.days) == 29
        # 1 Feb 2024 was a Thursday
        assert grid.first_weekday == 4

    def test_month_rollup_equals_day_level_sum(self):
        """Test that month totals add up to the records of that year, nothing more."""
        expenses = [
            expense("10.10", on=date(2024, 1, 5)),
            expense("20.20", on=date(2024, 1, 31)),
            expense("5.05", on=date(2024, 2, 29)),
            expense("99.99", on=date(2024, 7, 4)),
            expense("1.00", on=date(2024, 12, 31)),
            expense("500.00", on=date(2023, 12, 31)),
        ]
        earnings = [income("1000", on=date(2024, 3, 1)), income("50", on=date(2025, 1, 1))]
        reminders = [reminder("A", date(2024, 7, 1)), reminder("B", date(2024, 7, 9))]

        months = year_calendar(2024, expenses, earnings, reminders)

        assert len(months) == 12
        in_year = [e for e in expenses if e.date.year == 2024]
        assert sum(m.total_expenses for m in months) == sum(e.amount for e in in_year)
        assert sum(m.total_income for m in months) == Decimal("1000")
        assert months[6].reminder_count == 2

        for month in months:
            grid = month_calendar(2024, month.month, expenses, earnings, reminders)
            day_total = sum(
                (e.amount for day in grid.days for e in day.expenses),
                Decimal("0"),
            )
            assert month.total_expenses == day_total

        assert months[0].total_expenses == Decimal("30.30")
        assert months[5].has_activity is False


class TestReportWindow:
    """Tests for report_window."""

    def test_quarterly_in_may(self):
        """Test that May falls in the April-June quarter."""
        window = report_window(ReportPeriod.QUARTERLY, date(2024, 5, 15))
        assert window.quarter == 1
        assert window.start == date(2024, 4, 1)
        assert window.end == date(2024, 6, 30)
        assert window.label == "Q2 2024"

    def test_monthly_label(self):
        """Test month name and year label."""
        window = report_window("monthly", date(2024, 6, 25))
        assert window.label == "June 2024"
        assert window.start == date(2024, 6, 1)
        assert window.end == date(2024, 6, 30)

    def test_yearly(self):
        """Test the calendar-year window."""
        window = report_window(ReportPeriod.YEARLY, date(2024, 6, 25))
        assert (window.start, window.end, window.label) == (date(2024, 1, 1), date(2024, 12, 31), "2024")


class TestBuildReport:
    """Tests for build_report."""

    def test_quarterly_restricts_to_window(self):
        """Test that only April-June of the current year count."""
        expenses = [
            expense("10", on=date(2024, 4, 1)),
            expense("20", on=date(2024, 6, 30)),
            expense("40", on=date(2024, 3, 31)),
            expense("80", on=date(2024, 7, 1)),
            expense("160", on=date(2023, 5, 10)),
        ]
        report = build_report(ReportPeriod.QUARTERLY, expenses, [], date(2024, 5, 15))
        assert report.total_expenses == Decimal("30")
        assert report.transaction_count == 2
        assert report.window.label == "Q2 2024"

    def test_june_report(self, june_expenses, june_income):
        """Test the figures of the reference month."""
        report = build_report("monthly", june_expenses, june_income, date(2024, 6, 25))
        assert report.net_savings == Decimal("864.02")
        assert report.savings_rate == Decimal("86.4")
        assert report.highest_expense_category == ("Bills & Utilities", Decimal("89.99"))
        assert report.expenses_by_category[0][0] == "Bills & Utilities"
        assert report.income_by_category == [("Salary", Decimal("1000"))]
        assert report.transaction_count == 3
        assert report.average_daily_spending == Decimal("4.53")
        assert report.is_overspending is False

    def test_savings_rate_zero_without_income(self):
        """Test that no income gives a 0 savings rate instead of a division error."""
        report = build_report("monthly", [expense("50", on=date(2024, 6, 3))], [], date(2024, 6, 25))
        assert report.savings_rate == 0
        assert report.net_savings == Decimal("-50")
        assert report.is_overspending is True

    def test_average_daily_divides_by_30_for_any_period(self):
        """Test that the yearly average still divides by 30."""
        report = build_report("yearly", [expense("300", on=date(2024, 2, 1))], [], date(2024, 6, 25))
        assert report.average_daily_spending == Decimal("10.00")

    def test_empty_period(self):
        """Test a report with no records at all."""
        report = build_report("monthly", [], [], date(2024, 6, 25))
        assert report.highest_expense_category is None
        assert report.top_expenses == []
        assert report.transaction_count == 0


class TestSpendingInsights:
    """Tests for the dashboard insights panel."""

    def test_insights(self):
        """Test total, weekly-to-monthly estimate and top category."""
        insights = spending_insights([
            expense("70", "Food & Dining"),
            expense("35", "Transportation"),
            expense("35", "Food & Dining"),
        ])
        assert insights.total_spent == Decimal("140")
        assert insights.monthly_estimate == Decimal("600.00")
        assert insights.top_category == "Food & Dining"
        assert insights.top_category_amount == Decimal("105")

    def test_empty(self):
        """Test the panel with no expenses."""
        insights = spending_insights([])
        assert insights.total_spent == 0
        assert insights.monthly_estimate == 0
        assert insights.top_category is None
