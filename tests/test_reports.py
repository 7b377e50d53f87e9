"""
Tests for report text and the report service.
"""

import asyncio
from datetime import date
from decimal import Decimal

from finance_tracker.models.records import Expense, Income, UserSession
from finance_tracker.queries import build_report
from finance_tracker.reports import ReportService, render_report_text

from conftest import TODAY


EXPENSES = [
    Expense(id="e1", amount=Decimal("45.99"), description="Coffee with team",
            category="Food & Dining", date=date(2024, 6, 24)),
    Expense(id="e2", amount=Decimal("89.99"), description="Electric bill",
            category="Bills & Utilities", date=date(2024, 6, 22)),
]
INCOME = [
    Income(id="i1", amount=Decimal("1000"), description="June salary",
           category="Salary", date=date(2024, 6, 1)),
]


class TestRenderReportText:
    """Tests for the plain-text template."""

    def test_sections_and_figures(self):
        """Test the headline figures of the reference month."""
        text = render_report_text(build_report("monthly", EXPENSES, INCOME, TODAY), "INR")

        assert text.startswith("FINANCIAL REPORT - June 2024\nGenerated on: 2024-06-25")
        assert "Total Income: ₹1,000.00" in text
        assert "Total Expenses: ₹135.98" in text
        assert "Net Savings: ₹864.02" in text
        assert "Savings Rate: 86.4%" in text
        assert "Salary: ₹1,000.00" in text
        assert "Electric bill: ₹89.99 (Bills & Utilities)" in text
        assert "✓ Great job! You saved ₹864.02 this month." in text
        assert "Your highest expense category is Bills & Utilities at ₹89.99." in text
        assert "Total Transactions: 3" in text
        assert text.endswith("Average Daily Spending: ₹4.53")

    def test_sections_in_order(self):
        """Test the fixed section order."""
        text = render_report_text(build_report("monthly", EXPENSES, INCOME, TODAY))
        headings = [
            "SUMMARY:",
            "INCOME BREAKDOWN:",
            "EXPENSE BREAKDOWN:",
            "TOP EXPENSES:",
            "TOP INCOME SOURCES:",
            "INSIGHTS & RECOMMENDATIONS:",
        ]
        positions = [text.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_overspending_warning(self):
        """Test the overspent wording for a quarter."""
        text = render_report_text(build_report("quarterly", EXPENSES, [], TODAY), "USD")
        assert "⚠ You overspent by $135.98 this quarter. Consider reviewing your expenses." in text
        assert "Savings Rate: 0%" in text

    def test_custom_requirements_only_when_given(self):
        """Test the optional custom requirements section."""
        report = build_report("yearly", EXPENSES, INCOME, TODAY)
        assert "CUSTOM REQUIREMENTS" not in render_report_text(report)
        text = render_report_text(report, custom_requirements="Split by week please")
        assert "CUSTOM REQUIREMENTS:\nSplit by week please" in text


class TestReportService:
    """Tests for ReportService.generate."""

    def test_requires_email(self, notifier):
        """Test that a session without e-mail gets an error and no report."""
        service = ReportService(notifier=notifier, clock=lambda: TODAY)
        session = UserSession(user_id="user-1")

        assert asyncio.run(service.generate(session, "monthly", EXPENSES, INCOME)) is None
        assert notifier.last.is_error
        assert notifier.last.description == "No email address found. Please sign in again."

    def test_signed_out(self, notifier):
        """Test that no session means no report."""
        service = ReportService(notifier=notifier, clock=lambda: TODAY)
        assert asyncio.run(service.generate(None, "monthly", EXPENSES, INCOME)) is None

    def test_generates_text(self, session, notifier):
        """Test the happy path returns the rendered text."""
        service = ReportService(notifier=notifier, currency="INR", clock=lambda: TODAY)

        text = asyncio.run(service.generate(session, "monthly", EXPENSES, INCOME, "Focus on food"))

        assert text.startswith("FINANCIAL REPORT - June 2024")
        assert "Focus on food" in text
        assert notifier.last.title == "Report Generated!"
        assert notifier.last.is_error is False
