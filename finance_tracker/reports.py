"""
Report Generation

Turns a FinancialReport into the plain-text report the user copies out of
the app. The text layout is fixed:

    FINANCIAL REPORT - <label>
    Generated on: <date>
    SUMMARY / INCOME BREAKDOWN / EXPENSE BREAKDOWN /
    TOP EXPENSES / TOP INCOME SOURCES / [CUSTOM REQUIREMENTS] /
    INSIGHTS & RECOMMENDATIONS

E-mail delivery isn't wired to any mail backend; ``deliver`` only logs
where the report would have gone.
"""

import datetime as dt
from typing import Callable, Optional, Sequence, Union

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.records import (
    Expense,
    Income,
    ReportPeriod,
    UserSession,
    format_amount,
)
from finance_tracker.models.summaries import FinancialReport
from finance_tracker.notifications import Notifier
from finance_tracker.queries.aggregator import build_report, savings_insight


logger = structlog.get_logger(__name__)


def _section(title: str, lines: Sequence[str]) -> list[str]:
    heading = f"{title}:"
    return [heading, "-" * len(heading), *lines, ""]


def render_report_text(
    report: FinancialReport,
    currency: str = "INR",
    custom_requirements: Optional[str] = None,
) -> str:
    """Render a report with the fixed plain-text template."""
    money = lambda amount: format_amount(amount, currency)  # noqa: E731

    lines = [
        f"FINANCIAL REPORT - {report.window.label}",
        f"Generated on: {report.generated_on.isoformat()}",
        "",
    ]

    lines += _section("SUMMARY", [
        f"Total Income: {money(report.total_income)}",
        f"Total Expenses: {money(report.total_expenses)}",
        f"Net Savings: {money(report.net_savings)}",
        f"Savings Rate: {report.savings_rate}%",
    ])
    lines += _section("INCOME BREAKDOWN", [
        f"{category}: {money(amount)}" for category, amount in report.income_by_category
    ])
    lines += _section("EXPENSE BREAKDOWN", [
        f"{category}: {money(amount)}" for category, amount in report.expenses_by_category
    ])
    lines += _section("TOP EXPENSES", [
        f"{e.description}: {money(e.amount)} ({e.category})" for e in report.top_expenses
    ])
    lines += _section("TOP INCOME SOURCES", [
        f"{i.description}: {money(i.amount)} ({i.category})" for i in report.top_income
    ])

    if custom_requirements and custom_requirements.strip():
        lines += ["CUSTOM REQUIREMENTS:", custom_requirements.strip(), ""]

    net = report.net_savings
    insight = savings_insight(net, report.window.period, currency)
    insights = [("✓ " if net > 0 else "⚠ ") + insight]
    if report.highest_expense_category is not None:
        category, amount = report.highest_expense_category
        insights.append(f"Your highest expense category is {category} at {money(amount)}.")
    lines += _section("INSIGHTS & RECOMMENDATIONS", insights)

    lines += [
        f"Total Transactions: {report.transaction_count}",
        f"Average Daily Spending: {money(report.average_daily_spending)}",
    ]
    return "\n".join(lines)


class ReportService:
    """
    Builds report text for the signed-in user.

    A report goes to the user's e-mail address, so a session without one
    can't have a report.
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        audit_logger: Optional[AuditLogger] = None,
        currency: str = "INR",
        clock: Optional[Callable[[], dt.date]] = None,
    ):
        self._notifier = notifier or Notifier()
        self._audit_logger = audit_logger or AuditLogger()
        self._currency = currency
        self._clock = clock or dt.date.today

    async def generate(
        self,
        session: Optional[UserSession],
        period: Union[ReportPeriod, str],
        expenses: Sequence[Expense],
        income: Sequence[Income],
        requirements: Optional[str] = None,
    ) -> Optional[str]:
        """
        Aggregate and render a report.

        Returns the text for the UI to put on the clipboard, or None when
        there's no e-mail address to send it to.
        """
        if session is None or not session.email:
            self._notifier.error("No email address found. Please sign in again.")
            return None

        period = ReportPeriod(period)
        report = build_report(period, expenses, income, self._clock())
        text = render_report_text(report, self._currency, requirements)

        self.deliver(session.email, report, text)
        await self._audit_logger.log(AuditEventBuilder.report_generated(
            session.user_id,
            period.value,
            report.window.label,
            report.transaction_count,
        ))
        self._notifier.success(
            f"Your {period.value} report is ready to copy.",
            title="Report Generated!",
        )
        return text

    def deliver(self, email: str, report: FinancialReport, text: str) -> None:
        """Stand-in for e-mail delivery: records the send in the log."""
        logger.info(
            "report_delivery_skipped",
            recipient=email,
            label=report.window.label,
            characters=len(text),
        )
