"""Aggregation package."""

from finance_tracker.queries.aggregator import (
    build_report,
    category_breakdown,
    compute_totals,
    month_calendar,
    report_window,
    savings_insight,
    savings_rate,
    sorted_category_sums,
    spending_insights,
    sum_by_category,
    top_transactions,
    total_amount,
    year_calendar,
)

__all__ = [
    "build_report",
    "category_breakdown",
    "compute_totals",
    "month_calendar",
    "report_window",
    "savings_insight",
    "savings_rate",
    "sorted_category_sums",
    "spending_insights",
    "sum_by_category",
    "top_transactions",
    "total_amount",
    "year_calendar",
]
