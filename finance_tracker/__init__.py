"""
Finance Tracker - Source Package

A personal finance tracker: expenses, income and payment reminders for a
signed-in user, with category breakdowns, calendars and period reports.

DESIGN PRINCIPLES:
1. Stores own the cache; everything else reads it
2. Fail visibly, keep the last good data
3. Aggregation is pure and recomputed on demand
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
