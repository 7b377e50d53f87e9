"""
Expense category suggestion.

A fixed keyword table, checked in order; the first group with a keyword
contained in the description wins. Matching is case-insensitive substring
matching, so "Uber to airport" and "GASOLINE" both land in Transportation.
"""

from finance_tracker.models.records import ExpenseCategory


CATEGORY_KEYWORDS: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.FOOD_AND_DINING, ("coffee", "restaurant", "food", "lunch")),
    (ExpenseCategory.TRANSPORTATION, ("gas", "uber", "taxi")),
    (ExpenseCategory.BILLS_AND_UTILITIES, ("bill", "electric", "water")),
)


def suggest_expense_category(description: str) -> ExpenseCategory:
    """Best guess at an expense's category from its description."""
    text = (description or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return ExpenseCategory.OTHER
