"""
Core Data Models for Finance Tracker

These models define the schemas for every record the tracker caches:
expenses, income, reminders and stored links, plus their attachments.

DESIGN DECISION: Read models and create payloads are separate.
- Create payloads (``*Create``) mirror the entry forms: they check only that
  required fields are present and that the category comes from the closed
  selector.
- Read models accept any category string. Rows inserted by other clients
  may carry categories we don't know about and those must not crash
  aggregation; they simply become their own bucket.

Identifiers and creation timestamps are owned by the table store and are
never part of a create payload.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """Expense categories offered by the expense form."""
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTH_AND_FITNESS = "Health & Fitness"
    HEALTHCARE = "Healthcare"
    TRAVEL = "Travel"
    EDUCATION = "Education"
    OTHER = "Other"


class IncomeCategory(str, Enum):
    """Income categories offered by the income form."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    BUSINESS = "Business"
    INVESTMENTS = "Investments"
    RENTAL = "Rental"
    BONUS = "Bonus"
    GIFT = "Gift"
    OTHER = "Other"


class ReminderCategory(str, Enum):
    """Reminder categories (actionable, usually money related)."""
    LOAN = "loan"
    BILL = "bill"
    MEDICINE = "medicine"
    RECHARGE = "recharge"


class Currency(str, Enum):
    """Supported currency codes."""
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CNY = "CNY"
    AUD = "AUD"
    CAD = "CAD"

    @property
    def symbol(self) -> str:
        return CURRENCY_SYMBOLS[self]


CURRENCY_SYMBOLS = {
    Currency.INR: "₹",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
    Currency.JPY: "¥",
    Currency.CNY: "¥",
    Currency.AUD: "A$",
    Currency.CAD: "C$",
}


class TimeFilter(str, Enum):
    """Coarse recency filter applied before text search."""
    ALL = "all"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ReportPeriod(str, Enum):
    """Report periods, always anchored on the current date."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class TransactionKind(str, Enum):
    """Which side of the ledger a synthesized transaction lands on."""
    INCOME = "income"
    EXPENSE = "expense"


def format_amount(amount: Decimal, currency: str = "INR") -> str:
    """
    Format an amount with its currency symbol and two decimals.

    Unknown currency codes fall back to the code itself as prefix.
    """
    try:
        symbol = Currency(currency).symbol
    except ValueError:
        symbol = f"{currency} "
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(Decimal(amount)):,.2f}"


# =============================================================================
# SESSION
# =============================================================================

class UserSession(BaseModel):
    """
    The signed-in user, as supplied by the identity provider.

    Passed explicitly to every store. No session means signed out.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None


# =============================================================================
# ATTACHMENTS
# =============================================================================

class UploadedFile(BaseModel):
    """A file picked by the user, not yet in blob storage."""

    name: str = Field(..., min_length=1)
    content: bytes
    content_type: str = Field(default="application/octet-stream")

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." not in self.name:
            return "bin"
        return self.name.rsplit(".", 1)[-1].lower()

    def is_acceptable(self, max_bytes: int) -> bool:
        """Images and PDFs under the size limit are accepted."""
        is_image = self.content_type.startswith("image/")
        is_pdf = self.content_type == "application/pdf"
        return (is_image or is_pdf) and self.size <= max_bytes


class Attachment(BaseModel):
    """Metadata row for a file stored against an expense."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    expense_id: str
    file_name: str
    file_path: str = Field(
        ...,
        description="Blob storage key: {owner}/{record}/{unique}.{ext}"
    )
    file_type: str
    file_size: int = Field(ge=0)


# =============================================================================
# READ MODELS
# =============================================================================

class Expense(BaseModel):
    """An expense as returned by the table store."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str
    user_id: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    description: str
    category: str
    currency: str = Currency.INR.value
    date: dt.date
    ai_suggested: bool = False
    created_at: Optional[dt.datetime] = None
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator('attachments', mode='before')
    @classmethod
    def none_is_empty(cls, v):
        return v or []


class Income(BaseModel):
    """An income entry as returned by the table store."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str
    user_id: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    description: str
    category: str
    currency: str = Currency.USD.value
    date: dt.date
    created_at: Optional[dt.datetime] = None
    file_attachments: list[str] = Field(default_factory=list)

    @field_validator('file_attachments', mode='before')
    @classmethod
    def none_is_empty(cls, v):
        return v or []


class Reminder(BaseModel):
    """A bill/loan/medicine/recharge reminder."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str
    user_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: str
    due_date: dt.date
    amount: Optional[Decimal] = Field(default=None, ge=0)
    is_completed: bool = False
    created_at: Optional[dt.datetime] = None

    @property
    def has_amount(self) -> bool:
        return bool(self.amount)


class StoredLink(BaseModel):
    """A bookmarked website (bank portals, bill payment pages...)."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str
    user_id: Optional[str] = None
    title: str
    url: str
    description: Optional[str] = None
    category: Optional[str] = None
    created_at: Optional[dt.datetime] = None


# =============================================================================
# CREATE PAYLOADS
# =============================================================================

class ExpenseCreate(BaseModel):
    """Fields the expense form submits."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., ge=0, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)
    category: ExpenseCategory
    currency: Currency = Currency.INR
    date: dt.date = Field(default_factory=dt.date.today)
    ai_suggested: bool = False


class IncomeCreate(BaseModel):
    """Fields the income form submits."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., ge=0, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=500)
    category: IncomeCategory
    currency: Currency = Currency.USD
    date: dt.date = Field(default_factory=dt.date.today)


class ReminderCreate(BaseModel):
    """Fields the reminder form submits."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: ReminderCategory
    due_date: dt.date
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    is_completed: bool = False


class StoredLinkCreate(BaseModel):
    """Fields the link form submits."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
