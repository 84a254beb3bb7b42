"""
Core Data Models for Budget Ledger

These models define the schemas for every record the ledger stores and
every result it hands back. They are designed to:
1. Enforce type safety at runtime
2. Keep money as Decimal (never float)
3. Reference related records by ID, never by live object graph
4. Be serializable for storage and logging

DESIGN DECISION: Relationships are explicit foreign-key style UUIDs.
A Transaction knows its account_id and category_id; resolving them is
the job of the entity store, so nothing here can lazily fetch behind
the caller's back.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Closed sets of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Kinds of account the ledger tracks.

    The kind is informational; posting treats every kind the same way.
    """
    CHECKING = "checking"
    CREDIT_CARD = "credit_card"
    SAVINGS = "savings"
    CASH = "cash"
    INVESTMENT = "investment"
    LOAN = "loan"
    BROKERAGE = "brokerage"
    CASH_MANAGEMENT_BROKERAGE = "cash_management_brokerage"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _ACCOUNT_TYPE_DISPLAY[self]


_ACCOUNT_TYPE_DISPLAY = {
    AccountType.CHECKING: "Checking Account",
    AccountType.CREDIT_CARD: "Credit Card",
    AccountType.SAVINGS: "Savings Account",
    AccountType.CASH: "Cash",
    AccountType.INVESTMENT: "Investment Account",
    AccountType.LOAN: "Loan",
    AccountType.BROKERAGE: "Brokerage Account",
    AccountType.CASH_MANAGEMENT_BROKERAGE: "Cash Management Brokerage Account",
    AccountType.OTHER: "Other",
}


class TransactionType(str, Enum):
    """
    Direction of a transaction.

    CRITICAL: The sign of a transaction lives here, never in the amount.
    """
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    def signed(self, amount: Decimal) -> Decimal:
        """Balance effect of an absolute amount of this type."""
        if self is TransactionType.INCOME:
            return amount
        if self is TransactionType.EXPENSE:
            return -amount
        raise ValueError(f"Unhandled transaction type: {self!r}")


# =============================================================================
# ENTITIES
# =============================================================================

class Account(BaseModel):
    """
    An account holding a running balance.

    CRITICAL: balance equals the signed sum of the account's transactions.
    Only the posting engine (via the store's apply_posting) changes it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique display name"
    )
    account_type: AccountType = Field(
        ...,
        description="Kind of account"
    )
    balance: Decimal = Field(
        default=Decimal("0.00"),
        description="Running balance"
    )


class Category(BaseModel):
    """
    A spending/income category.

    Names are unique ignoring case; lookups by name are case-insensitive.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique display name"
    )


class Transaction(BaseModel):
    """
    A single posted transaction.

    The amount is always positive; transaction_type carries the sign.
    Once stored, a transaction is never edited or reversed implicitly.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Absolute amount"
    )
    transaction_type: TransactionType
    transaction_date: date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=255,
    )
    account_id: UUID = Field(
        ...,
        description="Owning account"
    )
    category_id: Optional[UUID] = Field(
        default=None,
        description="Category, if categorized"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def signed_amount(self) -> Decimal:
        return self.transaction_type.signed(self.amount)


class Budget(BaseModel):
    """
    A budgeted amount for one category in one calendar month.

    (category_id, year, month) is a uniqueness key.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique budget ID"
    )
    category_id: UUID
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    budgeted_amount: Decimal = Field(
        ...,
        ge=0,
        description="Budgeted spending for the month"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def period_key(self) -> tuple[UUID, int, int]:
        return (self.category_id, self.year, self.month)


# =============================================================================
# RESULT MODELS
# =============================================================================

class BudgetStatus(BaseModel):
    """
    Budget versus actual spending for one category and month.

    remaining is budgeted - actual and keeps its sign: a negative value
    means the category is overspent.
    """

    category_id: UUID
    category_name: str
    year: int
    month: int
    budgeted_amount: Decimal
    actual_spending: Decimal
    remaining: Decimal

    @property
    def is_overspent(self) -> bool:
        return self.remaining < 0


class RawRow(BaseModel):
    """
    One row of an import feed, exactly as read.

    All four fields are text; parsing happens in the import pipeline.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    date: str = ""
    description: str = ""
    category: str = ""
    amount: str = ""


class PostingRequest(BaseModel):
    """A fully parsed row, ready for the posting engine."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    transaction_type: TransactionType
    transaction_date: date
    description: Optional[str] = None
    category_name: Optional[str] = None


STRUCTURAL_FAILURE = -1


class ImportSummary(BaseModel):
    """
    Outcome of one batch import.

    failed_imports == STRUCTURAL_FAILURE (-1) means the feed could not be
    read as a table at all; error_messages then holds one diagnostic.
    """

    total_rows_read: int = Field(default=0, ge=0)
    successful_imports: int = Field(default=0, ge=0)
    failed_imports: int = Field(default=0, ge=STRUCTURAL_FAILURE)
    error_messages: list[str] = Field(default_factory=list)

    @property
    def structural_failure(self) -> bool:
        return self.failed_imports == STRUCTURAL_FAILURE

    @model_validator(mode='after')
    def validate_counts(self) -> 'ImportSummary':
        """Row counts must add up unless the feed failed structurally."""
        if not self.structural_failure:
            if self.successful_imports + self.failed_imports != self.total_rows_read:
                raise ValueError("successful + failed imports must equal rows read")
        return self
