"""
Data Models Package

This package contains all Pydantic models used in the Budget Ledger system.
All data flowing through the system must conform to these schemas.
"""

from budget_ledger.models.ledger import (
    STRUCTURAL_FAILURE,
    Account,
    AccountType,
    Budget,
    BudgetStatus,
    Category,
    ImportSummary,
    PostingRequest,
    RawRow,
    Transaction,
    TransactionType,
)
from budget_ledger.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "STRUCTURAL_FAILURE",
    "Account",
    "AccountType",
    "Budget",
    "BudgetStatus",
    "Category",
    "ImportSummary",
    "PostingRequest",
    "RawRow",
    "Transaction",
    "TransactionType",
    # Event models
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventSeverity",
    "LedgerEventType",
]
