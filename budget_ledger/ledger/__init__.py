"""Posting engine and the account, category and query services built around it."""

from budget_ledger.ledger.posting import LedgerPostingEngine
from budget_ledger.ledger.accounts import OPENING_BALANCE_DESCRIPTION, AccountService
from budget_ledger.ledger.categories import CategoryService
from budget_ledger.ledger.queries import TransactionQueries

__all__ = [
    "AccountService",
    "CategoryService",
    "LedgerPostingEngine",
    "OPENING_BALANCE_DESCRIPTION",
    "TransactionQueries",
]
