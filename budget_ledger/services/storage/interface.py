"""
Abstract Entity Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the posting and budget engines decoupled from storage

The interface is intentionally simple - we're not building a full ORM.
Relationships are plain IDs; the engines resolve them explicitly.

CONTRACT:
- get_* methods return None when a record is absent; they never raise
  for a missing key.
- Returned records are copies. Mutating them changes nothing until they
  are passed back to a save_* method.
- apply_posting is the only path that changes an account balance, and
  it must be all-or-nothing.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_ledger.models.ledger import (
    Account,
    Budget,
    Category,
    Transaction,
    TransactionType,
)


class EntityStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (in-memory, Google Sheets, SQL, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_account(self, account_id: UUID) -> Optional[Account]:
        """Retrieve an account by its ID."""
        pass

    @abstractmethod
    async def get_account_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Account]:
        """Retrieve an account by its display name."""
        pass

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """List all accounts in creation order."""
        pass

    @abstractmethod
    async def save_account(self, account: Account) -> Account:
        """
        Insert a new account or update an existing account's name/kind.

        The stored balance of an existing account is never overwritten
        here; balances change only through apply_posting.

        Raises:
            DuplicateError: Another account already uses this name
                (compared ignoring case)
        """
        pass

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_category(self, category_id: UUID) -> Optional[Category]:
        """Retrieve a category by its ID."""
        pass

    @abstractmethod
    async def get_category_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Category]:
        """Retrieve a category by its display name."""
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """List all categories in creation order."""
        pass

    @abstractmethod
    async def save_category(self, category: Category) -> Category:
        """
        Insert or update a category.

        Raises:
            DuplicateError: Another category already uses this name
                (compared ignoring case)
        """
        pass

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_budget(
        self,
        category_id: UUID,
        year: int,
        month: int,
    ) -> Optional[Budget]:
        """Retrieve the budget for (category, year, month)."""
        pass

    @abstractmethod
    async def list_budgets(self, year: int, month: int) -> list[Budget]:
        """List budgets for a period in creation order."""
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """
        Insert or update a budget.

        Raises:
            DuplicateError: A different budget already exists for the same
                (category, year, month) key
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def apply_posting(
        self,
        transaction: Transaction,
        balance_delta: Decimal,
    ) -> tuple[Transaction, Account]:
        """
        Atomically insert a transaction and add balance_delta to its account.

        Either both writes become visible or neither does.

        Returns:
            (stored_transaction, updated_account)

        Raises:
            RecordNotFoundError: The transaction's account does not exist
            StorageError: The unit could not be committed (nothing changed)
        """
        pass

    @abstractmethod
    async def list_transactions_by_category_and_date_range(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> list[Transaction]:
        """Transactions in a category dated within [start, end], both inclusive."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        description: Optional[str] = None,
    ) -> list[Transaction]:
        """
        List transactions with optional filters.

        Args:
            account_id: Filter by owning account
            category_id: Filter by category
            date_from: Transactions on or after this date
            date_to: Transactions on or before this date
            transaction_type: Income or expense only
            description: Case-insensitive substring of the description

        Returns:
            Matching transactions ordered by date, then creation time
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class RecordNotFoundError(StorageError):
    """Record not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate record."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def names_match(stored: str, wanted: str, case_insensitive: bool = False) -> bool:
    """Name comparison shared by every store (surrounding whitespace ignored)."""
    if case_insensitive:
        return stored.strip().casefold() == wanted.strip().casefold()
    return stored.strip() == wanted.strip()
