"""
In-Memory Entity Store

Dict-backed implementation of the entity store. Used as the default
backend and by the test suite.

Records are kept in insertion order and handed out as deep copies, so a
caller holding a returned Account cannot change the stored balance by
accident.

One threading.Lock guards every read and write. The store may be shared
by threads that each run their own event loop. No critical section awaits.
"""

import threading
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
from budget_ledger.services.storage.interface import (
    DuplicateError,
    EntityStoreInterface,
    RecordNotFoundError,
    names_match,
)


class InMemoryEntityStore(EntityStoreInterface):
    """Entity store held entirely in process memory."""

    def __init__(self):
        self._accounts: dict[UUID, Account] = {}
        self._categories: dict[UUID, Category] = {}
        self._budgets: dict[UUID, Budget] = {}
        self._transactions: dict[UUID, Transaction] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        with self._lock:
            account = self._accounts.get(account_id)
            return account.model_copy(deep=True) if account else None

    async def get_account_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Account]:
        with self._lock:
            for account in self._accounts.values():
                if names_match(account.name, name, case_insensitive):
                    return account.model_copy(deep=True)
        return None

    async def list_accounts(self) -> list[Account]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._accounts.values()]

    async def save_account(self, account: Account) -> Account:
        with self._lock:
            for other in self._accounts.values():
                if other.id != account.id and names_match(other.name, account.name, case_insensitive=True):
                    raise DuplicateError(f"Account name already in use: {account.name}")

            existing = self._accounts.get(account.id)
            stored = account.model_copy(deep=True)
            if existing is not None:
                stored.balance = existing.balance
            self._accounts[stored.id] = stored
            return stored.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        with self._lock:
            category = self._categories.get(category_id)
            return category.model_copy(deep=True) if category else None

    async def get_category_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Category]:
        with self._lock:
            for category in self._categories.values():
                if names_match(category.name, name, case_insensitive):
                    return category.model_copy(deep=True)
        return None

    async def list_categories(self) -> list[Category]:
        with self._lock:
            return [c.model_copy(deep=True) for c in self._categories.values()]

    async def save_category(self, category: Category) -> Category:
        with self._lock:
            for other in self._categories.values():
                if other.id != category.id and names_match(other.name, category.name, case_insensitive=True):
                    raise DuplicateError(f"Category name already in use: {category.name}")
            self._categories[category.id] = category.model_copy(deep=True)
            return category.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def get_budget(
        self,
        category_id: UUID,
        year: int,
        month: int,
    ) -> Optional[Budget]:
        with self._lock:
            for budget in self._budgets.values():
                if budget.period_key == (category_id, year, month):
                    return budget.model_copy(deep=True)
        return None

    async def list_budgets(self, year: int, month: int) -> list[Budget]:
        with self._lock:
            return [
                b.model_copy(deep=True)
                for b in self._budgets.values()
                if b.year == year and b.month == month
            ]

    async def save_budget(self, budget: Budget) -> Budget:
        with self._lock:
            for other in self._budgets.values():
                if other.id != budget.id and other.period_key == budget.period_key:
                    raise DuplicateError(
                        f"Budget already exists for category {budget.category_id} "
                        f"in {budget.year}-{budget.month:02d}"
                    )
            self._budgets[budget.id] = budget.model_copy(deep=True)
            return budget.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def apply_posting(
        self,
        transaction: Transaction,
        balance_delta: Decimal,
    ) -> tuple[Transaction, Account]:
        with self._lock:
            account = self._accounts.get(transaction.account_id)
            if account is None:
                raise RecordNotFoundError(f"Account not found: {transaction.account_id}")
            if transaction.id in self._transactions:
                raise DuplicateError(f"Transaction already posted: {transaction.id}")

            # Build both new records first; the two dict writes below cannot fail
            stored = transaction.model_copy(deep=True)
            updated = account.model_copy(deep=True)
            updated.balance = account.balance + balance_delta

            self._transactions[stored.id] = stored
            self._accounts[updated.id] = updated
            return stored.model_copy(deep=True), updated.model_copy(deep=True)

    async def list_transactions_by_category_and_date_range(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> list[Transaction]:
        return await self.list_transactions(
            category_id=category_id,
            date_from=start,
            date_to=end,
        )

    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        description: Optional[str] = None,
    ) -> list[Transaction]:
        needle = description.casefold() if description else None
        with self._lock:
            transactions = list(self._transactions.values())

        results = []
        for txn in transactions:
            if account_id and txn.account_id != account_id:
                continue
            if category_id and txn.category_id != category_id:
                continue
            if date_from and txn.transaction_date < date_from:
                continue
            if date_to and txn.transaction_date > date_to:
                continue
            if transaction_type and txn.transaction_type != transaction_type:
                continue
            if needle and needle not in (txn.description or "").casefold():
                continue
            results.append(txn.model_copy(deep=True))

        results.sort(key=lambda t: (t.transaction_date, t.created_at))
        return results

