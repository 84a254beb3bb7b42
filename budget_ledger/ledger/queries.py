"""
Transaction Queries

Read-only listings for the presentation layer. None of the engines
depend on these; they exist so the front end can browse the ledger.

Every result is ordered by transaction date, then creation time. An
inverted date range is not an error, it simply matches nothing.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from budget_ledger.errors import AccountNotFoundError, CategoryNotFoundError
from budget_ledger.models.ledger import Transaction, TransactionType
from budget_ledger.services.storage import EntityStoreInterface


class TransactionQueries:
    """Filters over stored transactions."""

    def __init__(self, store: EntityStoreInterface):
        self._store = store

    async def transactions_for_account(self, account_id: UUID) -> list[Transaction]:
        if await self._store.get_account(account_id) is None:
            raise AccountNotFoundError(account_id)
        return await self._store.list_transactions(account_id=account_id)

    async def transactions_for_category(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> list[Transaction]:
        if await self._store.get_category(category_id) is None:
            raise CategoryNotFoundError(category_id)
        if start > end:
            return []
        return await self._store.list_transactions_by_category_and_date_range(
            category_id, start, end
        )

    async def transactions_in_range(self, start: date, end: date) -> list[Transaction]:
        if start > end:
            return []
        return await self._store.list_transactions(date_from=start, date_to=end)

    async def transactions_by_type(
        self,
        transaction_type: TransactionType,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        if start and end and start > end:
            return []
        return await self._store.list_transactions(
            transaction_type=transaction_type,
            date_from=start,
            date_to=end,
        )

    async def search_descriptions(self, keyword: str) -> list[Transaction]:
        """Case-insensitive substring match; a blank keyword matches nothing."""
        if not keyword or not keyword.strip():
            return []
        return await self._store.list_transactions(description=keyword.strip())
