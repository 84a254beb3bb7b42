"""
Budget Reconciliation Engine

Compares budgeted amounts with actual spending per category and month.

IMPORTANT:
- Only EXPENSE transactions count as spending; income in the same
  category never offsets it.
- Sums are exact Decimal arithmetic. Nothing is rounded here; rounding
  happens only when an amount is displayed.
- remaining = budgeted - actual keeps its sign. A negative remaining is
  an overspend and is reported as such, never clamped to zero.

set_budget is the only write this engine performs. Everything else
reads from the store.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_ledger.audit import LedgerEventLogger
from budget_ledger.errors import BudgetNotFoundError, CategoryNotFoundError
from budget_ledger.models.ledger import (
    Budget,
    BudgetStatus,
    Category,
    TransactionType,
    utcnow,
)
from budget_ledger.services.storage import DuplicateError, EntityStoreInterface
from budget_ledger.validation import (
    ZERO,
    month_bounds,
    validate_budget_amount,
    validate_period,
)


class BudgetReconciliationEngine:
    """
    Budget upserts and budget-versus-actual status.

    GUARANTEES:
    - At most one Budget per (category, year, month)
    - Reconciliation never writes
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._store = store
        self._event_logger = event_logger

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def set_budget(
        self,
        category_id: UUID,
        year: int,
        month: int,
        amount: Decimal,
    ) -> Budget:
        """
        Create the budget for (category, year, month) or update it in place.

        Raises:
            InvalidAmountError: amount negative or too precise
            InvalidPeriodError: month outside 1-12
            CategoryNotFoundError: category_id does not resolve
        """
        value = validate_budget_amount(amount)
        validate_period(year, month)
        await self._require_category(category_id)

        existing = await self._store.get_budget(category_id, year, month)
        if existing is None:
            try:
                budget = await self._store.save_budget(
                    Budget(
                        category_id=category_id,
                        year=year,
                        month=month,
                        budgeted_amount=value,
                    )
                )
                created = True
            except DuplicateError:
                # Lost a race for the same key; the store kept the other row
                existing = await self._store.get_budget(category_id, year, month)
                if existing is None:
                    raise

        if existing is not None:
            existing.budgeted_amount = value
            existing.updated_at = utcnow()
            budget = await self._store.save_budget(existing)
            created = False

        if self._event_logger:
            self._event_logger.log_budget_set(
                budget_id=budget.id,
                category_id=category_id,
                year=year,
                month=month,
                amount=value,
                created=created,
            )
        return budget

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_budget(self, category_id: UUID, year: int, month: int) -> Optional[Budget]:
        validate_period(year, month)
        await self._require_category(category_id)
        return await self._store.get_budget(category_id, year, month)

    async def require_budget(self, category_id: UUID, year: int, month: int) -> Budget:
        """
        Like get_budget, for callers that need the budget to exist.

        Raises:
            BudgetNotFoundError: no budget is set for the category and month
        """
        budget = await self.get_budget(category_id, year, month)
        if budget is None:
            raise BudgetNotFoundError(
                category_id,
                f"Budget not found for category {category_id} in {year}-{month:02d}",
            )
        return budget

    async def budgets_for_period(self, year: int, month: int) -> list[Budget]:
        validate_period(year, month)
        return await self._store.list_budgets(year, month)

    async def actual_spending(self, category_id: UUID, year: int, month: int) -> Decimal:
        """
        Sum of EXPENSE amounts in the category dated within the month.

        Returns 0.00 when nothing matches.
        """
        await self._require_category(category_id)
        return await self._spending(category_id, year, month)

    async def status_for_category(
        self,
        category_id: UUID,
        year: int,
        month: int,
    ) -> Optional[BudgetStatus]:
        """Budget status, or None when no budget is set for the period."""
        validate_period(year, month)
        category = await self._require_category(category_id)
        budget = await self._store.get_budget(category_id, year, month)
        if budget is None:
            return None
        return await self._status(budget, category)

    async def status_for_period(self, year: int, month: int) -> list[BudgetStatus]:
        """
        Status of every budget in the period.

        Order follows the store's retrieval order for the budgets.
        """
        statuses = []
        for budget in await self.budgets_for_period(year, month):
            category = await self._require_category(budget.category_id)
            statuses.append(await self._status(budget, category))
        return statuses

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _require_category(self, category_id: UUID) -> Category:
        category = await self._store.get_category(category_id) if category_id else None
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    async def _spending(self, category_id: UUID, year: int, month: int) -> Decimal:
        start, end = month_bounds(year, month)
        transactions = await self._store.list_transactions_by_category_and_date_range(
            category_id, start, end
        )
        total = ZERO
        for txn in transactions:
            if txn.transaction_type is TransactionType.EXPENSE:
                total += txn.amount
        return total

    async def _status(self, budget: Budget, category: Category) -> BudgetStatus:
        actual = await self._spending(budget.category_id, budget.year, budget.month)
        return BudgetStatus(
            category_id=category.id,
            category_name=category.name,
            year=budget.year,
            month=budget.month,
            budgeted_amount=budget.budgeted_amount,
            actual_spending=actual,
            remaining=budget.budgeted_amount - actual,
        )
