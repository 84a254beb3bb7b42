"""Budget reconciliation package."""

from budget_ledger.budgets.reconciliation import BudgetReconciliationEngine

__all__ = ["BudgetReconciliationEngine"]
