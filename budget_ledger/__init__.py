"""
Budget Ledger - Source Package

A personal financial ledger: accounts, categories, transactions and
per-category monthly budgets.

DESIGN PRINCIPLES:
1. A posting and its balance effect commit together or not at all
2. Balances are mutated in exactly one place (the posting engine)
3. Money is Decimal end to end; rounding happens only for display
4. A bad import row never sinks the batch
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Ledger Team"
