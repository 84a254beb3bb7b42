"""Ledger event logging package."""

from budget_ledger.audit.logger import (
    LedgerEventLogger,
    configure_logging,
    create_correlation_id,
)

__all__ = ["LedgerEventLogger", "configure_logging", "create_correlation_id"]
