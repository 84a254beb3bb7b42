"""
Domain Error Taxonomy

Errors raised by the posting, reconciliation and import engines.

These indicate caller-supplied bad input, not transient faults, so
nothing in the ledger retries them. Storage faults live in
budget_ledger.services.storage and propagate unchanged.
"""

from typing import Optional
from uuid import UUID


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


# =============================================================================
# NOT FOUND
# =============================================================================

class EntityNotFoundError(LedgerError):
    """A referenced Account, Category or Budget does not exist."""

    entity_type = "entity"

    def __init__(self, entity_id: Optional[UUID], message: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message or f"{self.entity_type.capitalize()} not found with ID: {entity_id}")


class AccountNotFoundError(EntityNotFoundError):
    entity_type = "account"


class CategoryNotFoundError(EntityNotFoundError):
    entity_type = "category"


class BudgetNotFoundError(EntityNotFoundError):
    entity_type = "budget"


# =============================================================================
# INVALID INPUT
# =============================================================================

class InvalidAmountError(LedgerError, ValueError):
    """Amount is missing, non-finite, out of range or too precise."""
    pass


class InvalidPeriodError(LedgerError, ValueError):
    """Month outside 1-12 (or an unusable year)."""
    pass


# =============================================================================
# IMPORT
# =============================================================================

class RowError(LedgerError, ValueError):
    """A single import row could not become a posting request."""
    pass


class InvalidDateError(RowError):
    """Date field is not an ISO calendar date."""
    pass


class MissingFieldError(RowError):
    """A required row field (date or amount) is empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is empty")


class StructuralImportError(LedgerError):
    """The feed itself could not be read or parsed as a table."""
    pass
