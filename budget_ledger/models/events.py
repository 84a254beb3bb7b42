"""
Ledger Event Models

Every significant ledger action produces one structured event that is
written to the log. Events are never persisted: the ledger keeps no
audit trail beyond the stored running balance.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budget_ledger.models.ledger import utcnow


class LedgerEventType(str, Enum):
    """Types of events we log."""
    # Setup
    ACCOUNT_OPENED = "account_opened"
    CATEGORY_CREATED = "category_created"

    # Posting
    TRANSACTION_POSTED = "transaction_posted"
    POSTING_REJECTED = "posting_rejected"

    # Budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_UPDATED = "budget_updated"

    # Import
    IMPORT_STARTED = "import_started"
    IMPORT_ROW_FAILED = "import_row_failed"
    IMPORT_COMPLETED = "import_completed"
    IMPORT_ABORTED = "import_aborted"


class LedgerEventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single ledger event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'budget', 'import')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - ties the rows of one import together
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.transaction_posted(transaction, new_balance)
        event = LedgerEventBuilder.import_row_failed(3, message, correlation_id)
    """

    @staticmethod
    def account_opened(
        account_id: UUID,
        name: str,
        account_type: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ACCOUNT_OPENED,
            entity_type="account",
            entity_id=account_id,
            description=f"Account opened: {name}",
            details={"name": name, "account_type": account_type},
        )

    @staticmethod
    def category_created(category_id: UUID, name: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_CREATED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category created: {name}",
            details={"name": name},
        )

    @staticmethod
    def transaction_posted(
        transaction_id: UUID,
        account_id: UUID,
        transaction_type: str,
        amount: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_POSTED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Posted {transaction_type} of {amount}",
            details={
                "account_id": str(account_id),
                "transaction_type": transaction_type,
                "amount": str(amount),
                "new_balance": str(new_balance),
            },
        )

    @staticmethod
    def posting_rejected(
        account_id: Optional[UUID],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.POSTING_REJECTED,
            severity=LedgerEventSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Posting rejected",
            error_message=reason,
        )

    @staticmethod
    def budget_set(
        budget_id: UUID,
        category_id: UUID,
        year: int,
        month: int,
        amount: Decimal,
        created: bool,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=(
                LedgerEventType.BUDGET_CREATED if created else LedgerEventType.BUDGET_UPDATED
            ),
            entity_type="budget",
            entity_id=budget_id,
            description=f"Budget {'created' if created else 'updated'} for {year}-{month:02d}",
            details={
                "category_id": str(category_id),
                "year": year,
                "month": month,
                "budgeted_amount": str(amount),
            },
        )

    @staticmethod
    def import_started(
        account_id: UUID,
        source_name: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IMPORT_STARTED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Import started from {source_name}",
            details={"source": source_name},
        )

    @staticmethod
    def import_row_failed(
        row_number: int,
        message: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IMPORT_ROW_FAILED,
            severity=LedgerEventSeverity.WARNING,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Import row {row_number} failed",
            details={"row_number": row_number},
            error_message=message,
        )

    @staticmethod
    def import_completed(
        account_id: UUID,
        total_rows: int,
        successful: int,
        failed: int,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IMPORT_COMPLETED,
            severity=(
                LedgerEventSeverity.WARNING if failed else LedgerEventSeverity.INFO
            ),
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Import finished: {successful} of {total_rows} rows posted",
            details={
                "total_rows_read": total_rows,
                "successful_imports": successful,
                "failed_imports": failed,
            },
        )

    @staticmethod
    def import_aborted(
        account_id: UUID,
        reason: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IMPORT_ABORTED,
            severity=LedgerEventSeverity.ERROR,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Import aborted: feed could not be read as a table",
            error_message=reason,
        )
