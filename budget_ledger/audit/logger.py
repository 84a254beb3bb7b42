"""
Ledger Event Logger

DESIGN DECISION: Every significant ledger action is logged as one
structured event. This provides:
1. Traceability of every balance change
2. Debugging capability for failed imports
3. Correlation of all rows belonging to one import

The event logger:
- Writes to structlog only; events are never persisted
- Is synchronous so it can be called from inside the posting path
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_ledger.models.events import LedgerEvent, LedgerEventBuilder


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        fmt: "json" for machine-readable lines, "console" for humans
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure with defaults at import; create_app_components reconfigures
# from settings.
configure_logging()


class LedgerEventLogger:
    """
    Central event logging service for the ledger engines.

    Severity decides the structlog level the event is written at.
    """

    def __init__(self, logger_name: str = "budget_ledger"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: LedgerEvent) -> None:
        """Write one event to the structured log."""
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("ledger_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_account_opened(self, account_id: UUID, name: str, account_type: str) -> None:
        """Log account creation."""
        self.log(LedgerEventBuilder.account_opened(account_id, name, account_type))

    def log_category_created(self, category_id: UUID, name: str) -> None:
        """Log category creation."""
        self.log(LedgerEventBuilder.category_created(category_id, name))

    def log_transaction_posted(
        self,
        transaction_id: UUID,
        account_id: UUID,
        transaction_type: str,
        amount: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful posting."""
        event = LedgerEventBuilder.transaction_posted(
            transaction_id=transaction_id,
            account_id=account_id,
            transaction_type=transaction_type,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_posting_rejected(
        self,
        account_id: Optional[UUID],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a posting refused before anything was written."""
        self.log(LedgerEventBuilder.posting_rejected(account_id, reason, correlation_id))

    def log_budget_set(
        self,
        budget_id: UUID,
        category_id: UUID,
        year: int,
        month: int,
        amount: Decimal,
        created: bool,
    ) -> None:
        """Log budget creation or in-place update."""
        event = LedgerEventBuilder.budget_set(
            budget_id=budget_id,
            category_id=category_id,
            year=year,
            month=month,
            amount=amount,
            created=created,
        )
        self.log(event)

    def log_import_started(
        self,
        account_id: UUID,
        source_name: str,
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.import_started(account_id, source_name, correlation_id))

    def log_import_row_failed(
        self,
        row_number: int,
        message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.import_row_failed(row_number, message, correlation_id))

    def log_import_completed(
        self,
        account_id: UUID,
        total_rows: int,
        successful: int,
        failed: int,
        correlation_id: UUID,
    ) -> None:
        event = LedgerEventBuilder.import_completed(
            account_id=account_id,
            total_rows=total_rows,
            successful=successful,
            failed=failed,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_import_aborted(
        self,
        account_id: UUID,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.import_aborted(account_id, reason, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of an import. Pass it to every posting the
    import makes.
    """
    return uuid4()
