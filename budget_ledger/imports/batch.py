"""
Batch Import Pipeline

Posts every row of a feed through the Ledger Posting Engine and reports
what happened in an ImportSummary.

DESIGN DECISION: The import is a fold over rows.
- parse_row turns one RawRow into a PostingRequest (pure, no I/O)
- _process_row resolves the category and posts, producing a RowOutcome
- ImportTally accumulates outcomes into counts and messages

A bad row never stops the batch. Only a feed that cannot be read as a
table at all does, and that is reported with the STRUCTURAL_FAILURE
sentinel instead of row counts.

No deduplication: importing the same feed twice posts every row twice.
"""

from typing import Iterable, NamedTuple, Optional
from uuid import UUID

from budget_ledger.audit import LedgerEventLogger, create_correlation_id
from budget_ledger.errors import (
    AccountNotFoundError,
    LedgerError,
    MissingFieldError,
    StructuralImportError,
)
from budget_ledger.imports.feed import FeedSource, open_feed, read_feed, source_name
from budget_ledger.ledger.categories import CategoryService
from budget_ledger.ledger.posting import LedgerPostingEngine
from budget_ledger.models.ledger import (
    STRUCTURAL_FAILURE,
    ImportSummary,
    PostingRequest,
    RawRow,
    TransactionType,
)
from budget_ledger.services.storage import EntityStoreInterface, StorageError
from budget_ledger.validation import parse_amount, parse_iso_date

DEFAULT_MAX_ERROR_MESSAGES = 500


# =============================================================================
# PURE STEPS
# =============================================================================

def parse_row(row: RawRow) -> PostingRequest:
    """
    Convert one feed row into a posting request.

    Checks run in this order: required fields present, date, amount.
    The amount's sign picks the type (negative is expense, anything
    else income) and the request carries the absolute value.

    Raises:
        MissingFieldError: Date or Amount is empty
        InvalidDateError: Date is not YYYY-MM-DD
        InvalidAmountError: Amount is not a decimal number
    """
    if not row.date:
        raise MissingFieldError("Date")
    if not row.amount:
        raise MissingFieldError("Amount")

    transaction_date = parse_iso_date(row.date)
    amount = parse_amount(row.amount)

    transaction_type = TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME
    return PostingRequest(
        amount=abs(amount),
        transaction_type=transaction_type,
        transaction_date=transaction_date,
        description=row.description or None,
        category_name=row.category or None,
    )


class RowOutcome(NamedTuple):
    """Result of processing one row: an error message, or None on success."""
    row_number: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ImportTally:
    """
    Accumulator for the fold over rows.

    Keeps at most max_messages row messages; further failures are still
    counted and summarised in one trailing note.
    """

    def __init__(self, max_messages: int = DEFAULT_MAX_ERROR_MESSAGES):
        self.total_rows_read = 0
        self.successful_imports = 0
        self.failed_imports = 0
        self._messages: list[str] = []
        self._omitted = 0
        self._max_messages = max_messages

    def add(self, outcome: RowOutcome) -> "ImportTally":
        self.total_rows_read += 1
        if outcome.ok:
            self.successful_imports += 1
        else:
            self.failed_imports += 1
            if len(self._messages) < self._max_messages:
                self._messages.append(outcome.error)
            else:
                self._omitted += 1
        return self

    def to_summary(self) -> ImportSummary:
        messages = list(self._messages)
        if self._omitted:
            messages.append(f"... {self._omitted} more row errors not shown")
        return ImportSummary(
            total_rows_read=self.total_rows_read,
            successful_imports=self.successful_imports,
            failed_imports=self.failed_imports,
            error_messages=messages,
        )

    def to_structural_failure(self, reason: str) -> ImportSummary:
        """Summary for a feed that stopped being readable."""
        return ImportSummary(
            total_rows_read=self.total_rows_read,
            successful_imports=self.successful_imports,
            failed_imports=STRUCTURAL_FAILURE,
            error_messages=[f"Error reading import feed: {reason}"],
        )


# =============================================================================
# PIPELINE
# =============================================================================

class BatchImportPipeline:
    """
    Imports feeds of RawRows into one target account.

    Row-level LedgerError, StorageError and ValueError (which covers
    model validation) are turned into row failures.
    Anything else is a bug and propagates.
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        posting_engine: LedgerPostingEngine,
        category_service: CategoryService,
        event_logger: Optional[LedgerEventLogger] = None,
        max_error_messages: int = DEFAULT_MAX_ERROR_MESSAGES,
    ):
        self._store = store
        self._posting_engine = posting_engine
        self._category_service = category_service
        self._event_logger = event_logger
        self._max_error_messages = max_error_messages

    async def import_batch(
        self,
        rows: Iterable[RawRow],
        target_account_id: UUID,
        source: str = "batch",
    ) -> ImportSummary:
        """
        Post every row to target_account_id.

        Raises:
            AccountNotFoundError: target account does not exist (checked
                before any row is read)
        """
        if target_account_id is None or await self._store.get_account(target_account_id) is None:
            raise AccountNotFoundError(target_account_id)

        correlation_id = create_correlation_id()
        if self._event_logger:
            self._event_logger.log_import_started(target_account_id, source, correlation_id)

        tally = ImportTally(self._max_error_messages)
        row_number = 0
        try:
            for row in rows:
                row_number += 1
                outcome = await self._process_row(
                    row, row_number, target_account_id, correlation_id
                )
                tally.add(outcome)
        except StructuralImportError as e:
            if self._event_logger:
                self._event_logger.log_import_aborted(target_account_id, str(e), correlation_id)
            return tally.to_structural_failure(str(e))

        summary = tally.to_summary()
        if self._event_logger:
            self._event_logger.log_import_completed(
                account_id=target_account_id,
                total_rows=summary.total_rows_read,
                successful=summary.successful_imports,
                failed=summary.failed_imports,
                correlation_id=correlation_id,
            )
        return summary

    async def import_csv(
        self,
        source: FeedSource,
        target_account_id: UUID,
    ) -> ImportSummary:
        """
        Import a CSV file path or open text stream.

        A source that cannot be opened or tokenized gives a structural
        failure summary rather than an exception.
        """
        if target_account_id is None or await self._store.get_account(target_account_id) is None:
            raise AccountNotFoundError(target_account_id)

        name = source_name(source)
        try:
            stream = open_feed(source)
        except StructuralImportError as e:
            if self._event_logger:
                self._event_logger.log_import_aborted(
                    target_account_id, str(e), create_correlation_id()
                )
            return ImportTally().to_structural_failure(str(e))

        try:
            return await self.import_batch(read_feed(stream), target_account_id, source=name)
        finally:
            if stream is not source:
                stream.close()

    async def _process_row(
        self,
        row: RawRow,
        row_number: int,
        account_id: UUID,
        correlation_id: UUID,
    ) -> RowOutcome:
        try:
            request = parse_row(row)
            category = await self._category_service.find_or_create_category(
                request.category_name
            )
            await self._posting_engine.post(
                request.amount,
                request.transaction_type,
                request.transaction_date,
                request.description,
                category.id if category else None,
                account_id=account_id,
                correlation_id=correlation_id,
            )
        except (LedgerError, StorageError, ValueError) as e:
            message = f"Row {row_number}: {e}"
            if self._event_logger:
                self._event_logger.log_import_row_failed(row_number, message, correlation_id)
            return RowOutcome(row_number, message)
        return RowOutcome(row_number)
