"""
Ledger Posting Engine

DESIGN DECISION: Posting is the ONLY place an account balance changes.
Centralising the mutation here keeps reads cheap (balances are stored,
not derived) and means balance drift can only come from this module.

Posting order:
1. Validate the amount, type and date (nothing is read yet)
2. Resolve the account and, if given, the category
3. Build the Transaction
4. Hand transaction + signed delta to the store's apply_posting,
   which commits both writes as one unit

Every check that can fail happens before step 4, so a rejected posting
leaves no trace in storage.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_ledger.audit import LedgerEventLogger
from budget_ledger.errors import (
    AccountNotFoundError,
    CategoryNotFoundError,
    LedgerError,
)
from budget_ledger.models.ledger import Transaction, TransactionType
from budget_ledger.services.storage import EntityStoreInterface, RecordNotFoundError
from budget_ledger.validation import validate_posting_amount


class LedgerPostingEngine:
    """
    Validates and posts transactions against accounts.

    GUARANTEES:
    - A posted transaction and its balance effect commit together
    - Income adds the amount to the balance, expense subtracts it
    - Nothing is written when any input is rejected
    """

    def __init__(
        self,
        store: EntityStoreInterface,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._store = store
        self._event_logger = event_logger

    async def post(
        self,
        amount: Decimal,
        transaction_type: TransactionType,
        transaction_date: date,
        description: Optional[str] = None,
        category_id: Optional[UUID] = None,
        *,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Post one transaction and apply its effect to the account balance.

        Args:
            amount: Positive amount with at most two decimal places
            transaction_type: INCOME or EXPENSE
            transaction_date: Calendar date of the transaction
            description: Optional free text
            category_id: Optional category reference
            account_id: Owning account
            correlation_id: Ties the posting to a wider action (an import)

        Returns:
            The persisted Transaction

        Raises:
            InvalidAmountError: amount missing, not positive or too precise
            ValueError: transaction_type or transaction_date missing
            AccountNotFoundError: account_id does not resolve
            CategoryNotFoundError: category_id given but does not resolve
        """
        try:
            transaction = await self._prepare(
                amount,
                transaction_type,
                transaction_date,
                description,
                category_id,
                account_id,
            )
        except (LedgerError, ValueError) as e:
            if self._event_logger:
                self._event_logger.log_posting_rejected(account_id, str(e), correlation_id)
            raise

        try:
            stored, account = await self._store.apply_posting(
                transaction,
                transaction.signed_amount,
            )
        except RecordNotFoundError as e:
            # Account vanished between resolution and commit
            if self._event_logger:
                self._event_logger.log_posting_rejected(account_id, str(e), correlation_id)
            raise AccountNotFoundError(account_id) from e

        if self._event_logger:
            self._event_logger.log_transaction_posted(
                transaction_id=stored.id,
                account_id=account.id,
                transaction_type=stored.transaction_type.value,
                amount=stored.amount,
                new_balance=account.balance,
                correlation_id=correlation_id,
            )
        return stored

    async def _prepare(
        self,
        amount: Decimal,
        transaction_type: TransactionType,
        transaction_date: date,
        description: Optional[str],
        category_id: Optional[UUID],
        account_id: UUID,
    ) -> Transaction:
        """Run every check and build the unsaved Transaction."""
        value = validate_posting_amount(amount)
        if not isinstance(transaction_type, TransactionType):
            raise ValueError(f"Transaction type is required, got {transaction_type!r}")
        if not isinstance(transaction_date, date):
            raise ValueError(f"Transaction date is required, got {transaction_date!r}")

        if account_id is None or await self._store.get_account(account_id) is None:
            raise AccountNotFoundError(account_id)
        if category_id is not None and await self._store.get_category(category_id) is None:
            raise CategoryNotFoundError(category_id)

        if description is not None:
            description = description.strip() or None

        return Transaction(
            amount=value,
            transaction_type=transaction_type,
            transaction_date=transaction_date,
            description=description,
            account_id=account_id,
            category_id=category_id,
        )
