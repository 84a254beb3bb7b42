"""
Account Service

Opening and looking up accounts. An account always starts at 0.00; a
non-zero opening balance is booked as an ordinary posting so the stored
balance equals the sum of the account's transactions from day one.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_ledger.audit import LedgerEventLogger
from budget_ledger.errors import AccountNotFoundError
from budget_ledger.ledger.posting import LedgerPostingEngine
from budget_ledger.models.ledger import Account, AccountType, TransactionType
from budget_ledger.services.storage import DuplicateError, EntityStoreInterface
from budget_ledger.validation import ZERO, validate_posting_amount

OPENING_BALANCE_DESCRIPTION = "Opening balance"


class AccountService:
    """Creates and retrieves accounts."""

    def __init__(
        self,
        store: EntityStoreInterface,
        posting_engine: LedgerPostingEngine,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._store = store
        self._posting_engine = posting_engine
        self._event_logger = event_logger

    async def open_account(
        self,
        name: str,
        account_type: AccountType,
        opening_balance: Decimal = ZERO,
        opened_on: Optional[date] = None,
    ) -> Account:
        """
        Create an account, booking any opening balance as a transaction.

        A positive opening balance is posted as income, a negative one
        (e.g. a credit card already carrying debt) as expense.

        Raises:
            DuplicateError: An account with this name exists (ignoring case)
            InvalidAmountError: opening_balance has more than two decimals
        """
        if opening_balance is None:
            opening_balance = ZERO
        if opening_balance != 0:
            validate_posting_amount(abs(opening_balance))

        if await self._store.get_account_by_name(name, case_insensitive=True):
            raise DuplicateError(f"Account name already in use: {name.strip()}")

        account = await self._store.save_account(
            Account(name=name, account_type=account_type)
        )
        if self._event_logger:
            self._event_logger.log_account_opened(
                account.id, account.name, account.account_type.value
            )

        if opening_balance != 0:
            transaction_type = (
                TransactionType.INCOME if opening_balance > 0 else TransactionType.EXPENSE
            )
            await self._posting_engine.post(
                abs(opening_balance),
                transaction_type,
                opened_on or date.today(),
                OPENING_BALANCE_DESCRIPTION,
                account_id=account.id,
            )
            account = await self._store.get_account(account.id)

        return account

    async def list_accounts(self) -> list[Account]:
        return await self._store.list_accounts()

    async def get_account(self, account_id: UUID) -> Account:
        """Raises AccountNotFoundError when absent."""
        account = await self._store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def find_account_by_name(self, name: str) -> Optional[Account]:
        """Case-insensitive lookup; None when no account matches."""
        if not name or not name.strip():
            return None
        return await self._store.get_account_by_name(name, case_insensitive=True)
