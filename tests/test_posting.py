"""
Tests for the Ledger Posting Engine and the services around it.

The balance invariant and posting atomicity are the core properties
checked here.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from budget_ledger.errors import (
    AccountNotFoundError,
    CategoryNotFoundError,
    InvalidAmountError,
)
from budget_ledger.models.ledger import AccountType, TransactionType
from budget_ledger.services.storage import DuplicateError


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestPostingEngine:
    """Tests for post()."""

    async def test_balance_follows_postings(self, posting_engine, store, checking):
        """Income 3500.00, expenses 125.50 and 85.00 leave 3289.50."""
        await posting_engine.post(Decimal("3500.00"), INCOME, date(2025, 6, 1), "Salary",
                                  account_id=checking.id)
        await posting_engine.post(Decimal("125.50"), EXPENSE, date(2025, 6, 2), "Groceries",
                                  account_id=checking.id)
        await posting_engine.post(Decimal("85.00"), EXPENSE, date(2025, 6, 3), "Fuel",
                                  account_id=checking.id)

        account = await store.get_account(checking.id)
        assert account.balance == Decimal("3289.50")

    async def test_balance_equals_signed_sum_of_transactions(self, posting_engine, store, checking):
        """Stored balance matches the transaction history."""
        postings = [
            (Decimal("10.00"), INCOME),
            (Decimal("2.25"), EXPENSE),
            (Decimal("7.75"), EXPENSE),
            (Decimal("0.01"), INCOME),
        ]
        for amount, transaction_type in postings:
            await posting_engine.post(amount, transaction_type, date(2025, 1, 1),
                                      account_id=checking.id)

        transactions = await store.list_transactions(account_id=checking.id)
        account = await store.get_account(checking.id)
        assert account.balance == sum((t.signed_amount for t in transactions), Decimal("0"))
        assert account.balance == Decimal("0.01")

    async def test_returns_persisted_transaction(self, posting_engine, store, checking, groceries):
        txn = await posting_engine.post(Decimal("42.00"), EXPENSE, date(2025, 6, 4),
                                        "  Market  ", groceries.id, account_id=checking.id)
        assert txn.id is not None
        assert txn.created_at is not None
        assert txn.amount == Decimal("42.00")
        assert txn.description == "Market"
        assert txn.category_id == groceries.id
        assert await store.list_transactions(account_id=checking.id) == [txn]

    async def test_unknown_category_changes_nothing(self, posting_engine, store, checking):
        """A failed category lookup leaves balance and transactions untouched."""
        await posting_engine.post(Decimal("100.00"), INCOME, date(2025, 6, 1),
                                  account_id=checking.id)

        with pytest.raises(CategoryNotFoundError):
            await posting_engine.post(Decimal("30.00"), EXPENSE, date(2025, 6, 2),
                                      category_id=uuid4(), account_id=checking.id)

        account = await store.get_account(checking.id)
        assert account.balance == Decimal("100.00")
        assert len(await store.list_transactions(account_id=checking.id)) == 1

    async def test_unknown_account(self, posting_engine, store):
        with pytest.raises(AccountNotFoundError) as exc_info:
            await posting_engine.post(Decimal("1.00"), INCOME, date(2025, 6, 1),
                                      account_id=uuid4())
        assert "Account not found with ID" in str(exc_info.value)
        assert await store.list_transactions() == []

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), Decimal("1.001")])
    async def test_invalid_amount_changes_nothing(self, posting_engine, store, checking, amount):
        with pytest.raises(InvalidAmountError):
            await posting_engine.post(amount, EXPENSE, date(2025, 6, 1), account_id=checking.id)
        assert (await store.get_account(checking.id)).balance == Decimal("0.00")
        assert await store.list_transactions() == []

    async def test_type_and_date_are_required(self, posting_engine, checking):
        with pytest.raises(ValueError):
            await posting_engine.post(Decimal("1.00"), None, date(2025, 6, 1),
                                      account_id=checking.id)
        with pytest.raises(ValueError):
            await posting_engine.post(Decimal("1.00"), INCOME, None, account_id=checking.id)

    async def test_account_removed_before_commit(self, posting_engine, store, checking, monkeypatch):
        """A store-level missing account surfaces as AccountNotFoundError."""
        store._accounts.clear()

        async def still_there(account_id):
            return checking

        monkeypatch.setattr(store, "get_account", still_there)
        with pytest.raises(AccountNotFoundError):
            await posting_engine.post(Decimal("1.00"), INCOME, date(2025, 6, 1),
                                      account_id=checking.id)
        assert store._transactions == {}


class TestAccountService:
    """Tests for opening and looking up accounts."""

    async def test_open_account_with_opening_balance(self, account_service, store):
        """The opening balance is booked as a transaction."""
        account = await account_service.open_account(
            "Savings", AccountType.SAVINGS, Decimal("1000.00"), date(2025, 1, 1)
        )
        assert account.balance == Decimal("1000.00")

        transactions = await store.list_transactions(account_id=account.id)
        assert len(transactions) == 1
        assert transactions[0].transaction_type == INCOME
        assert transactions[0].description == "Opening balance"

    async def test_negative_opening_balance_is_expense(self, account_service, store):
        account = await account_service.open_account(
            "Visa", AccountType.CREDIT_CARD, Decimal("-250.00")
        )
        assert account.balance == Decimal("-250.00")
        [txn] = await store.list_transactions(account_id=account.id)
        assert txn.transaction_type == EXPENSE
        assert txn.amount == Decimal("250.00")

    async def test_zero_opening_balance_posts_nothing(self, account_service, store):
        account = await account_service.open_account("Wallet", AccountType.CASH)
        assert account.balance == Decimal("0.00")
        assert await store.list_transactions() == []

    async def test_duplicate_name_ignoring_case(self, account_service):
        await account_service.open_account("Wallet", AccountType.CASH)
        with pytest.raises(DuplicateError):
            await account_service.open_account("wallet", AccountType.CASH)

    async def test_bad_opening_balance_creates_nothing(self, account_service, store):
        with pytest.raises(InvalidAmountError):
            await account_service.open_account("Wallet", AccountType.CASH, Decimal("1.005"))
        assert await store.list_accounts() == []

    async def test_lookups(self, account_service, checking):
        assert (await account_service.get_account(checking.id)).name == "Everyday Checking"
        assert (await account_service.find_account_by_name("everyday checking")).id == checking.id
        assert await account_service.find_account_by_name("Nope") is None
        assert [a.id for a in await account_service.list_accounts()] == [checking.id]

        with pytest.raises(AccountNotFoundError):
            await account_service.get_account(uuid4())


class TestCategoryService:
    """Tests for explicit creation and find-or-create."""

    async def test_find_or_create_is_case_insensitive(self, category_service, store):
        first = await category_service.find_or_create_category("Groceries")
        second = await category_service.find_or_create_category("  groceries ")
        assert first.id == second.id
        assert len(await store.list_categories()) == 1

    async def test_find_or_create_blank_is_uncategorized(self, category_service, store):
        assert await category_service.find_or_create_category("   ") is None
        assert await category_service.find_or_create_category(None) is None
        assert await store.list_categories() == []

    async def test_create_category_rejects_duplicates(self, category_service):
        await category_service.create_category("Travel")
        with pytest.raises(DuplicateError):
            await category_service.create_category("TRAVEL")

    async def test_create_category_rejects_blank(self, category_service):
        with pytest.raises(ValueError):
            await category_service.create_category("  ")

    async def test_get_category_not_found(self, category_service):
        with pytest.raises(CategoryNotFoundError):
            await category_service.get_category(uuid4())


class TestTransactionQueries:
    """Tests for the read-only listings."""

    async def _seed(self, posting_engine, checking, groceries):
        await posting_engine.post(Decimal("50.00"), EXPENSE, date(2025, 6, 20), "Corner Market",
                                  groceries.id, account_id=checking.id)
        await posting_engine.post(Decimal("3500.00"), INCOME, date(2025, 6, 1), "Salary",
                                  account_id=checking.id)
        await posting_engine.post(Decimal("20.00"), EXPENSE, date(2025, 7, 2), "Farmers market",
                                  groceries.id, account_id=checking.id)

    async def test_ordered_by_date(self, queries, posting_engine, checking, groceries):
        await self._seed(posting_engine, checking, groceries)
        transactions = await queries.transactions_for_account(checking.id)
        assert [t.transaction_date for t in transactions] == [
            date(2025, 6, 1), date(2025, 6, 20), date(2025, 7, 2)
        ]

    async def test_category_range(self, queries, posting_engine, checking, groceries):
        await self._seed(posting_engine, checking, groceries)
        june = await queries.transactions_for_category(
            groceries.id, date(2025, 6, 1), date(2025, 6, 30)
        )
        assert [t.description for t in june] == ["Corner Market"]

    async def test_inverted_range_is_empty(self, queries, posting_engine, checking, groceries):
        await self._seed(posting_engine, checking, groceries)
        assert await queries.transactions_in_range(date(2025, 7, 1), date(2025, 6, 1)) == []
        assert await queries.transactions_for_category(
            groceries.id, date(2025, 7, 1), date(2025, 6, 1)
        ) == []

    async def test_by_type(self, queries, posting_engine, checking, groceries):
        await self._seed(posting_engine, checking, groceries)
        income = await queries.transactions_by_type(INCOME)
        assert [t.description for t in income] == ["Salary"]

    async def test_search_descriptions(self, queries, posting_engine, checking, groceries):
        await self._seed(posting_engine, checking, groceries)
        found = await queries.search_descriptions("  MARKET ")
        assert [t.description for t in found] == ["Corner Market", "Farmers market"]
        assert await queries.search_descriptions("") == []

    async def test_unknown_references(self, queries):
        with pytest.raises(AccountNotFoundError):
            await queries.transactions_for_account(uuid4())
        with pytest.raises(CategoryNotFoundError):
            await queries.transactions_for_category(uuid4(), date(2025, 1, 1), date(2025, 1, 31))
