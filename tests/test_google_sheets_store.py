"""
Tests for the Google Sheets entity store.

No network access: the store is given a fake client whose worksheets
keep their cells in plain lists and implement only the gspread calls
the store uses.
"""

import asyncio
import threading

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

import gspread

from budget_ledger.config import GoogleSheetsSettings
from budget_ledger.ledger import LedgerPostingEngine
from budget_ledger.models.ledger import (
    Account,
    AccountType,
    Budget,
    Category,
    Transaction,
    TransactionType,
)
from budget_ledger.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    RecordNotFoundError,
    StorageError,
)
from budget_ledger.services.storage.google_sheets import (
    ACCOUNT_COLUMNS,
    BUDGET_COLUMNS,
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the store."""

    def __init__(self, header):
        self.rows = [list(header)]
        self.fail_updates = False
        self.drop_appends = False

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        if self.drop_appends:
            return
        self.rows.append([str(v) for v in values])

    def update_cells(self, cells, value_input_option=None):
        if self.fail_updates:
            raise gspread.exceptions.GSpreadException("quota exceeded")
        for cell in cells:
            row = self.rows[cell.row - 1]
            row[cell.col - 1] = str(cell.value)

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient."""

    def __init__(self):
        self.accounts = FakeWorksheet(ACCOUNT_COLUMNS)
        self.categories = FakeWorksheet(CATEGORY_COLUMNS)
        self.budgets = FakeWorksheet(BUDGET_COLUMNS)
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)

    def get_accounts_sheet(self):
        return self.accounts

    def get_categories_sheet(self):
        return self.categories

    def get_budgets_sheet(self):
        return self.budgets

    def get_transactions_sheet(self):
        return self.transactions


@pytest.fixture
def fake_client():
    return FakeSheetsClient()


@pytest.fixture
def sheets_store(fake_client):
    return GoogleSheetsEntityStore(fake_client)


@pytest.fixture
async def sheet_account(sheets_store):
    return await sheets_store.save_account(
        Account(name="Checking", account_type=AccountType.CHECKING)
    )


def expense(account_id, amount="25.00", day=date(2025, 6, 3), category_id=None):
    return Transaction(
        amount=Decimal(amount),
        transaction_type=TransactionType.EXPENSE,
        transaction_date=day,
        account_id=account_id,
        category_id=category_id,
        description="Market",
    )


class TestSheetsAccounts:
    """Account rows."""

    async def test_round_trip(self, sheets_store, sheet_account):
        loaded = await sheets_store.get_account(sheet_account.id)
        assert loaded == sheet_account
        assert (await sheets_store.get_account_by_name("checking", case_insensitive=True)).id == sheet_account.id

    async def test_duplicate_name(self, sheets_store, sheet_account):
        with pytest.raises(DuplicateError):
            await sheets_store.save_account(Account(name="CHECKING", account_type=AccountType.CASH))

    async def test_update_keeps_balance(self, sheets_store, sheet_account, fake_client):
        await sheets_store.apply_posting(expense(sheet_account.id), Decimal("-25.00"))
        renamed = sheet_account.model_copy(update={"name": "Main"})
        saved = await sheets_store.save_account(renamed)

        assert saved.balance == Decimal("-25.00")
        assert len(fake_client.accounts.rows) == 2
        assert fake_client.accounts.rows[1][1] == "Main"


class TestSheetsCategoriesAndBudgets:
    """Category and budget rows."""

    async def test_category_lookup(self, sheets_store):
        category = await sheets_store.save_category(Category(name="Groceries"))
        assert (await sheets_store.get_category(category.id)).name == "Groceries"
        assert await sheets_store.get_category_by_name("groceries") is None
        assert (await sheets_store.get_category_by_name("groceries", case_insensitive=True)).id == category.id

    async def test_budget_update_in_place(self, sheets_store, fake_client):
        category = await sheets_store.save_category(Category(name="Groceries"))
        budget = await sheets_store.save_budget(
            Budget(category_id=category.id, year=2025, month=6, budgeted_amount=Decimal("400.00"))
        )
        budget.budgeted_amount = Decimal("450.00")
        await sheets_store.save_budget(budget)

        assert len(fake_client.budgets.rows) == 2
        loaded = await sheets_store.get_budget(category.id, 2025, 6)
        assert loaded.budgeted_amount == Decimal("450.00")
        assert [b.id for b in await sheets_store.list_budgets(2025, 6)] == [budget.id]

    async def test_budget_key_is_unique(self, sheets_store):
        category = await sheets_store.save_category(Category(name="Groceries"))
        await sheets_store.save_budget(
            Budget(category_id=category.id, year=2025, month=6, budgeted_amount=Decimal("1"))
        )
        with pytest.raises(DuplicateError):
            await sheets_store.save_budget(
                Budget(category_id=category.id, year=2025, month=6, budgeted_amount=Decimal("2"))
            )


class TestSheetsPosting:
    """apply_posting and its compensating delete."""

    async def test_posting_writes_both_rows(self, sheets_store, sheet_account, fake_client):
        txn = expense(sheet_account.id)
        stored, account = await sheets_store.apply_posting(txn, Decimal("-25.00"))

        assert account.balance == Decimal("-25.00")
        assert fake_client.accounts.rows[1][3] == "-25.00"
        assert await sheets_store.list_transactions() == [stored]

    async def test_failed_balance_update_removes_transaction(self, sheets_store, sheet_account, fake_client):
        """Neither write is visible when the balance update fails."""
        fake_client.accounts.fail_updates = True

        with pytest.raises(StorageError):
            await sheets_store.apply_posting(expense(sheet_account.id), Decimal("-25.00"))

        assert await sheets_store.list_transactions() == []
        assert (await sheets_store.get_account(sheet_account.id)).balance == Decimal("0.00")

    async def test_rollback_that_finds_no_row_is_reported(self, sheets_store, sheet_account, fake_client):
        """The error says the rollback failed when the appended row is missing."""
        fake_client.accounts.fail_updates = True
        fake_client.transactions.drop_appends = True

        with pytest.raises(StorageError) as exc_info:
            await sheets_store.apply_posting(expense(sheet_account.id), Decimal("-25.00"))

        message = str(exc_info.value)
        assert "rollback also failed" in message
        assert "not found" in message

    def test_postings_from_several_threads(self, sheets_store, fake_client):
        """Each thread runs its own event loop against one shared store."""
        account = asyncio.run(sheets_store.save_account(
            Account(name="Shared", account_type=AccountType.CHECKING)
        ))
        engine = LedgerPostingEngine(sheets_store)
        errors = []

        def worker():
            try:
                for _ in range(20):
                    loop = asyncio.new_event_loop()
                    try:
                        loop.run_until_complete(engine.post(
                            Decimal("1.00"), TransactionType.INCOME, date(2025, 6, 1),
                            account_id=account.id,
                        ))
                    finally:
                        loop.close()
            except Exception as e:
                errors.append(e)

        workers = [threading.Thread(target=worker) for _ in range(3)]
        for t in workers:
            t.start()
        for t in workers:
            t.join(timeout=60)

        assert not any(t.is_alive() for t in workers)
        assert errors == []
        assert fake_client.accounts.rows[1][3] == "60.00"
        assert len(fake_client.transactions.rows) == 61

    async def test_unknown_account(self, sheets_store):
        with pytest.raises(RecordNotFoundError):
            await sheets_store.apply_posting(expense(uuid4()), Decimal("-25.00"))

    async def test_category_date_range(self, sheets_store, sheet_account):
        category = await sheets_store.save_category(Category(name="Groceries"))
        await sheets_store.apply_posting(
            expense(sheet_account.id, "10.00", date(2025, 2, 28), category.id), Decimal("-10.00")
        )
        await sheets_store.apply_posting(
            expense(sheet_account.id, "99.00", date(2025, 3, 1), category.id), Decimal("-99.00")
        )
        february = await sheets_store.list_transactions_by_category_and_date_range(
            category.id, date(2025, 2, 1), date(2025, 2, 28)
        )
        assert [t.amount for t in february] == [Decimal("10.00")]

    async def test_unreadable_row_is_storage_error(self, sheets_store, fake_client):
        fake_client.accounts.rows.append(["not-a-uuid", "Broken", "checking", "0"])
        with pytest.raises(StorageError):
            await sheets_store.list_accounts()


class TestSheetsClient:
    """Worksheet creation in GoogleSheetsClient."""

    def test_missing_worksheet_is_created_with_header(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        settings = GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-id",
        )

        class FakeSpreadsheet:
            def __init__(self):
                self.sheets = {}

            def worksheet(self, title):
                if title not in self.sheets:
                    raise gspread.WorksheetNotFound(title)
                return self.sheets[title]

            def add_worksheet(self, title, rows, cols):
                self.sheets[title] = FakeWorksheet([])
                self.sheets[title].rows = []
                return self.sheets[title]

        client = GoogleSheetsClient(settings)
        client._spreadsheet = FakeSpreadsheet()

        sheet = client.get_accounts_sheet()
        assert sheet.rows == [ACCOUNT_COLUMNS]
        assert client.get_accounts_sheet() is sheet
