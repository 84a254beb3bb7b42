"""
Google Sheets Entity Store

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (apply_posting compensates by deleting the appended
  transaction row when the balance update fails)
- Limited query capabilities (we filter in Python)

Reads and the initial connection are retried with tenacity. Writes are
never retried: a repeated append could post the same transaction twice.
"""

import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_ledger.config import GoogleSheetsSettings, get_settings
from budget_ledger.models.ledger import (
    Account,
    AccountType,
    Budget,
    Category,
    Transaction,
    TransactionType,
)
from budget_ledger.services.storage.interface import (
    DuplicateError,
    EntityStoreInterface,
    RecordNotFoundError,
    StorageConnectionError,
    StorageError,
    names_match,
)


# Column mappings, one list per worksheet
ACCOUNT_COLUMNS = [
    "id",
    "name",
    "account_type",
    "balance",
]

CATEGORY_COLUMNS = [
    "id",
    "name",
]

BUDGET_COLUMNS = [
    "id",
    "category_id",
    "year",
    "month",
    "budgeted_amount",
    "created_at",
    "updated_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "amount",
    "transaction_type",
    "transaction_date",
    "description",
    "account_id",
    "category_id",
    "created_at",
    "updated_at",
]

# 1-based sheet columns for in-place updates
ACCOUNT_NAME_COL = ACCOUNT_COLUMNS.index("name") + 1
ACCOUNT_TYPE_COL = ACCOUNT_COLUMNS.index("account_type") + 1
ACCOUNT_BALANCE_COL = ACCOUNT_COLUMNS.index("balance") + 1
CATEGORY_NAME_COL = CATEGORY_COLUMNS.index("name") + 1
BUDGET_AMOUNT_COL = BUDGET_COLUMNS.index("budgeted_amount") + 1
BUDGET_UPDATED_COL = BUDGET_COLUMNS.index("updated_at") + 1

read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and hands out one worksheet per entity,
    creating missing worksheets with their header row.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @read_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS, 100)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.categories_sheet_name, CATEGORY_COLUMNS, 200)

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.budgets_sheet_name, BUDGET_COLUMNS, 1000)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 5000
        )


def _safe_getter(row: list) -> Callable[[int], str]:
    """Handle missing columns gracefully."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsEntityStore(EntityStoreInterface):
    """
    Google Sheets implementation of the entity store.

    Each entity lives in its own worksheet, one record per row, with the
    header in row 1.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    def _account_to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.name,
            account.account_type.value,
            str(account.balance),
        ]

    def _row_to_account(self, row: list) -> Account:
        safe_get = _safe_getter(row)
        return Account(
            id=UUID(safe_get(0)),
            name=safe_get(1),
            account_type=AccountType(safe_get(2)),
            balance=Decimal(safe_get(3, "0.00")),
        )

    def _category_to_row(self, category: Category) -> list:
        return [str(category.id), category.name]

    def _row_to_category(self, row: list) -> Category:
        safe_get = _safe_getter(row)
        return Category(id=UUID(safe_get(0)), name=safe_get(1))

    def _budget_to_row(self, budget: Budget) -> list:
        return [
            str(budget.id),
            str(budget.category_id),
            str(budget.year),
            str(budget.month),
            str(budget.budgeted_amount),
            budget.created_at.isoformat(),
            budget.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list) -> Budget:
        safe_get = _safe_getter(row)
        return Budget(
            id=UUID(safe_get(0)),
            category_id=UUID(safe_get(1)),
            year=int(safe_get(2)),
            month=int(safe_get(3)),
            budgeted_amount=Decimal(safe_get(4)),
            created_at=datetime.fromisoformat(safe_get(5)),
            updated_at=datetime.fromisoformat(safe_get(6)),
        )

    def _transaction_to_row(self, txn: Transaction) -> list:
        return [
            str(txn.id),
            str(txn.amount),
            txn.transaction_type.value,
            txn.transaction_date.isoformat(),
            txn.description or "",
            str(txn.account_id),
            str(txn.category_id) if txn.category_id else "",
            txn.created_at.isoformat(),
            txn.updated_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        safe_get = _safe_getter(row)
        return Transaction(
            id=UUID(safe_get(0)),
            amount=Decimal(safe_get(1)),
            transaction_type=TransactionType(safe_get(2)),
            transaction_date=date.fromisoformat(safe_get(3)),
            description=safe_get(4) or None,
            account_id=UUID(safe_get(5)),
            category_id=UUID(safe_get(6)) if safe_get(6) else None,
            created_at=datetime.fromisoformat(safe_get(7)),
            updated_at=datetime.fromisoformat(safe_get(8)),
        )

    # -------------------------------------------------------------------------
    # Sheet access
    # -------------------------------------------------------------------------

    @read_retry
    def _read_rows(self, get_sheet: Callable[[], gspread.Worksheet]) -> list[tuple[int, list]]:
        """(sheet_row_number, values) for every non-empty data row."""
        all_rows = get_sheet().get_all_values()[1:]  # Skip header
        return [
            (idx, row)
            for idx, row in enumerate(all_rows, start=2)  # Row 1 is the header
            if row and row[0]
        ]

    def _load(self, get_sheet, convert) -> list[tuple[int, object]]:
        try:
            return [(idx, convert(row)) for idx, row in self._read_rows(get_sheet)]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read worksheet: {e}")

    def _accounts(self) -> list[tuple[int, Account]]:
        return self._load(self._client.get_accounts_sheet, self._row_to_account)

    def _categories(self) -> list[tuple[int, Category]]:
        return self._load(self._client.get_categories_sheet, self._row_to_category)

    def _budgets(self) -> list[tuple[int, Budget]]:
        return self._load(self._client.get_budgets_sheet, self._row_to_budget)

    def _transactions(self) -> list[tuple[int, Transaction]]:
        return self._load(self._client.get_transactions_sheet, self._row_to_transaction)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        for _, account in self._accounts():
            if account.id == account_id:
                return account
        return None

    async def get_account_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Account]:
        for _, account in self._accounts():
            if names_match(account.name, name, case_insensitive):
                return account
        return None

    async def list_accounts(self) -> list[Account]:
        return [account for _, account in self._accounts()]

    async def save_account(self, account: Account) -> Account:
        with self._lock:
            existing_row = None
            for idx, other in self._accounts():
                if other.id == account.id:
                    existing_row = (idx, other)
                elif names_match(other.name, account.name, case_insensitive=True):
                    raise DuplicateError(f"Account name already in use: {account.name}")

            try:
                sheet = self._client.get_accounts_sheet()
                if existing_row is None:
                    sheet.append_row(self._account_to_row(account), value_input_option="RAW")
                    return account.model_copy(deep=True)

                idx, stored = existing_row
                sheet.update_cells(
                    [
                        gspread.Cell(idx, ACCOUNT_NAME_COL, account.name),
                        gspread.Cell(idx, ACCOUNT_TYPE_COL, account.account_type.value),
                    ],
                    value_input_option="RAW",
                )
                return account.model_copy(update={"balance": stored.balance})
            except Exception as e:
                raise StorageError(f"Failed to save account: {e}")

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        for _, category in self._categories():
            if category.id == category_id:
                return category
        return None

    async def get_category_by_name(
        self,
        name: str,
        case_insensitive: bool = False,
    ) -> Optional[Category]:
        for _, category in self._categories():
            if names_match(category.name, name, case_insensitive):
                return category
        return None

    async def list_categories(self) -> list[Category]:
        return [category for _, category in self._categories()]

    async def save_category(self, category: Category) -> Category:
        with self._lock:
            existing_idx = None
            for idx, other in self._categories():
                if other.id == category.id:
                    existing_idx = idx
                elif names_match(other.name, category.name, case_insensitive=True):
                    raise DuplicateError(f"Category name already in use: {category.name}")

            try:
                sheet = self._client.get_categories_sheet()
                if existing_idx is None:
                    sheet.append_row(self._category_to_row(category), value_input_option="RAW")
                else:
                    sheet.update_cells(
                        [gspread.Cell(existing_idx, CATEGORY_NAME_COL, category.name)],
                        value_input_option="RAW",
                    )
                return category.model_copy(deep=True)
            except Exception as e:
                raise StorageError(f"Failed to save category: {e}")

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def get_budget(
        self,
        category_id: UUID,
        year: int,
        month: int,
    ) -> Optional[Budget]:
        for _, budget in self._budgets():
            if budget.period_key == (category_id, year, month):
                return budget
        return None

    async def list_budgets(self, year: int, month: int) -> list[Budget]:
        return [
            budget
            for _, budget in self._budgets()
            if budget.year == year and budget.month == month
        ]

    async def save_budget(self, budget: Budget) -> Budget:
        with self._lock:
            existing_idx = None
            for idx, other in self._budgets():
                if other.id == budget.id:
                    existing_idx = idx
                elif other.period_key == budget.period_key:
                    raise DuplicateError(
                        f"Budget already exists for category {budget.category_id} "
                        f"in {budget.year}-{budget.month:02d}"
                    )

            try:
                sheet = self._client.get_budgets_sheet()
                if existing_idx is None:
                    sheet.append_row(self._budget_to_row(budget), value_input_option="RAW")
                else:
                    sheet.update_cells(
                        [
                            gspread.Cell(existing_idx, BUDGET_AMOUNT_COL, str(budget.budgeted_amount)),
                            gspread.Cell(existing_idx, BUDGET_UPDATED_COL, budget.updated_at.isoformat()),
                        ],
                        value_input_option="RAW",
                    )
                return budget.model_copy(deep=True)
            except Exception as e:
                raise StorageError(f"Failed to save budget: {e}")

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def apply_posting(
        self,
        transaction: Transaction,
        balance_delta: Decimal,
    ) -> tuple[Transaction, Account]:
        with self._lock:
            account_row = None
            for idx, account in self._accounts():
                if account.id == transaction.account_id:
                    account_row = (idx, account)
                    break
            if account_row is None:
                raise RecordNotFoundError(f"Account not found: {transaction.account_id}")

            idx, account = account_row
            new_balance = account.balance + balance_delta

            try:
                txn_sheet = self._client.get_transactions_sheet()
                txn_sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            except Exception as e:
                raise StorageError(f"Failed to save transaction: {e}")

            try:
                self._client.get_accounts_sheet().update_cells(
                    [gspread.Cell(idx, ACCOUNT_BALANCE_COL, str(new_balance))],
                    value_input_option="RAW",
                )
            except Exception as e:
                self._undo_append(transaction.id)
                raise StorageError(f"Failed to update balance, transaction rolled back: {e}")

            return (
                transaction.model_copy(deep=True),
                account.model_copy(update={"balance": new_balance}),
            )

    def _undo_append(self, transaction_id: UUID) -> None:
        """
        Delete a just-appended transaction row (compensating write).

        Raises StorageError naming the transaction if the row cannot be
        deleted, including when it cannot be found.
        """
        try:
            sheet = self._client.get_transactions_sheet()
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if row and row[0] == str(transaction_id):
                    sheet.delete_rows(idx)
                    return
            reason = "appended row not found"
        except Exception as e:
            reason = str(e)
        raise StorageError(
            f"Transaction {transaction_id} was recorded but its balance update "
            f"failed and the rollback also failed: {reason}"
        )

    async def list_transactions_by_category_and_date_range(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> list[Transaction]:
        return await self.list_transactions(
            category_id=category_id,
            date_from=start,
            date_to=end,
        )

    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        description: Optional[str] = None,
    ) -> list[Transaction]:
        needle = description.casefold() if description else None
        results = []
        for _, txn in self._transactions():
            # Apply filters
            if account_id and txn.account_id != account_id:
                continue
            if category_id and txn.category_id != category_id:
                continue
            if date_from and txn.transaction_date < date_from:
                continue
            if date_to and txn.transaction_date > date_to:
                continue
            if transaction_type and txn.transaction_type != transaction_type:
                continue
            if needle and needle not in (txn.description or "").casefold():
                continue
            results.append(txn)

        results.sort(key=lambda t: (t.transaction_date, t.created_at))
        return results

