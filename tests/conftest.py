"""
Shared fixtures.

Every engine is built over a fresh InMemoryEntityStore per test, so no
test sees another test's records.
"""

import pytest

from budget_ledger.audit import LedgerEventLogger
from budget_ledger.budgets import BudgetReconciliationEngine
from budget_ledger.imports import BatchImportPipeline
from budget_ledger.ledger import (
    AccountService,
    CategoryService,
    LedgerPostingEngine,
    TransactionQueries,
)
from budget_ledger.models.ledger import Account, AccountType, Category
from budget_ledger.services.storage import InMemoryEntityStore


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def event_logger():
    return LedgerEventLogger()


@pytest.fixture
def posting_engine(store, event_logger):
    return LedgerPostingEngine(store, event_logger)


@pytest.fixture
def category_service(store, event_logger):
    return CategoryService(store, event_logger)


@pytest.fixture
def account_service(store, posting_engine, event_logger):
    return AccountService(store, posting_engine, event_logger)


@pytest.fixture
def queries(store):
    return TransactionQueries(store)


@pytest.fixture
def budget_engine(store, event_logger):
    return BudgetReconciliationEngine(store, event_logger)


@pytest.fixture
def import_pipeline(store, posting_engine, category_service, event_logger):
    return BatchImportPipeline(store, posting_engine, category_service, event_logger)


@pytest.fixture
async def checking(store):
    """An empty checking account."""
    return await store.save_account(
        Account(name="Everyday Checking", account_type=AccountType.CHECKING)
    )


@pytest.fixture
async def groceries(store):
    return await store.save_category(Category(name="Groceries"))


@pytest.fixture
async def dining(store):
    return await store.save_category(Category(name="Restaurants"))
