"""Tests for component wiring and default-category seeding."""

import pytest
from datetime import date
from decimal import Decimal

from budget_ledger.config import Settings, get_settings
from budget_ledger.models.ledger import AccountType, TransactionType
from budget_ledger.orchestrator import create_app_components, seed_default_categories
from budget_ledger.services.storage import (
    GoogleSheetsClient,
    InMemoryEntityStore,
    StorageConnectionError,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ["LEDGER_STORAGE_BACKEND", "LEDGER_SEED_DEFAULT_CATEGORIES", "LEDGER_DEFAULT_CATEGORIES"]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSeeding:
    """Tests for seed_default_categories."""

    async def test_seeding_is_idempotent(self, category_service, store):
        created = await seed_default_categories(category_service, ["Groceries", "Travel", " "])
        assert [c.name for c in created] == ["Groceries", "Travel"]

        again = await seed_default_categories(category_service, ["groceries", "Travel", "Rent"])
        assert [c.name for c in again] == ["Rent"]
        assert len(await store.list_categories()) == 3


class TestCreateAppComponents:
    """Tests for create_app_components."""

    async def test_memory_backend_with_defaults(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DEFAULT_CATEGORIES", "Groceries,Utilities")
        components = await create_app_components(Settings())

        assert components.storage_backend == "memory"
        assert isinstance(components.store, InMemoryEntityStore)
        names = [c.name for c in await components.category_service.list_categories()]
        assert names == ["Groceries", "Utilities"]

    async def test_seeding_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("LEDGER_SEED_DEFAULT_CATEGORIES", "false")
        components = await create_app_components(Settings())
        assert await components.category_service.list_categories() == []

    async def test_sheets_failure_falls_back_to_memory(self, monkeypatch, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")

        def refuse(self):
            raise StorageConnectionError("no network")

        monkeypatch.setattr(GoogleSheetsClient, "connect", refuse)
        components = await create_app_components(Settings())

        assert components.storage_backend == "memory"
        assert components.sheets_client is None

    async def test_missing_sheets_settings_fall_back(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        components = await create_app_components(Settings())
        assert components.storage_backend == "memory"

    async def test_components_share_one_store(self):
        """An import, a posting and a budget all see the same records."""
        components = await create_app_components(Settings())
        account = await components.account_service.open_account(
            "Checking", AccountType.CHECKING, Decimal("100.00"), date(2025, 6, 1)
        )
        groceries = await components.category_service.find_category_by_name("groceries")

        await components.posting_engine.post(
            Decimal("40.00"), TransactionType.EXPENSE, date(2025, 6, 2), "Market",
            groceries.id, account_id=account.id,
        )
        await components.budget_engine.set_budget(groceries.id, 2025, 6, Decimal("50.00"))

        status = await components.budget_engine.status_for_category(groceries.id, 2025, 6)
        assert status.remaining == Decimal("10.00")
        assert (await components.account_service.get_account(account.id)).balance == Decimal("60.00")
