"""Tests for pydantic-settings configuration."""

import pytest

from budget_ledger.config import (
    GoogleSheetsSettings,
    LedgerSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no LEDGER_/GOOGLE_SHEETS_ variables."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "LEDGER_STORAGE_BACKEND",
        "LEDGER_LOG_LEVEL",
        "LEDGER_DEFAULT_CATEGORIES",
        "LEDGER_MAX_IMPORT_ERROR_MESSAGES",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.storage_backend == "memory"
        assert settings.log_level == "INFO"
        assert settings.currency_symbol == "$"
        assert settings.max_import_error_messages == 500
        assert "Groceries" in settings.default_categories_list

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")
        monkeypatch.setenv("LEDGER_DEFAULT_CATEGORIES", " Rent, ,Food ")
        settings = LedgerSettings()
        assert settings.log_level == "DEBUG"
        assert settings.default_categories_list == ["Rent", "Food"]

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("LEDGER_MAX_IMPORT_ERROR_MESSAGES=7\n")
        assert LedgerSettings().max_import_error_messages == 7

    def test_rejects_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            LedgerSettings()

    def test_rejects_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            LedgerSettings()


class TestGoogleSheetsSettings:
    """Tests for GoogleSheetsSettings."""

    def test_missing_credentials_file_warns(self):
        with pytest.warns(UserWarning):
            settings = GoogleSheetsSettings(credentials_path="nope.json", spreadsheet_id="abc")
        assert settings.transactions_sheet_name == "Transactions"

    def test_required_fields(self):
        with pytest.raises(ValueError):
            GoogleSheetsSettings()


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_reports_each_group(self):
        status = validate_all_settings()
        assert status["ledger"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
