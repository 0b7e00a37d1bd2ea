"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from household_finance.config import AppSettings, GoogleSheetsSettings, get_settings, validate_all_settings


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self, app_settings):
        assert app_settings.storage_backend == "memory"
        assert app_settings.upcoming_bills_lookahead_days == 30
        assert app_settings.recent_expenses_count == 5
        assert app_settings.currency == "USD"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("RECENT_EXPENSES_COUNT", "10")

        settings = AppSettings(_env_file=None)
        assert settings.storage_backend == "google_sheets"
        assert settings.recent_expenses_count == 10

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)

    def test_lookahead_bounds(self, monkeypatch):
        monkeypatch.setenv("UPCOMING_BILLS_LOOKAHEAD_DAYS", "-1")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)


class TestGoogleSheetsSettings:
    """Tests for storage credentials settings."""

    def test_required(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        with pytest.raises(ValidationError):
            GoogleSheetsSettings()

    def test_missing_credentials_file_warns(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(tmp_path / "missing.json"))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")

        with pytest.warns(UserWarning, match="credentials file not found"):
            settings = GoogleSheetsSettings()
        assert settings.audit_sheet_name == "AuditLog"

    def test_validate_all_reports_errors(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        get_settings.cache_clear()

        status = validate_all_settings()

        assert status["google_sheets"] is False
        assert "google_sheets_error" in status
