"""Tests for infrastructure settings."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from src.application.use_cases.analysis_manager import DEFAULT_BIRTH_DATE
from src.infrastructure import settings as settings_module
from src.infrastructure.settings import AnalysisSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "LEDGER_CHECK_CLOSED_ACCOUNTS",
        "LEDGER_BIRTH_DATE",
        "LEDGER_CURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults() -> None:
    """Unset variables fall back to the defaults."""
    settings = AnalysisSettings.from_env()

    assert settings == AnalysisSettings()
    assert settings.birth_date == DEFAULT_BIRTH_DATE
    assert settings.currency == "GBP"


def test_from_env_reads_values(monkeypatch) -> None:
    monkeypatch.setenv("LEDGER_CHECK_CLOSED_ACCOUNTS", "No")
    monkeypatch.setenv("LEDGER_BIRTH_DATE", "1955-07-21")
    monkeypatch.setenv("LEDGER_CURRENCY", " eur ")

    settings = AnalysisSettings.from_env()

    assert settings.check_closed_accounts is False
    assert settings.birth_date == date(1955, 7, 21)
    assert settings.currency == "EUR"


def test_from_env_warns_on_invalid_values(monkeypatch) -> None:
    """Unparseable values are logged and replaced by defaults."""
    logger = MagicMock()
    monkeypatch.setattr(settings_module, "get_app_logger", lambda: logger)
    monkeypatch.setenv("LEDGER_CHECK_CLOSED_ACCOUNTS", "maybe")
    monkeypatch.setenv("LEDGER_BIRTH_DATE", "21/07/1955")

    settings = AnalysisSettings.from_env()

    assert settings.check_closed_accounts is True
    assert settings.birth_date == DEFAULT_BIRTH_DATE
    assert logger.warning.call_count == 2
    assert "LEDGER_BIRTH_DATE" in logger.warning.call_args.args[0]
