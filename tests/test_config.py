"""
Tests for environment-driven configuration.
"""

import pytest
from pathlib import Path

from pydantic import ValidationError

from expense_agent.config import (
    AppSettings,
    BotSettings,
    LedgerSettings,
    TransportSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:
    def test_ledger_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_PATH", raising=False)
        assert LedgerSettings().ledger_path == Path("gastos.txt")

    def test_bot_defaults(self, monkeypatch):
        for name in ("BOT_TIMEZONE", "BOT_TRIGGER_WORDS", "BOT_CONNECTORS", "BOT_WEEK_DAYS"):
            monkeypatch.delenv(name, raising=False)
        settings = BotSettings()
        assert settings.currency_symbol == "R$"
        assert settings.tz is None
        assert settings.week_days == 7
        assert settings.trigger_words_list == ["gastei"]
        assert settings.connectors_list == ["na", "no", "com"]

    def test_transport_defaults(self):
        settings = TransportSettings()
        assert settings.reconnect_attempts >= 1
        assert settings.reconnect_wait_min <= settings.reconnect_wait_max


class TestEnvironmentOverrides:
    def test_word_lists_are_split_and_lowercased(self, monkeypatch):
        monkeypatch.setenv("BOT_TRIGGER_WORDS", "Gastei, paguei ,")
        monkeypatch.setenv("BOT_CONNECTORS", "no,na,com,pelo")
        settings = BotSettings()
        assert settings.trigger_words_list == ["gastei", "paguei"]
        assert settings.connectors_list == ["no", "na", "com", "pelo"]

    def test_unknown_timezone_rejected(self, monkeypatch):
        monkeypatch.setenv("BOT_TIMEZONE", "Nowhere/Atlantis")
        with pytest.raises(ValidationError):
            BotSettings()

    @pytest.mark.parametrize("name,value", [
        ("BOT_TRIGGER_WORDS", ""),
        ("BOT_TRIGGER_WORDS", " , ,"),
        ("BOT_CONNECTORS", ""),
    ])
    def test_empty_word_lists_rejected(self, monkeypatch, name, value):
        """An empty word list fails at startup, not when the parser is built."""
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            BotSettings()

        results = validate_all_settings()
        assert results["bot"] is False
        assert "At least one comma-separated word" in results["bot_error"]

    def test_week_days_bounds(self, monkeypatch):
        monkeypatch.setenv("BOT_WEEK_DAYS", "0")
        with pytest.raises(ValidationError):
            BotSettings()

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppSettings()


class TestValidateAllSettings:
    def test_all_valid(self, monkeypatch):
        monkeypatch.delenv("BOT_TIMEZONE", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["bot"] is True
        assert not any(key.endswith("_error") for key in results)

    def test_reports_failing_group(self, monkeypatch):
        monkeypatch.setenv("BOT_TIMEZONE", "Nowhere/Atlantis")
        results = validate_all_settings()
        assert results["bot"] is False
        assert "Unknown timezone" in results["bot_error"]
        assert results["ledger"] is True
