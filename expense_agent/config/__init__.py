"""Configuration package."""

from expense_agent.config.settings import (
    AppSettings,
    BotSettings,
    LedgerSettings,
    Settings,
    TransportSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BotSettings",
    "LedgerSettings",
    "Settings",
    "TransportSettings",
    "get_settings",
    "validate_all_settings",
]
