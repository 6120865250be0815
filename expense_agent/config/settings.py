"""
Configuration Management for Expense Agent

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what the bot depends on (ledger file,
transport behaviour, locale details) and ensures all required
configuration is validated at startup.
"""

from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger file configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: str = Field(
        default="gastos.txt",
        description="Path to the ledger text file"
    )

    @property
    def ledger_path(self) -> Path:
        return Path(self.path)


class BotSettings(BaseSettings):
    """Conversation behaviour configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="R$",
        description="Symbol printed in front of every amount"
    )
    timezone: str = Field(
        default="",
        description="IANA timezone used for calendar days (empty = system local)"
    )
    week_days: int = Field(
        default=7,
        ge=1,
        le=31,
        description="Number of days covered by the /week report"
    )
    trigger_words: str = Field(
        default="gastei",
        description="Comma-separated words that start an expense statement"
    )
    connectors: str = Field(
        default="na,no,com",
        description="Comma-separated words between the amount and the description"
    )
    category_map_path: Optional[str] = Field(
        default=None,
        description="Optional JSON file mapping keywords to categories"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown timezone names at startup rather than at report time."""
        v = v.strip()
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator('trigger_words', 'connectors')
    @classmethod
    def require_words(cls, v: str) -> str:
        """The expense pattern needs at least one word of each kind."""
        if not _split_words(v):
            raise ValueError("At least one comma-separated word is required")
        return v

    @property
    def tz(self) -> Optional[tzinfo]:
        """Timezone object, or None for the system local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None

    @property
    def trigger_words_list(self) -> list[str]:
        return _split_words(self.trigger_words)

    @property
    def connectors_list(self) -> list[str]:
        return _split_words(self.connectors)


class TransportSettings(BaseSettings):
    """Messaging transport configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    reconnect_attempts: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many times to try (re)connecting before giving up"
    )
    reconnect_wait_min: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum backoff between connection attempts (seconds)"
    )
    reconnect_wait_max: float = Field(
        default=30.0,
        ge=0.0,
        description="Maximum backoff between connection attempts (seconds)"
    )
    conversation_id: str = Field(
        default="console",
        description="Conversation id used by the console transport"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Audit trail
    audit_log_path: Optional[str] = Field(
        default=None,
        description="JSON-lines file for audit events (unset = local log only)"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def bot(self) -> BotSettings:
        return BotSettings()

    @property
    def transport(self) -> TransportSettings:
        return TransportSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


def _split_words(raw: str) -> list[str]:
    return [word.strip().lower() for word in raw.split(",") if word.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every group that failed to load.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "bot", "transport", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
