"""
Configuration Management for Travel Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, so the tolerances the settlement
engine runs with and the files the app writes to are visible in one place
and validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from travel_ledger.models.ledger import TEXT_MAX_LENGTH


class LedgerSettings(BaseSettings):
    """Ledger storage and settlement engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Local storage
    storage_path: Path = Field(
        default=Path("ledger_data.json"),
        description="JSON file holding members and expense history"
    )
    audit_log_path: Path = Field(
        default=Path("ledger_audit.jsonl"),
        description="Append-only JSON-lines audit log"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        min_length=1,
        max_length=5,
        description="Currency symbol used when formatting amounts"
    )

    # Tolerances (currency units)
    amount_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Allowed gap between an expense total and its payer/share sums"
    )
    balance_epsilon: Decimal = Field(
        default=Decimal("0.005"),
        gt=0,
        description="Balances within this of zero count as settled"
    )
    transfer_floor: Decimal = Field(
        default=Decimal("0.009"),
        ge=0,
        description="Transfers at or below this amount are never emitted"
    )
    settle_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Remaining balance below which a member counts as paid off"
    )
    strict_zero_sum: bool = Field(
        default=False,
        description="Refuse to settle balances that do not sum to zero"
    )

    # Members
    max_member_name_length: int = Field(
        default=100,
        ge=1,
        le=200,
        description="Maximum length of a member name"
    )

    # Expenses
    max_text_length: int = Field(
        default=TEXT_MAX_LENGTH,
        ge=1,
        le=TEXT_MAX_LENGTH,
        description="Maximum length of an expense title or location"
    )

    @model_validator(mode='after')
    def validate_tolerances(self) -> 'LedgerSettings':
        """The transfer floor must sit below the settle tolerance."""
        if self.transfer_floor >= self.settle_tolerance:
            raise ValueError(
                "transfer_floor must be smaller than settle_tolerance"
            )
        return self


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

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Render logs as JSON lines or human-readable console output"
    )

    # UI
    max_toasts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of notifications kept on screen"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
