"""
Configuration Management for SeoulMate

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The settlement engine itself takes explicit arguments; these settings only
provide the defaults the ledger and engine fall back to.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettlementSettings(BaseSettings):
    """Numeric policy of the settlement engine."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLEMENT_",
        extra="ignore"
    )

    epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Balances within this distance of zero count as settled"
    )
    rounding_unit: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="Smallest display unit transfers are rounded to (1 for KRW)"
    )
    currency: str = Field(
        default="KRW",
        min_length=3,
        max_length=3,
        description="ISO code of the trip's home currency"
    )

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class TripSettings(BaseSettings):
    """Trip identity and storage backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="TRIP_",
        extra="ignore"
    )

    trip_id: str = Field(
        default="seoul-trip-demo",
        min_length=1,
        description="Identifier of the shared trip; prefixes stored collections"
    )
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|local)$",
        description="'memory' for process-local storage, 'local' for JSON files"
    )
    data_dir: Path = Field(
        default=Path(".seoulmate"),
        description="Directory for the local JSON storage backend"
    )
    max_members: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Maximum number of members on the trip roster"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Quick-convert widget
    exchange_rate: Decimal = Field(
        default=Decimal("0.024"),
        gt=0,
        description="Units of display currency per unit of home currency"
    )
    display_currency: str = Field(
        default="TWD",
        description="Currency the quick-convert widget shows"
    )

    # Sanity threshold for expense validation
    max_expense_amount: Decimal = Field(
        default=Decimal("10000000"),
        gt=0,
        description="Amounts above this are flagged for review"
    )


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

    @property
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

    @property
    def trip(self) -> TripSettings:
        return TripSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("settlement", "trip", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
