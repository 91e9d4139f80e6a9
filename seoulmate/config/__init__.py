"""Configuration package."""

from seoulmate.config.settings import (
    AppSettings,
    Settings,
    SettlementSettings,
    TripSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "SettlementSettings",
    "TripSettings",
    "get_settings",
    "validate_all_settings",
]
