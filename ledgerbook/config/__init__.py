"""Configuration package."""

from ledgerbook.config.preferences import (
    Language,
    UserSettings,
    UserSettingsStore,
)
from ledgerbook.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Language",
    "Settings",
    "StoreSettings",
    "UserSettings",
    "UserSettingsStore",
    "get_settings",
    "validate_all_settings",
]
