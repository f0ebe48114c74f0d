"""
Configuration Management for Ledger Book

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Rows reserved when a collection worksheet is created
    initial_rows: int = Field(
        default=1000,
        ge=10,
        description="Row count for newly created collection worksheets"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class StoreSettings(BaseSettings):
    """Collection names inside the document store."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORE_",
        extra="ignore"
    )

    loans_collection: str = Field(
        default="loans",
        description="Collection holding loan transactions"
    )
    land_activities_collection: str = Field(
        default="landActivities",
        description="Collection holding land activities"
    )
    group_settlements_collection: str = Field(
        default="groupSettlements",
        description="Collection holding per-person settlement groups"
    )
    audit_collection: str = Field(
        default="auditLog",
        description="Collection holding audit events"
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

    # Recalculation cadence
    recalculation_interval_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 31,
        description="Hours between automatic accrual recalculations"
    )

    # Search
    search_min_chars: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Minimum search text length before querying the store"
    )

    # Validation thresholds
    max_amount_inr: float = Field(
        default=10000000.0,
        description="Maximum reasonable amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an entry date can be"
    )

    # Local preferences (language toggle)
    preferences_path: str = Field(
        default=".ledgerbook/preferences.json",
        description="Where the user settings file is kept"
    )

    @property
    def recalculation_interval_seconds(self) -> int:
        """Get the recalculation interval in seconds."""
        return self.recalculation_interval_hours * 60 * 60


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

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
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.store
        results["store"] = True
    except Exception as e:
        results["store"] = False
        results["store_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
