"""
Configuration Management for Budget Advisor

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The presence of Google Sheets credentials is what selects the remote
store at startup, so that decision lives next to the settings it reads.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets (remote table) storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: Optional[str] = Field(
        default=None,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet holds every owner's months
    budget_sheet_name: str = Field(
        default="budget_logs",
        description="Name of the sheet holding one row per (owner, month)"
    )
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner identifier used to scope rows to the signed-in user"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    @property
    def is_configured(self) -> bool:
        """Remote storage is used only when both credentials and sheet are given."""
        return bool(self.credentials_path and self.spreadsheet_id)


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

    # Local storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the local budget database blob"
    )
    local_storage_key: str = Field(
        default="budget_db_v3",
        min_length=1,
        description="Fixed name of the local budget database blob"
    )

    # Presentation
    currency_symbol: str = Field(
        default="Ksh",
        description="Currency prefix used when formatting amounts"
    )
    advisor_name: str = Field(
        default="Mic3",
        description="Name the advisor uses for the business/household"
    )
    notification_history: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="How many notifications to keep in memory"
    )

    @property
    def local_storage_path(self) -> Path:
        """Full path of the local database blob."""
        return self.data_dir / f"{self.local_storage_key}.json"


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
        sheets = settings.google_sheets
        results["google_sheets"] = sheets.is_configured
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
