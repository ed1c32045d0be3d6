"""
Configuration Management for Bookkeeper

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and read once, in
the composition root (create_app_components). Storage adapters and the
sync client receive their settings as constructor arguments; none of them
reach for global state on their own.
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for categories"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class SheetSyncSettings(BaseSettings):
    """Spreadsheet sync endpoint (a deployed Apps Script web app)."""

    model_config = SettingsConfigDict(
        env_prefix="SHEET_SYNC_",
        extra="ignore"
    )

    url: Optional[str] = Field(
        default=None,
        description="Endpoint accepting POST {transactions, categories} and GET"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout per request"
    )

    @property
    def enabled(self) -> bool:
        return bool(self.url)


class LocalMirrorSettings(BaseSettings):
    """Local JSON mirror of the remote ledger, used when offline."""

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_MIRROR_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Mirror every loaded snapshot to a local file"
    )
    directory: Path = Field(
        default=Path.home() / ".bookkeeper",
        description="Directory holding one mirror file per user"
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
        description="Enable debug logging"
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which persistence adapter to use"
    )
    user_id: str = Field(
        default="local-user",
        description="Account whose ledger is loaded"
    )

    # Reports
    chart_window_days: int = Field(
        default=14,
        ge=1,
        le=366,
        description="Days shown on the daily sales/expenses chart"
    )
    top_items_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of rows in the top items report"
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

    # Sub-settings are loaded lazily to allow partial configuration:
    # the memory backend needs no Google credentials at all.

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def sheet_sync(self) -> SheetSyncSettings:
        return SheetSyncSettings()

    @property
    def local_mirror(self) -> LocalMirrorSettings:
        return LocalMirrorSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("app", "google_sheets", "sheet_sync", "local_mirror"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
