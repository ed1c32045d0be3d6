"""Configuration package."""

from bookkeeper.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LocalMirrorSettings,
    SheetSyncSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LocalMirrorSettings",
    "SheetSyncSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
