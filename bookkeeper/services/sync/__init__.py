"""Spreadsheet sync package."""

from bookkeeper.services.sync.sheet_sync import SheetSyncClient, SyncError, normalize_timestamp

__all__ = ["SheetSyncClient", "SyncError", "normalize_timestamp"]
