"""Services package."""

from bookkeeper.services.export import (
    CsvFormatError,
    export_transactions_csv,
    import_transactions_csv,
)
from bookkeeper.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    LocalMirrorStorage,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from bookkeeper.services.sync import SheetSyncClient, SyncError

__all__ = [
    # CSV
    "CsvFormatError",
    "export_transactions_csv",
    "import_transactions_csv",
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "LocalMirrorStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Sync
    "SheetSyncClient",
    "SyncError",
]
