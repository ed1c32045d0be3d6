"""
Main Orchestrator for Bookkeeper

This module ties together storage, validation, auditing and reporting and
defines the end-to-end flows for:
1. Recording, editing and deleting transactions
2. Managing categories
3. Bulk data movement (CSV import/export, spreadsheet sync, clear)
4. Reports and structured queries over the current snapshot

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written without passing validation first
- A category in use can never be deleted
- Every write is audited
- After every successful write the snapshot is re-read from storage,
  so reports always reflect what the backend actually holds

create_app_components() is the composition root: the only place that
reads settings and decides which concrete adapters to build.
"""

import asyncio
from datetime import datetime
from typing import Optional

import structlog

from bookkeeper.audit import AuditLogger, configure_logging
from bookkeeper.config import Settings, get_settings
from bookkeeper.models.audit import AuditEventType
from bookkeeper.models.report import QueryResult, StructuredQuery
from bookkeeper.models.transaction import (
    SALE_CATEGORY,
    LedgerSnapshot,
    Transaction,
    sort_categories,
)
from bookkeeper.queries import QueryExecutor
from bookkeeper.reports import ReportService
from bookkeeper.services.export import export_transactions_csv, import_transactions_csv
from bookkeeper.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    LocalMirrorStorage,
    StorageError,
)
from bookkeeper.services.sync import SheetSyncClient, SyncError
from bookkeeper.validation import (
    DuplicateCategoryError,
    TransactionValidationError,
    TransactionValidator,
)


logger = structlog.get_logger(__name__)


class CategoryInUseError(Exception):
    """A category cannot be deleted while transactions reference it."""

    def __init__(self, category: str, usage_count: int):
        self.category = category
        self.usage_count = usage_count
        super().__init__(
            f"Category '{category}' is used by {usage_count} "
            f"transaction{'s' if usage_count != 1 else ''} and cannot be deleted"
        )


class LedgerService:
    """
    Orchestrates every user-facing ledger operation.

    Holds the current snapshot of the user's transactions and categories.
    Call refresh() once after construction to load it.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        sync_client: Optional[SheetSyncClient] = None,
        chart_window_days: int = 14,
        top_items_limit: int = 10,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger(user_id=storage.user_id)
        self._validator = validator or TransactionValidator()
        self._sync_client = sync_client
        self._query_executor = QueryExecutor(storage)
        self._chart_window_days = chart_window_days
        self._top_items_limit = top_items_limit
        self._snapshot = LedgerSnapshot()

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    @property
    def user_id(self) -> str:
        return self._storage.user_id

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._snapshot.transactions)

    @property
    def categories(self) -> list[str]:
        return list(self._snapshot.categories)

    async def refresh(self) -> LedgerSnapshot:
        """Re-read the snapshot from storage."""
        self._snapshot = await self._storage.load_all()
        return self._snapshot

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._snapshot.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def category_usage(self, name: str) -> int:
        """Number of transactions referencing a category."""
        return sum(1 for t in self._snapshot.transactions if t.category == name)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _prepare(self, transaction: Transaction) -> Transaction:
        """Stamp ownership and force the sale sentinel category."""
        update = {"user_id": self.user_id}
        if transaction.is_sale:
            update["category"] = SALE_CATEGORY
        if transaction.created_at is None:
            update["created_at"] = datetime.utcnow()
        return transaction.model_copy(update=update)

    async def _write(self, operation: str, write) -> None:
        """Await a storage write, auditing backend failures before re-raising."""
        try:
            await write
        except StorageError as e:
            await self._audit_logger.log_storage_error(operation, str(e))
            raise

    async def _validate(self, transaction: Transaction) -> None:
        try:
            self._validator.ensure_valid(transaction, self._snapshot.categories)
        except TransactionValidationError as e:
            await self._audit_logger.log_validation_failed(
                transaction.id,
                [issue.model_dump() for issue in e.issues],
            )
            raise

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Validate and store a new transaction.

        Raises:
            TransactionValidationError: If the transaction is invalid
            StorageError: If the backend write fails
        """
        transaction = self._prepare(transaction)
        await self._validate(transaction)
        await self._write("create_transaction", self._storage.create_transaction(transaction))
        await self._audit_logger.log_transaction_created(
            transaction.id, transaction.type.value, transaction.total_amount,
        )
        await self.refresh()
        return transaction

    async def edit_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction, line items included.

        Raises:
            TransactionValidationError: If the new version is invalid
            NotFoundError: If the transaction doesn't exist
        """
        if transaction.created_at is None:
            stored = self.get_transaction(transaction.id)
            if stored is not None and stored.created_at is not None:
                transaction = transaction.model_copy(update={"created_at": stored.created_at})
        transaction = self._prepare(transaction)
        await self._validate(transaction)
        await self._write("update_transaction", self._storage.update_transaction(transaction))
        await self._audit_logger.log_transaction_updated(
            transaction.id, len(transaction.items), transaction.total_amount,
        )
        await self.refresh()
        return transaction

    async def delete_transaction(self, transaction_id: str) -> None:
        """Permanently delete a transaction."""
        await self._write("delete_transaction", self._storage.delete_transaction(transaction_id))
        await self._audit_logger.log_transaction_deleted(transaction_id)
        await self.refresh()

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def add_category(self, name: str) -> str:
        """
        Create a category and return its stored name.

        Raises:
            CategoryNameError: If the name is blank
            DuplicateCategoryError: If it already exists (ignoring case)
        """
        name = self._validator.validate_category_name(name, self._snapshot.categories)
        if not await self._storage.create_category(name):
            raise DuplicateCategoryError(f"Category '{name}' already exists")
        await self._audit_logger.log_category_created(name)
        await self.refresh()
        return name

    async def delete_category(self, name: str) -> None:
        """
        Delete a category nobody uses.

        Usage is counted against a fresh read of storage, not the cached
        snapshot, so writes from other sessions are seen.

        Raises:
            CategoryInUseError: If any transaction references the category
        """
        await self.refresh()
        usage = self.category_usage(name)
        if usage:
            await self._audit_logger.log_category_delete_rejected(name, usage)
            raise CategoryInUseError(name, usage)
        await self._write("delete_category", self._storage.delete_category(name))
        await self._audit_logger.log_category_deleted(name)
        await self.refresh()

    # -------------------------------------------------------------------------
    # Bulk data movement
    # -------------------------------------------------------------------------

    async def import_csv(self, text: str) -> int:
        """
        Import transactions from an exported CSV.

        Transactions whose ID already exists are left untouched. Expense
        categories the file mentions but the user lacks are created.

        Returns:
            Number of new transactions imported
        """
        imported = import_transactions_csv(text)
        existing = {t.id for t in self._snapshot.transactions}
        new = [t for t in imported if t.id not in existing]
        if not new:
            return 0

        missing = sort_categories(
            t.category for t in new
            if t.is_expense and t.category not in self._snapshot.categories
        )
        snapshot = LedgerSnapshot(
            transactions=self._snapshot.transactions + [self._prepare(t) for t in new],
            categories=self._snapshot.categories + missing,
        )
        await self._write("import_csv", self._storage.replace_all(snapshot))
        await self._audit_logger.log_bulk(
            AuditEventType.DATA_IMPORTED, len(new), len(missing),
            details={"skipped_existing": len(imported) - len(new)},
        )
        await self.refresh()
        return len(new)

    async def export_csv(self) -> str:
        """The current snapshot as CSV text."""
        text = export_transactions_csv(self._snapshot.transactions)
        await self._audit_logger.log_bulk(
            AuditEventType.DATA_EXPORTED,
            len(self._snapshot.transactions),
            len(self._snapshot.categories),
        )
        return text

    def _require_sync(self) -> SheetSyncClient:
        if self._sync_client is None:
            raise SyncError("Sheet sync is not configured")
        return self._sync_client

    async def push_to_sheet(self) -> None:
        """Overwrite the sync sheet with the current snapshot."""
        await asyncio.to_thread(self._require_sync().push, self._snapshot)
        await self._audit_logger.log_bulk(
            AuditEventType.SYNC_PUSHED,
            len(self._snapshot.transactions),
            len(self._snapshot.categories),
        )

    async def pull_from_sheet(self) -> LedgerSnapshot:
        """Replace the stored ledger with the sync sheet's copy."""
        pulled = await asyncio.to_thread(self._require_sync().pull)
        pulled = LedgerSnapshot(
            transactions=[self._prepare(t) for t in pulled.transactions],
            categories=pulled.categories,
        )
        await self._write("pull_from_sheet", self._storage.replace_all(pulled))
        await self._audit_logger.log_bulk(
            AuditEventType.SYNC_PULLED,
            len(pulled.transactions),
            len(pulled.categories),
        )
        return await self.refresh()

    async def clear_all_data(self) -> None:
        """Delete every transaction and category of the user."""
        await self._write("clear_all_data", self._storage.clear_all())
        await self._audit_logger.log_bulk(AuditEventType.DATA_CLEARED, 0, 0)
        await self.refresh()

    # -------------------------------------------------------------------------
    # Reports and queries
    # -------------------------------------------------------------------------

    def reports(self) -> ReportService:
        """Report views over the current snapshot."""
        return ReportService(
            self._snapshot.transactions,
            chart_window_days=self._chart_window_days,
            top_items_limit=self._top_items_limit,
        )

    async def query(self, query: StructuredQuery) -> QueryResult:
        result = await self._query_executor.execute(query)
        await self._audit_logger.log_query_executed(
            query.query_id, query.query_type, result.result_count,
        )
        return result


def create_app_components(
    settings: Optional[Settings] = None,
    user_id: Optional[str] = None,
) -> LedgerService:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().
        user_id: Account to load. Defaults to the configured user.

    Returns:
        A LedgerService; call `await service.refresh()` before use.
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(app.debug_mode)
    user_id = user_id or app.user_id

    audit_storage = None
    if app.storage_backend == "google_sheets":
        sheets_client = GoogleSheetsClient(settings.google_sheets)
        storage: LedgerStorageInterface = GoogleSheetsLedgerStorage(sheets_client, user_id)
        audit_storage = GoogleSheetsAuditStorage(sheets_client)
    else:
        storage = InMemoryLedgerStorage(user_id)

    mirror = settings.local_mirror
    if mirror.enabled:
        storage = LocalMirrorStorage(storage, mirror.directory)

    sync_client = None
    sync_settings = settings.sheet_sync
    if sync_settings.enabled:
        sync_client = SheetSyncClient(sync_settings)

    logger.info(
        "app_components_created",
        storage_backend=app.storage_backend,
        local_mirror=mirror.enabled,
        sheet_sync=sync_client is not None,
        user_id=user_id,
    )

    return LedgerService(
        storage=storage,
        audit_logger=AuditLogger(audit_storage, user_id=user_id),
        sync_client=sync_client,
        chart_window_days=app.chart_window_days,
        top_items_limit=app.top_items_limit,
    )
