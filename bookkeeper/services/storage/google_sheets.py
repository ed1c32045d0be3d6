"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Business owners can view and share their books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for one shop's ledger)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Layout:
- Transactions sheet: one row per transaction, line items JSON-encoded
- Categories sheet: one row per (user_id, name)
- AuditLog sheet: append-only audit events

Every row carries a user_id column; one spreadsheet can hold many accounts.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from bookkeeper.config.settings import GoogleSheetsSettings
from bookkeeper.models.audit import AuditEvent, AuditEventType, AuditSeverity
from bookkeeper.models.transaction import (
    DEFAULT_CATEGORIES,
    LedgerSnapshot,
    Transaction,
    TransactionLineItem,
    sort_categories,
)
from bookkeeper.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "description",
    "date",
    "category",
    "payment_method",
    "items_json",
    "created_at",
]

# Column mappings for Categories sheet
CATEGORY_COLUMNS = [
    "user_id",
    "name",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: GoogleSheetsSettings):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings

    @write_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 1000
        )

    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet."""
        return self._get_or_create_sheet(
            self._settings.categories_sheet_name, CATEGORY_COLUMNS, 200
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


@write_retry
def _append_rows(sheet: gspread.Worksheet, rows: list[list]) -> None:
    sheet.append_rows(rows, value_input_option="RAW")


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Transactions are stored one per row with the line items JSON-encoded,
    so a full replace of the items is a single row update.
    """

    def __init__(self, client: GoogleSheetsClient, user_id: str):
        self._client = client
        self.user_id = user_id

    def _transaction_to_row(self, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            transaction.id,
            self.user_id,
            transaction.type.value,
            transaction.description,
            transaction.date.isoformat(),
            transaction.category,
            transaction.payment_method.value,
            json.dumps([
                item.model_dump(mode="json", by_alias=True)
                for item in transaction.items
            ]),
            transaction.created_at.isoformat() if transaction.created_at else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        items_json = _safe_get(row, 7)
        items = [
            TransactionLineItem.model_validate(item)
            for item in (json.loads(items_json) if items_json else [])
        ]
        return Transaction(
            id=_safe_get(row, 0),
            user_id=_safe_get(row, 1) or None,
            type=_safe_get(row, 2),
            description=_safe_get(row, 3),
            date=_safe_get(row, 4),
            category=_safe_get(row, 5),
            payment_method=_safe_get(row, 6),
            items=items,
            created_at=_safe_get(row, 8) or None,
        )

    def _find_row(self, all_rows: list[list], transaction_id: str) -> Optional[int]:
        """1-based sheet row index of a transaction owned by this user."""
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == transaction_id and _safe_get(row, 1) == self.user_id:
                return idx
        return None

    async def load_all(self) -> LedgerSnapshot:
        try:
            tx_rows = self._client.get_transactions_sheet().get_all_values()[1:]
            cat_sheet = self._client.get_categories_sheet()
            cat_rows = cat_sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load ledger: {e}")

        transactions = []
        for row in tx_rows:
            if not row or not row[0] or _safe_get(row, 1) != self.user_id:
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except Exception as e:
                logger.warning("sheet_row_skipped", transaction_id=row[0], error=str(e))

        categories = [
            _safe_get(row, 1)
            for row in cat_rows
            if _safe_get(row, 0) == self.user_id and _safe_get(row, 1)
        ]
        if not categories:
            categories = list(DEFAULT_CATEGORIES)
            try:
                _append_rows(cat_sheet, [[self.user_id, name] for name in categories])
            except Exception as e:
                raise StorageError(f"Failed to seed default categories: {e}")

        return LedgerSnapshot(
            transactions=transactions,
            categories=sort_categories(categories),
        )

    async def create_transaction(self, transaction: Transaction) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            if self._find_row(sheet.get_all_values(), transaction.id) is not None:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            _append_rows(sheet, [self._transaction_to_row(transaction)])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def update_transaction(self, transaction: Transaction) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet.get_all_values(), transaction.id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            end = rowcol_to_a1(idx, len(TRANSACTION_COLUMNS))
            sheet.update(
                values=[self._transaction_to_row(transaction)],
                range_name=f"A{idx}:{end}",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete_transaction(self, transaction_id: str) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row(sheet.get_all_values(), transaction_id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")
            sheet.delete_rows(idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def create_category(self, name: str) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            for row in sheet.get_all_values()[1:]:
                if _safe_get(row, 0) == self.user_id and _safe_get(row, 1) == name:
                    return False
            _append_rows(sheet, [[self.user_id, name]])
            return True
        except Exception as e:
            raise StorageError(f"Failed to add category: {e}")

    async def delete_category(self, name: str) -> None:
        try:
            sheet = self._client.get_categories_sheet()
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if _safe_get(row, 0) == self.user_id and _safe_get(row, 1) == name:
                    sheet.delete_rows(idx)
                    return
            raise NotFoundError(f"Category not found: {name}")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")

    def _rewrite_user_rows(
        self,
        sheet: gspread.Worksheet,
        columns: list[str],
        user_column: int,
        new_rows: list[list],
    ) -> None:
        """
        Replace this user's rows, keeping every other account's rows.

        The new table is written over the old one first and only the
        leftover tail is cleared afterwards. A failed write leaves the
        previous rows in place instead of an empty sheet.
        """
        existing = sheet.get_all_values()
        kept = [
            row for row in existing[1:]
            if row and _safe_get(row, user_column) != self.user_id
        ]
        width = len(columns)
        values = [
            (list(row) + [""] * width)[:width]
            for row in [columns] + kept + new_rows
        ]
        sheet.update(values=values, range_name="A1")
        if len(existing) > len(values):
            tail = f"A{len(values) + 1}:{rowcol_to_a1(len(existing), width)}"
            sheet.batch_clear([tail])

    async def replace_all(self, snapshot: LedgerSnapshot) -> None:
        try:
            self._rewrite_user_rows(
                self._client.get_transactions_sheet(),
                TRANSACTION_COLUMNS,
                1,
                [self._transaction_to_row(t) for t in snapshot.transactions],
            )
            self._rewrite_user_rows(
                self._client.get_categories_sheet(),
                CATEGORY_COLUMNS,
                0,
                [[self.user_id, name] for name in snapshot.categories],
            )
        except Exception as e:
            raise StorageError(f"Failed to replace ledger: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: GoogleSheetsClient):
        self._client = client

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=_safe_get(row, 0),
            timestamp=_safe_get(row, 1),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=_safe_get(row, 5) or None,
            user_id=_safe_get(row, 6) or None,
            correlation_id=_safe_get(row, 7) or None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            _append_rows(self._client.get_audit_sheet(), [event.to_sheets_row()])
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_event_not_written", event_id=str(event.event_id), error=str(e))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            if user_id is not None and _safe_get(row, 6) != user_id:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception as e:
                logger.warning("audit_row_skipped", event_id=row[0], error=str(e))

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
