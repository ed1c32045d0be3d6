"""
Spreadsheet Sync Client

Talks to a user-deployed spreadsheet endpoint (an Apps Script web app)
that stores a full copy of the ledger:

    POST {transactions, categories}   full overwrite
    GET                               returns {transactions, categories}

DESIGN DECISION: The endpoint is a dumb mirror, so sync is all-or-nothing.
Push overwrites the sheet with the current snapshot; pull returns a
snapshot the caller may write back into storage.

Spreadsheets hand timestamps back in whatever format the cell was
formatted with, so every timestamp is normalized to ISO-8601 on pull.
"""

import json
from datetime import datetime
from typing import Any, Optional

import requests
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bookkeeper.config.settings import SheetSyncSettings
from bookkeeper.models.transaction import LedgerSnapshot, coerce_timestamp
from bookkeeper.services.storage.interface import StorageError


logger = structlog.get_logger(__name__)

# Cell formats a spreadsheet may return instead of ISO-8601
SHEET_DATE_FORMATS = [
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %b %Y",
]

http_retry = retry(
    retry=retry_if_exception_type(requests.ConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class SyncError(StorageError):
    """The sync endpoint could not be reached or returned bad data."""
    pass


def normalize_timestamp(value: Any) -> Any:
    """Return an ISO-8601 string for any timestamp shape we recognise."""
    if value is None or value == "":
        return value
    parsed = coerce_timestamp(value)
    if isinstance(parsed, datetime):
        return parsed.isoformat()
    text = str(value).strip()
    for fmt in SHEET_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).isoformat()
        except ValueError:
            continue
    return value


def normalize_payload(payload: dict) -> dict:
    """
    Clean a pulled payload before model validation.

    - timestamps become ISO-8601
    - items stored as a JSON string in a single cell are decoded
    """
    transactions = []
    for raw in payload.get("transactions") or []:
        record = dict(raw)
        record["date"] = normalize_timestamp(record.get("date"))
        if "created_at" in record:
            record["created_at"] = normalize_timestamp(record.get("created_at")) or None
        if isinstance(record.get("items"), str):
            record["items"] = json.loads(record["items"] or "[]")
        transactions.append(record)
    return {
        "transactions": transactions,
        "categories": [str(c) for c in payload.get("categories") or [] if c],
    }


class SheetSyncClient:
    """HTTP client for the spreadsheet sync endpoint."""

    def __init__(
        self,
        settings: SheetSyncSettings,
        session: Optional[requests.Session] = None,
    ):
        if not settings.url:
            raise SyncError("Sheet sync URL is not configured")
        self._url = settings.url
        self._timeout = settings.timeout_seconds
        self._session = session or requests.Session()

    @http_retry
    def _request(self, method: str, **kwargs) -> requests.Response:
        response = self._session.request(method, self._url, timeout=self._timeout, **kwargs)
        response.raise_for_status()
        return response

    def push(self, snapshot: LedgerSnapshot) -> None:
        """Overwrite the sheet with the given snapshot."""
        try:
            self._request("POST", json=snapshot.to_wire())
        except requests.RequestException as e:
            raise SyncError(f"Failed to push to sheet: {e}")
        logger.info(
            "sheet_sync_pushed",
            transactions=len(snapshot.transactions),
            categories=len(snapshot.categories),
        )

    def pull(self) -> LedgerSnapshot:
        """Read the snapshot stored in the sheet."""
        try:
            payload = self._request("GET").json()
        except requests.RequestException as e:
            raise SyncError(f"Failed to pull from sheet: {e}")
        except ValueError as e:
            raise SyncError(f"Sheet returned invalid JSON: {e}")

        if not isinstance(payload, dict):
            raise SyncError("Sheet returned an unexpected payload")

        try:
            snapshot = LedgerSnapshot.model_validate(normalize_payload(payload))
        except ValueError as e:
            raise SyncError(f"Sheet data is malformed: {e}")

        logger.info(
            "sheet_sync_pulled",
            transactions=len(snapshot.transactions),
            categories=len(snapshot.categories),
        )
        return snapshot
