"""Tests for the spreadsheet sync client (HTTP is mocked)."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from bookkeeper.config import SheetSyncSettings
from bookkeeper.models.transaction import LedgerSnapshot
from bookkeeper.services.sync import SheetSyncClient, SyncError, normalize_timestamp


URL = "https://script.example.com/macros/s/abc/exec"


def make_client(payload=None, error=None):
    response = MagicMock()
    response.json.return_value = payload
    if error is not None:
        response.raise_for_status.side_effect = error
    session = MagicMock()
    session.request.return_value = response
    client = SheetSyncClient(SheetSyncSettings(url=URL, timeout_seconds=5), session=session)
    return client, session


class TestNormalizeTimestamp:
    """Tests for normalize_timestamp."""

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-05T10:30:00Z", "2024-01-05T10:30:00+00:00"),
        ("2024-01-05", "2024-01-05T00:00:00"),
        ("01/05/2024 10:30:00", "2024-01-05T10:30:00"),
        ("2024/01/05", "2024-01-05T00:00:00"),
        ("5 Jan 2024", "2024-01-05T00:00:00"),
    ])
    def test_known_formats(self, value, expected):
        """Test spreadsheet date formats become ISO-8601."""
        assert normalize_timestamp(value) == expected

    def test_unknown_values_pass_through(self):
        """Test unrecognised values are left for model validation."""
        assert normalize_timestamp("someday") == "someday"
        assert normalize_timestamp(None) is None


class TestSheetSyncClient:
    """Tests for SheetSyncClient."""

    def test_requires_url(self):
        """Test the client refuses to start without an endpoint."""
        with pytest.raises(SyncError):
            SheetSyncClient(SheetSyncSettings(url=None))

    def test_push_posts_snapshot(self, tx):
        """Test push sends the wire payload with the configured timeout."""
        client, session = make_client()
        snapshot = LedgerSnapshot(transactions=[tx("sale")], categories=["Rent"])
        client.push(snapshot)

        session.request.assert_called_once_with(
            "POST", URL, timeout=5, json=snapshot.to_wire()
        )

    def test_push_http_error(self, tx):
        """Test HTTP failures become SyncError."""
        client, _ = make_client(error=requests.HTTPError("500 Server Error"))
        with pytest.raises(SyncError):
            client.push(LedgerSnapshot())

    def test_pull_normalizes_payload(self):
        """Test items JSON strings and sheet dates are decoded."""
        payload = {
            "transactions": [{
                "id": "t1",
                "type": "expense",
                "description": "Supplies",
                "date": "01/05/2024 10:30:00",
                "category": "Office Supplies",
                "paymentMethod": "Online",
                "items": json.dumps([
                    {"id": "t1-0", "description": "Paper", "quantity": 2, "unitPrice": 4.5},
                ]),
                "created_at": "",
            }],
            "categories": ["Office Supplies", "", "Rent"],
        }
        client, session = make_client(payload)
        snapshot = client.pull()

        session.request.assert_called_once_with("GET", URL, timeout=5)
        [transaction] = snapshot.transactions
        assert transaction.date == datetime(2024, 1, 5, 10, 30)
        assert transaction.created_at is None
        assert transaction.total_amount == 9
        assert snapshot.categories == ["Office Supplies", "Rent"]

    def test_pull_invalid_json(self):
        """Test a non-JSON response becomes SyncError."""
        client, session = make_client()
        session.request.return_value.json.side_effect = ValueError("no JSON")
        with pytest.raises(SyncError):
            client.pull()

    def test_pull_unexpected_payload(self):
        """Test a JSON list is rejected."""
        client, _ = make_client(payload=[1, 2, 3])
        with pytest.raises(SyncError):
            client.pull()

    def test_pull_malformed_transaction(self):
        """Test rows that fail model validation become SyncError."""
        client, _ = make_client(payload={
            "transactions": [{"id": "t1", "type": "refund", "date": "2024-01-05"}],
            "categories": [],
        })
        with pytest.raises(SyncError):
            client.pull()
