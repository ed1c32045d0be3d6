"""Tests for the storage adapters."""

import asyncio
import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from bookkeeper.models.transaction import DEFAULT_CATEGORIES, LedgerSnapshot
from bookkeeper.models.audit import AuditEventBuilder
from bookkeeper.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LocalMirrorStorage,
    NotFoundError,
    StorageError,
)
from bookkeeper.services.storage.google_sheets import (
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
)


def run(coro):
    return asyncio.run(coro)


class FakeWorksheet:
    """In-memory stand-in for gspread.Worksheet."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_rows(self, rows, value_input_option=None):
        self.rows.extend(list(row) for row in rows)

    def update(self, values=None, range_name=None):
        start = int(range_name.split(":")[0][1:])
        for offset, row in enumerate(values):
            index = start - 1 + offset
            if index < len(self.rows):
                self.rows[index] = list(row)
            else:
                self.rows.append(list(row))

    def batch_clear(self, ranges):
        for cell_range in ranges:
            first, last = cell_range.split(":")
            start = int(first[1:])
            end = int("".join(c for c in last if c.isdigit()))
            for index in range(start - 1, min(end, len(self.rows))):
                self.rows[index] = []
        while self.rows and not any(self.rows[-1]):
            self.rows.pop()

    def delete_rows(self, index):
        del self.rows[index - 1]


@pytest.fixture
def sheets():
    transactions = FakeWorksheet(TRANSACTION_COLUMNS)
    categories = FakeWorksheet(CATEGORY_COLUMNS)
    audit = FakeWorksheet(["event_id"])
    client = MagicMock()
    client.get_transactions_sheet.return_value = transactions
    client.get_categories_sheet.return_value = categories
    client.get_audit_sheet.return_value = audit
    return client, transactions, categories, audit


class TestInMemoryStorage:
    """Tests for InMemoryLedgerStorage."""

    def test_users_are_isolated(self, tx):
        """Test two users sharing a store don't see each other's data."""
        store = {}
        alice = InMemoryLedgerStorage("alice", store)
        bob = InMemoryLedgerStorage("bob", store)
        run(alice.create_transaction(tx("sale")))

        assert len(run(alice.load_all()).transactions) == 1
        assert run(bob.load_all()).transactions == []

    def test_duplicate_and_missing(self, tx):
        """Test duplicate creates and unknown updates raise."""
        storage = InMemoryLedgerStorage("alice")
        transaction = tx("sale")
        run(storage.create_transaction(transaction))
        with pytest.raises(DuplicateError):
            run(storage.create_transaction(transaction))
        with pytest.raises(NotFoundError):
            run(storage.update_transaction(tx("sale")))
        with pytest.raises(NotFoundError):
            run(storage.delete_transaction("nope"))

    def test_categories(self):
        """Test category create/delete semantics."""
        storage = InMemoryLedgerStorage("alice")
        assert run(storage.create_category("Misc")) is True
        assert run(storage.create_category("Misc")) is False
        run(storage.delete_category("Misc"))
        with pytest.raises(NotFoundError):
            run(storage.delete_category("Misc"))

    def test_loaded_copies_are_independent(self, tx):
        """Test mutating a loaded snapshot doesn't change storage."""
        storage = InMemoryLedgerStorage("alice")
        run(storage.create_transaction(tx("sale")))
        snapshot = run(storage.load_all())
        snapshot.transactions[0].items.clear()
        assert run(storage.load_all()).transactions[0].items


class TestGoogleSheetsStorage:
    """Tests for GoogleSheetsLedgerStorage against a fake worksheet."""

    def test_load_seeds_default_categories(self, sheets):
        """Test a new user gets the default categories written to the sheet."""
        client, _, categories, _ = sheets
        snapshot = run(GoogleSheetsLedgerStorage(client, "shop-1").load_all())

        assert set(snapshot.categories) == set(DEFAULT_CATEGORIES)
        assert snapshot.categories == sorted(snapshot.categories, key=str.lower)
        assert len(categories.rows) == 1 + len(DEFAULT_CATEGORIES)

    def test_create_update_delete(self, sheets, tx):
        """Test a transaction survives the row round trip and can be changed."""
        client, transactions, _, _ = sheets
        storage = GoogleSheetsLedgerStorage(client, "shop-1")
        transaction = tx(
            "expense",
            items=[(2, 12.5)],
            item_names=["Flour"],
            created_at=datetime(2024, 1, 5, 9, 0),
        )

        run(storage.create_transaction(transaction))
        assert json.loads(transactions.rows[1][7])[0]["unitPrice"] == 12.5
        with pytest.raises(DuplicateError):
            run(storage.create_transaction(transaction))

        [loaded] = run(storage.load_all()).transactions
        assert loaded.id == transaction.id
        assert loaded.user_id == "shop-1"
        assert loaded.total_amount == 25
        assert loaded.date == transaction.date

        changed = transaction.model_copy(update={"description": "Changed"})
        run(storage.update_transaction(changed))
        assert run(storage.load_all()).transactions[0].description == "Changed"

        run(storage.delete_transaction(transaction.id))
        assert run(storage.load_all()).transactions == []
        with pytest.raises(NotFoundError):
            run(storage.delete_transaction(transaction.id))

    def test_rows_of_other_users_are_ignored(self, sheets, tx):
        """Test load_all and replace_all only touch the bound user."""
        client, transactions, _, _ = sheets
        alice = GoogleSheetsLedgerStorage(client, "alice")
        bob = GoogleSheetsLedgerStorage(client, "bob")
        run(alice.create_transaction(tx("sale")))
        run(bob.create_transaction(tx("sale")))

        run(alice.replace_all(LedgerSnapshot(categories=["Rent"])))

        assert run(alice.load_all()).transactions == []
        assert run(alice.load_all()).categories == ["Rent"]
        assert len(run(bob.load_all()).transactions) == 1
        assert transactions.rows[0] == TRANSACTION_COLUMNS

    def test_replace_all_clears_leftover_rows(self, sheets, tx):
        """Test shrinking a user's rows leaves no stale rows at the bottom."""
        client, transactions, _, _ = sheets
        alice = GoogleSheetsLedgerStorage(client, "alice")
        bob = GoogleSheetsLedgerStorage(client, "bob")
        run(bob.create_transaction(tx("sale")))
        for _ in range(3):
            run(alice.create_transaction(tx("sale")))

        keep = tx("sale", items=[(1, 7)])
        run(alice.replace_all(LedgerSnapshot(transactions=[keep], categories=["Rent"])))

        assert len(transactions.rows) == 3
        assert [t.id for t in run(alice.load_all()).transactions] == [keep.id]
        assert len(run(bob.load_all()).transactions) == 1

    def test_failed_replace_keeps_existing_rows(self, sheets, tx):
        """Test a write error during replace_all loses no rows of any user."""
        client, transactions, _, _ = sheets
        alice = GoogleSheetsLedgerStorage(client, "alice")
        bob = GoogleSheetsLedgerStorage(client, "bob")
        run(alice.create_transaction(tx("sale")))
        run(bob.create_transaction(tx("sale")))
        before = transactions.get_all_values()

        transactions.update = MagicMock(side_effect=RuntimeError("quota exceeded"))
        with pytest.raises(StorageError):
            run(alice.replace_all(LedgerSnapshot()))

        assert transactions.rows == before
        assert len(run(alice.load_all()).transactions) == 1
        assert len(run(bob.load_all()).transactions) == 1

    def test_malformed_rows_are_skipped(self, sheets):
        """Test a corrupt row doesn't break loading."""
        client, transactions, _, _ = sheets
        transactions.rows.append(["bad", "shop-1", "refund", "", "not a date", "", "", "", ""])
        assert run(GoogleSheetsLedgerStorage(client, "shop-1").load_all()).transactions == []

    def test_categories(self, sheets):
        """Test category create and delete."""
        client, _, categories, _ = sheets
        storage = GoogleSheetsLedgerStorage(client, "shop-1")
        assert run(storage.create_category("Misc")) is True
        assert run(storage.create_category("Misc")) is False
        run(storage.delete_category("Misc"))
        assert categories.rows == [CATEGORY_COLUMNS]
        with pytest.raises(NotFoundError):
            run(storage.delete_category("Misc"))

    def test_backend_failure_is_storage_error(self):
        """Test API errors surface as StorageError."""
        client = MagicMock()
        client.get_transactions_sheet.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError):
            run(GoogleSheetsLedgerStorage(client, "shop-1").load_all())


class TestGoogleSheetsAuditStorage:
    """Tests for GoogleSheetsAuditStorage."""

    def test_append_and_read_back(self, sheets):
        """Test events are appended and read newest first."""
        client, _, _, audit = sheets
        storage = GoogleSheetsAuditStorage(client)
        first = AuditEventBuilder.category_created("Misc", user_id="shop-1")
        second = AuditEventBuilder.category_deleted("Misc", user_id="shop-2")

        assert run(storage.append_event(first)) is True
        assert run(storage.append_event(second)) is True
        assert len(audit.rows) == 3

        events = run(storage.get_recent_events(user_id="shop-1"))
        assert [e.event_id for e in events] == [first.event_id]

    def test_append_failure_returns_false(self):
        """Test audit write failures never raise."""
        client = MagicMock()
        client.get_audit_sheet.side_effect = RuntimeError("offline")
        storage = GoogleSheetsAuditStorage(client)
        assert run(storage.append_event(AuditEventBuilder.category_created("x"))) is False


class _FailingStorage(InMemoryLedgerStorage):
    fail = False

    async def load_all(self):
        if self.fail:
            raise StorageError("offline")
        return await super().load_all()


class TestLocalMirrorStorage:
    """Tests for LocalMirrorStorage."""

    def test_serves_mirror_when_offline(self, tmp_path, tx):
        """Test the last good snapshot is served when the remote fails."""
        remote = _FailingStorage("shop-1")
        storage = LocalMirrorStorage(remote, tmp_path)
        run(storage.create_transaction(tx("sale", items=[(1, 42)])))

        online = run(storage.load_all())
        assert storage.mirror_path == tmp_path / "shop-1.json"
        assert storage.mirror_path.exists()
        assert not storage.is_offline

        remote.fail = True
        offline = run(storage.load_all())
        assert storage.is_offline
        assert offline.transactions[0].id == online.transactions[0].id
        assert offline.transactions[0].total_amount == 42

    def test_no_mirror_reraises(self, tmp_path):
        """Test a remote failure without a mirror propagates."""
        remote = _FailingStorage("shop-1")
        remote.fail = True
        with pytest.raises(StorageError):
            run(LocalMirrorStorage(remote, tmp_path).load_all())

    def test_corrupt_mirror_is_ignored(self, tmp_path):
        """Test an unreadable mirror file counts as no mirror."""
        (tmp_path / "shop-1.json").write_text("{not json", encoding="utf-8")
        storage = LocalMirrorStorage(InMemoryLedgerStorage("shop-1"), tmp_path)
        assert storage.read_mirror() is None

    def test_clear_all_removes_mirror(self, tmp_path, tx):
        """Test clearing the ledger deletes the mirror file."""
        storage = LocalMirrorStorage(InMemoryLedgerStorage("shop-1"), tmp_path)
        run(storage.create_transaction(tx("sale")))
        run(storage.load_all())
        run(storage.clear_all())
        assert not storage.mirror_path.exists()
