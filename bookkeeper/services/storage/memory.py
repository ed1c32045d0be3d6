"""
In-Memory Storage

Keeps every user's ledger in process memory. Used for demo accounts and
for tests; nothing survives a restart unless wrapped in LocalMirrorStorage.
"""

from typing import Optional

from bookkeeper.models.audit import AuditEvent
from bookkeeper.models.transaction import (
    DEFAULT_CATEGORIES,
    LedgerSnapshot,
    Transaction,
    sort_categories,
)
from bookkeeper.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Dict-backed ledger storage, scoped to one user.

    Several instances may share one `store` dict to model a multi-tenant
    backend.
    """

    def __init__(self, user_id: str, store: Optional[dict] = None):
        self.user_id = user_id
        self._store = store if store is not None else {}
        self._store.setdefault(user_id, {"transactions": {}, "categories": None})

    @property
    def _ledger(self) -> dict:
        return self._store[self.user_id]

    def _copy(self, transaction: Transaction) -> Transaction:
        return transaction.model_copy(update={"user_id": self.user_id}, deep=True)

    async def load_all(self) -> LedgerSnapshot:
        ledger = self._ledger
        if not ledger["categories"]:
            ledger["categories"] = list(DEFAULT_CATEGORIES)
        return LedgerSnapshot(
            transactions=[t.model_copy(deep=True) for t in ledger["transactions"].values()],
            categories=sort_categories(ledger["categories"]),
        )

    async def create_transaction(self, transaction: Transaction) -> None:
        transactions = self._ledger["transactions"]
        if transaction.id in transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        transactions[transaction.id] = self._copy(transaction)

    async def update_transaction(self, transaction: Transaction) -> None:
        transactions = self._ledger["transactions"]
        if transaction.id not in transactions:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        transactions[transaction.id] = self._copy(transaction)

    async def delete_transaction(self, transaction_id: str) -> None:
        transactions = self._ledger["transactions"]
        if transaction_id not in transactions:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        del transactions[transaction_id]

    async def create_category(self, name: str) -> bool:
        ledger = self._ledger
        categories = ledger["categories"]
        if categories is None:
            categories = ledger["categories"] = list(DEFAULT_CATEGORIES)
        if name in categories:
            return False
        categories.append(name)
        return True

    async def delete_category(self, name: str) -> None:
        categories = self._ledger["categories"] or []
        if name not in categories:
            raise NotFoundError(f"Category not found: {name}")
        categories.remove(name)

    async def replace_all(self, snapshot: LedgerSnapshot) -> None:
        self._store[self.user_id] = {
            "transactions": {t.id: self._copy(t) for t in snapshot.transactions},
            "categories": list(snapshot.categories),
        }


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
