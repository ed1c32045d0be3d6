"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger persistence.
This allows us to:
1. Swap Google Sheets for a hosted database without touching business logic
2. Use in-memory storage for tests and demo accounts
3. Add a local mirror transparently for offline use

Every storage instance is bound to one user account at construction;
implementations scope every read and write to that user.

The interface is intentionally simple. Business rules (validation,
category referential integrity) belong to the ledger service, not here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from bookkeeper.models.audit import AuditEvent
from bookkeeper.models.transaction import LedgerSnapshot, Transaction


class LedgerStorageInterface(ABC):
    """
    Abstract interface for transaction and category storage.

    Any storage implementation (Google Sheets, a database, etc.)
    must implement these methods.
    """

    user_id: str

    @abstractmethod
    async def load_all(self) -> LedgerSnapshot:
        """
        Load the user's full ledger.

        Returns:
            Snapshot with categories sorted ascending by name. If the user
            has no categories yet, the default set is seeded and returned.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> None:
        """
        Store a new transaction with all of its line items.

        Raises:
            DuplicateError: If the ID is already taken
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> None:
        """
        Replace a transaction, line items included.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        """
        Permanently delete a transaction and its line items.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def create_category(self, name: str) -> bool:
        """
        Add a category.

        Returns:
            True if created, False if a category with that name exists
        """
        pass

    @abstractmethod
    async def delete_category(self, name: str) -> None:
        """
        Remove a category.

        Callers must check that no transaction references it first.
        """
        pass

    @abstractmethod
    async def replace_all(self, snapshot: LedgerSnapshot) -> None:
        """Overwrite the user's transactions and categories."""
        pass

    async def clear_all(self) -> None:
        """Delete every transaction and category of the user."""
        await self.replace_all(LedgerSnapshot())


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, newest first.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
