"""
Local Mirror Storage

Wraps a remote storage and mirrors every snapshot it loads to a JSON file
on disk. When the remote cannot be read, the last mirrored snapshot is
served instead, so reports keep working offline.

Writes are never queued: they go straight to the remote, and a remote
failure is raised to the caller as-is.
"""

import json
from pathlib import Path
from typing import Optional

import structlog

from bookkeeper.models.transaction import LedgerSnapshot, Transaction
from bookkeeper.services.storage.interface import LedgerStorageInterface, StorageError


logger = structlog.get_logger(__name__)


class LocalMirrorStorage(LedgerStorageInterface):
    """Remote storage with an on-disk copy of the last good snapshot."""

    def __init__(self, remote: LedgerStorageInterface, directory: Path):
        self._remote = remote
        self.user_id = remote.user_id
        self._path = Path(directory) / f"{self.user_id}.json"
        self.is_offline = False

    @property
    def mirror_path(self) -> Path:
        return self._path

    def read_mirror(self) -> Optional[LedgerSnapshot]:
        """The last mirrored snapshot, or None if there is none."""
        if not self._path.exists():
            return None
        try:
            return LedgerSnapshot.model_validate(json.loads(self._path.read_text("utf-8")))
        except (OSError, ValueError) as e:
            logger.warning("mirror_unreadable", path=str(self._path), error=str(e))
            return None

    def write_mirror(self, snapshot: LedgerSnapshot) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(snapshot.to_wire()), encoding="utf-8")
        tmp.replace(self._path)

    async def load_all(self) -> LedgerSnapshot:
        try:
            snapshot = await self._remote.load_all()
        except StorageError as e:
            cached = self.read_mirror()
            if cached is None:
                raise
            logger.warning(
                "serving_local_mirror",
                user_id=self.user_id,
                path=str(self._path),
                error=str(e),
            )
            self.is_offline = True
            return cached

        self.is_offline = False
        try:
            self.write_mirror(snapshot)
        except OSError as e:
            logger.warning("mirror_write_failed", path=str(self._path), error=str(e))
        return snapshot

    async def create_transaction(self, transaction: Transaction) -> None:
        await self._remote.create_transaction(transaction)

    async def update_transaction(self, transaction: Transaction) -> None:
        await self._remote.update_transaction(transaction)

    async def delete_transaction(self, transaction_id: str) -> None:
        await self._remote.delete_transaction(transaction_id)

    async def create_category(self, name: str) -> bool:
        return await self._remote.create_category(name)

    async def delete_category(self, name: str) -> None:
        await self._remote.delete_category(name)

    async def replace_all(self, snapshot: LedgerSnapshot) -> None:
        await self._remote.replace_all(snapshot)

    async def clear_all(self) -> None:
        await self._remote.clear_all()
        if self._path.exists():
            self._path.unlink()
