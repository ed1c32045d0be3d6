"""
Audit Logger

DESIGN DECISION: Every write to the ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability when a backend write fails
3. A history the business owner can inspect

The audit logger:
- Always writes a structured local log line
- Persists to audit storage when one is configured
- Never lets an audit failure break the ledger operation being audited
"""

import logging
from typing import Optional

import structlog

from bookkeeper.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from bookkeeper.services.storage import AuditStorageInterface


def configure_logging(debug: bool = False) -> None:
    """
    Configure structlog for local logging.

    JSON lines on stderr through the standard library logging machinery.
    """
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, e.g. the AuditLog sheet (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        user_id: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            user_id: Account stamped on events that don't name one.
        """
        self._storage = storage
        self._user_id = user_id
        self._logger = structlog.get_logger("bookkeeper.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.user_id is None and self._user_id is not None:
            event = event.model_copy(update={"user_id": self._user_id})

        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(self, transaction_id: str, kind: str, amount: float) -> None:
        await self.log(AuditEventBuilder.transaction_created(transaction_id, kind, amount))

    async def log_transaction_updated(self, transaction_id: str, item_count: int, amount: float) -> None:
        await self.log(AuditEventBuilder.transaction_updated(transaction_id, item_count, amount))

    async def log_transaction_deleted(self, transaction_id: str) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    async def log_validation_failed(self, transaction_id: str, issues: list[dict]) -> None:
        await self.log(AuditEventBuilder.validation_failed(transaction_id, issues))

    async def log_category_created(self, name: str) -> None:
        await self.log(AuditEventBuilder.category_created(name))

    async def log_category_deleted(self, name: str) -> None:
        await self.log(AuditEventBuilder.category_deleted(name))

    async def log_category_delete_rejected(self, name: str, usage_count: int) -> None:
        await self.log(AuditEventBuilder.category_delete_rejected(name, usage_count))

    async def log_bulk(
        self,
        event_type: AuditEventType,
        transaction_count: int,
        category_count: int,
        details: Optional[dict] = None,
    ) -> None:
        """Log an import, export, sync or clear."""
        await self.log(AuditEventBuilder.bulk_operation(
            event_type, transaction_count, category_count, details=details,
        ))

    async def log_query_executed(self, query_id, query_type: str, result_count: int) -> None:
        await self.log(AuditEventBuilder.query_executed(query_id, query_type, result_count))

    async def log_storage_error(self, operation: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.storage_error(operation, error_message))
