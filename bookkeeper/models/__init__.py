"""
Data Models Package

This package contains all Pydantic models used in Bookkeeper.
All data flowing through the system must conform to these schemas.
"""

from bookkeeper.models.transaction import (
    DEFAULT_CATEGORIES,
    SALE_CATEGORY,
    LedgerSnapshot,
    PaymentMethod,
    Transaction,
    TransactionLineItem,
    TransactionType,
    sort_categories,
)
from bookkeeper.models.report import (
    CategoryBreakdown,
    CategoryTotal,
    DailyPoint,
    FundsFlow,
    ItemTotal,
    QueryResult,
    StructuredQuery,
    SummaryStats,
)
from bookkeeper.models.validation import ValidationIssue, ValidationResult
from bookkeeper.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "SALE_CATEGORY",
    "LedgerSnapshot",
    "PaymentMethod",
    "Transaction",
    "TransactionLineItem",
    "TransactionType",
    "sort_categories",
    # Report models
    "CategoryBreakdown",
    "CategoryTotal",
    "DailyPoint",
    "FundsFlow",
    "ItemTotal",
    "QueryResult",
    "StructuredQuery",
    "SummaryStats",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
