"""
Core Data Models for Bookkeeper

These models define the schemas for all ledger data flowing through the
system. They are designed to:
1. Enforce types at the boundary (storage, sync, CSV import)
2. Be serializable for storage and the sheet-sync endpoint
3. Keep the transaction total derived, never stored

DESIGN DECISION: The models are structurally strict but not business-strict.
A line item with a zero price still loads from storage; the rules that a
user must satisfy before a write (positive quantity and price, non-empty
description) live in the validator. That keeps old or hand-edited rows
readable while new writes stay clean.
"""

import math
from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookkeeper.calculator import calculate_total, line_total


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Kind of ledger entry."""
    SALE = "sale"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """
    How money moved.

    Cash affects the cash drawer, Online affects the bank account.
    """
    CASH = "Cash"
    ONLINE = "Online"


# Sales are not categorized further; they all carry this category.
SALE_CATEGORY = "Sale"

DEFAULT_CATEGORIES = [
    "Groceries",
    "Utilities",
    "Rent",
    "Transportation",
    "Entertainment",
    "Office Supplies",
    "Salary",
    SALE_CATEGORY,
]


def _new_id() -> str:
    return str(uuid4())


def coerce_timestamp(value):
    """
    Normalize the timestamp shapes we receive from storage backends.

    Accepts datetimes, plain dates (midnight), ISO-8601 strings with a
    trailing 'Z' and date-only strings. Anything else is handed back to
    pydantic unchanged so it can produce the validation error.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return value
    return value


# =============================================================================
# LEDGER MODELS
# =============================================================================

class TransactionLineItem(BaseModel):
    """
    A single priced entry within a transaction.

    Line total = quantity x unit price.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: str = Field(
        default_factory=_new_id,
        description="Identifier, unique within the parent transaction"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What was sold or bought"
    )
    quantity: Optional[float] = Field(
        default=1.0,
        description="Number of units"
    )
    unit_price: Optional[float] = Field(
        default=None,
        alias="unitPrice",
        description="Price per unit"
    )

    @property
    def line_total(self) -> float:
        """quantity x unit price, missing or NaN parts counted as zero."""
        return line_total(self)


class Transaction(BaseModel):
    """
    A sale or expense event composed of one or more line items.

    The total is always derived from the items; see total_amount.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    # Identity
    id: str = Field(
        default_factory=_new_id,
        description="Globally unique transaction ID"
    )
    type: TransactionType = Field(
        ...,
        description="sale or expense"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Overall description of the transaction"
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened"
    )
    category: str = Field(
        default=SALE_CATEGORY,
        description="Expense category; the sale sentinel for sales"
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CASH,
        alias="paymentMethod",
        description="Cash or Online (bank)"
    )
    items: list[TransactionLineItem] = Field(
        default_factory=list,
        description="Line items in insertion order"
    )

    # Ownership and bookkeeping
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("date", "created_at", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        """Accept 'Z'-suffixed and date-only ISO strings."""
        return coerce_timestamp(v)

    @property
    def total_amount(self) -> float:
        """Sum of all line totals, recomputed on every access."""
        return calculate_total(self.items)

    @property
    def is_sale(self) -> bool:
        return self.type == TransactionType.SALE

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    def to_wire(self) -> dict:
        """JSON-ready dict using the backend's camelCase column names."""
        return self.model_dump(mode="json", by_alias=True)


class LedgerSnapshot(BaseModel):
    """
    Everything one user owns, as loaded from storage.

    This is also the payload shape of the spreadsheet sync endpoint.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return {
            "transactions": [t.to_wire() for t in self.transactions],
            "categories": list(self.categories),
        }


def sort_categories(categories) -> list[str]:
    """Ascending by name, case-insensitive, duplicates dropped."""
    seen = {}
    for name in categories:
        if name and name not in seen:
            seen[name] = True
    return sorted(seen, key=lambda name: (name.lower(), name))


def is_number(value) -> bool:
    """True for a real, non-NaN number."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return not math.isnan(float(value))
    except (TypeError, ValueError):
        return False
