"""
Report and Query Models

Result shapes for the report views and for structured queries.
All of these are derived values: they are recomputed from the current
ledger snapshot and never persisted.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


# =============================================================================
# REPORT VIEW RESULTS
# =============================================================================

class SummaryStats(BaseModel):
    """Income/expense totals over a set of transactions."""

    total_sales: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    transaction_count: int = Field(default=0, ge=0)


class DailyPoint(BaseModel):
    """One bar of the daily sales/expenses chart."""

    day: date
    label: str = Field(..., description="Short label, e.g. 'Jan 5'")
    sales: float = 0.0
    expenses: float = 0.0


class CategoryTotal(BaseModel):
    category: str
    total: float


class CategoryBreakdown(BaseModel):
    """
    Expense totals per category, largest first.

    item_search_total is the running total of the line items matching the
    item search term, computed independently of the per-category rows.
    It is None when no search term was given.
    """

    categories: list[CategoryTotal] = Field(default_factory=list)
    total: float = 0.0
    item_search_term: Optional[str] = None
    item_search_total: Optional[float] = None

    def as_dict(self) -> dict[str, float]:
        return {row.category: row.total for row in self.categories}


class ItemTotal(BaseModel):
    """A line-item description and what was spent on it."""

    name: str
    total: float


class FundsFlow(BaseModel):
    """
    Cash and bank movement over a period.

    Net figures add sales and subtract expenses; the four-way breakdown
    is not netted.
    """

    net_cash_flow: float = 0.0
    net_bank_flow: float = 0.0
    cash_in: float = 0.0
    cash_out: float = 0.0
    bank_in: float = 0.0
    bank_out: float = 0.0


# =============================================================================
# QUERY MODELS
# =============================================================================

class StructuredQuery(BaseModel):
    """
    A structured question about the ledger.

    Dates are kept as the raw strings we received so the executor can
    report a precise error for a malformed one.
    """

    query_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    query_type: str = Field(
        ...,
        pattern="^(summary|top_categories)$",
        description="Type of query to execute"
    )
    start_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    end_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    limit: int = Field(default=5, ge=1, le=100)


class QueryResult(BaseModel):
    """Result of executing a structured query."""

    query_id: UUID
    executed_at: datetime = Field(default_factory=datetime.utcnow)

    success: bool
    error_message: Optional[str] = None

    data_found: bool = False
    result_count: int = Field(default=0, ge=0)
    results: list[dict[str, Any]] = Field(default_factory=list)
    aggregation_result: Optional[dict[str, Any]] = None

    query_description: str = ""
