"""
Transaction Filter

Predicate-based filtering of a transaction list by type, category,
payment method, date range and free-text search.

DESIGN DECISION: Filtering is lenient. The criteria come straight from
interactive filter controls, so a half-typed or malformed date simply
means "no bound" instead of an error, and a start date after the end
date yields an empty list. Strict date handling lives in the query
executor, which answers programmatic questions.

Dates are compared at day granularity in local time: the start bound is
the first instant of its day, the end bound the last instant of its day.
"""

from datetime import date, datetime, time
from typing import Iterable, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from bookkeeper.models.transaction import PaymentMethod, Transaction, TransactionType


logger = structlog.get_logger(__name__)

DateBound = Union[date, datetime, str, None]

# UI sentinel for "any value" on select-style filters
ANY = "all"

END_OF_DAY = time(23, 59, 59, 999000)


def parse_date_bound(value: DateBound) -> Optional[date]:
    """
    Parse a filter date leniently.

    Returns the calendar date, or None when the value is empty or cannot
    be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return local_date(value)
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug("filter_date_ignored", value=text)
        return None


def local_datetime(value: datetime) -> datetime:
    """Naive local wall-clock time for a timestamp."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def local_date(value: datetime) -> date:
    """The local calendar day a timestamp falls on."""
    return local_datetime(value).date()


class FilterCriteria(BaseModel):
    """
    Filter options. Every field defaults to "no restriction".

    "all" is accepted for type, category and payment_method, matching the
    select controls of the transaction log.
    """
    model_config = ConfigDict(frozen=True)

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: Optional[str] = None

    @field_validator("type", "category", "payment_method", mode="before")
    @classmethod
    def any_means_none(cls, v):
        if isinstance(v, str) and (not v.strip() or v.strip().lower() == ANY):
            return None
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def lenient_date(cls, v):
        return parse_date_bound(v)

    @property
    def is_empty(self) -> bool:
        return (
            self.type is None
            and self.category is None
            and self.payment_method is None
            and self.start_date is None
            and self.end_date is None
            and not (self.search_term or "").strip()
        )

    @property
    def is_degenerate(self) -> bool:
        """A start after the end can never match anything."""
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        )


def in_date_range(
    timestamp: datetime,
    start_date: Optional[date],
    end_date: Optional[date],
) -> bool:
    """Inclusive day-granularity check in local time."""
    moment = local_datetime(timestamp)
    if start_date is not None and moment < datetime.combine(start_date, time.min):
        return False
    if end_date is not None and moment > datetime.combine(end_date, END_OF_DAY):
        return False
    return True


def matches_search(transaction: Transaction, term: Optional[str]) -> bool:
    """Case-insensitive substring match on the description or any item."""
    if term is None or not term.strip():
        return True
    needle = term.lower()
    if needle in transaction.description.lower():
        return True
    return any(needle in item.description.lower() for item in transaction.items)


def matches(transaction: Transaction, criteria: FilterCriteria) -> bool:
    if criteria.type is not None and transaction.type != criteria.type:
        return False
    if criteria.category is not None and transaction.category != criteria.category:
        return False
    if (
        criteria.payment_method is not None
        and transaction.payment_method != criteria.payment_method
    ):
        return False
    if not in_date_range(transaction.date, criteria.start_date, criteria.end_date):
        return False
    return matches_search(transaction, criteria.search_term)


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: Optional[FilterCriteria] = None,
) -> list[Transaction]:
    """
    Return the transactions matching the criteria, in input order.

    No criteria (or empty criteria) returns a copy of the input.
    """
    if criteria is None or criteria.is_empty:
        return list(transactions)
    if criteria.is_degenerate:
        return []
    return [t for t in transactions if matches(t, criteria)]
