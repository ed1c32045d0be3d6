"""
Aggregator

Groups transactions by an injected key function and sums their totals.

The aggregator itself knows nothing about reports: each report supplies
the key function (by date, by category, by payment method and type).
Summation is order-independent; the returned dict keeps keys in the
order they were first seen, which is also the tie-break used by
rank_top.
"""

from typing import Callable, Hashable, Iterable, Optional, TypeVar

from bookkeeper.calculator import calculate_total
from bookkeeper.models.transaction import PaymentMethod, Transaction, TransactionType
from bookkeeper.reports.filters import local_date


K = TypeVar("K", bound=Hashable)

CASH_IN = "cash_in"
CASH_OUT = "cash_out"
BANK_IN = "bank_in"
BANK_OUT = "bank_out"


def aggregate(
    transactions: Iterable[Transaction],
    key_fn: Callable[[Transaction], Optional[K]],
) -> dict[K, float]:
    """
    Sum transaction totals per key.

    Transactions for which key_fn returns None are left out.
    """
    totals: dict[K, float] = {}
    for transaction in transactions:
        key = key_fn(transaction)
        if key is None:
            continue
        totals[key] = totals.get(key, 0.0) + calculate_total(transaction.items)
    return totals


def rank_top(
    totals: dict[K, float],
    limit: Optional[int] = None,
) -> list[tuple[K, float]]:
    """
    Entries sorted by total, largest first.

    Equal totals keep first-seen order (sorted() is stable and the dict
    preserves insertion order).
    """
    ranked = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


# =============================================================================
# KEY FUNCTIONS
# =============================================================================

def by_category(transaction: Transaction) -> str:
    return transaction.category


def by_type(transaction: Transaction) -> TransactionType:
    return transaction.type


def by_payment_method(transaction: Transaction) -> PaymentMethod:
    return transaction.payment_method


def by_local_date(transaction: Transaction):
    return local_date(transaction.date)


def by_flow_bucket(transaction: Transaction) -> str:
    """cash_in / cash_out / bank_in / bank_out."""
    if transaction.payment_method == PaymentMethod.CASH:
        return CASH_IN if transaction.is_sale else CASH_OUT
    return BANK_IN if transaction.is_sale else BANK_OUT
