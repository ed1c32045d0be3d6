"""Shared fixtures for Bookkeeper tests."""

from datetime import datetime

import pytest

from bookkeeper.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionLineItem,
    TransactionType,
)


def make_transaction(
    kind="expense",
    items=((1, 100.0),),
    category=None,
    payment_method="Cash",
    when=datetime(2024, 1, 5, 10, 30),
    description="",
    item_names=None,
    **kwargs,
) -> Transaction:
    """
    Build a transaction from (quantity, unit_price) pairs.

    item_names, when given, supplies the line item descriptions in order.
    """
    names = list(item_names or [])
    line_items = [
        TransactionLineItem(
            description=names[i] if i < len(names) else f"Item {i + 1}",
            quantity=qty,
            unit_price=price,
        )
        for i, (qty, price) in enumerate(items)
    ]
    kind = TransactionType(kind)
    if category is None:
        category = "Sale" if kind == TransactionType.SALE else "Groceries"
    return Transaction(
        type=kind,
        category=category,
        payment_method=PaymentMethod(payment_method),
        date=when,
        description=description,
        items=line_items,
        **kwargs,
    )


@pytest.fixture
def tx():
    """Factory fixture for transactions."""
    return make_transaction


@pytest.fixture
def sale_and_rent(tx):
    """One 1000 sale and one 300 Rent expense on 2024-01-05."""
    return [
        tx("sale", items=[(1, 1000)]),
        tx("expense", items=[(1, 300)], category="Rent"),
    ]
