"""
Amount Calculator

Reduces a transaction's line items to a monetary total.

DESIGN DECISION: A transaction's total is never stored. Every report and
every screen recomputes it from the line items through this module, so a
total can never drift from the items it summarises.

Rounding is a presentation concern and is deliberately absent here.
"""

import math
from typing import Any, Iterable, Optional


def coerce_amount(value: Any) -> float:
    """
    Coerce a quantity or unit price to a float.

    Missing, NaN and non-numeric values count as zero instead of
    propagating NaN through every sum built on top of them.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def line_total(item: Any) -> float:
    """quantity x unit price for a single line item."""
    return coerce_amount(getattr(item, "quantity", None)) * coerce_amount(
        getattr(item, "unit_price", None)
    )


def calculate_total(items: Optional[Iterable[Any]]) -> float:
    """
    Sum of quantity x unit price over all line items.

    Returns 0 for an empty (or missing) sequence.
    """
    if not items:
        return 0.0
    return sum((line_total(item) for item in items), 0.0)
