"""Tests for the amount calculator."""

from types import SimpleNamespace

import pytest

from bookkeeper.calculator import calculate_total, coerce_amount, line_total
from bookkeeper.models.transaction import TransactionLineItem


def _item(quantity, unit_price):
    return SimpleNamespace(quantity=quantity, unit_price=unit_price)


class TestCalculateTotal:
    """Tests for calculate_total."""

    def test_sums_quantity_times_price(self):
        """Test [2 x 50, 1 x 100] totals 200."""
        items = [
            TransactionLineItem(description="A", quantity=2, unit_price=50),
            TransactionLineItem(description="B", quantity=1, unit_price=100),
        ]
        assert calculate_total(items) == 200

    def test_empty_items_total_zero(self):
        """Test an empty list totals 0."""
        assert calculate_total([]) == 0
        assert calculate_total(None) == 0

    def test_missing_values_count_as_zero(self):
        """Test None and NaN parts don't poison the sum."""
        items = [
            _item(None, 10),
            _item(3, float("nan")),
            _item(2, 5),
        ]
        assert calculate_total(items) == 10

    def test_total_is_order_independent(self):
        """Test reordering items doesn't change the total."""
        items = [_item(1, 0.1), _item(2, 0.2), _item(3, 0.3)]
        assert calculate_total(items) == pytest.approx(calculate_total(list(reversed(items))))

    def test_fractional_amounts(self):
        """Test fractional quantities and prices."""
        assert calculate_total([_item(1.5, 2.5)]) == pytest.approx(3.75)


class TestCoerceAmount:
    """Tests for coerce_amount and line_total."""

    @pytest.mark.parametrize("value,expected", [
        (None, 0.0),
        (True, 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        ("2.5", 2.5),
        (4, 4.0),
    ])
    def test_coerce_amount(self, value, expected):
        """Test non-numeric input coerces to zero."""
        assert coerce_amount(value) == expected

    def test_line_total_without_attributes(self):
        """Test objects missing quantity or price total zero."""
        assert line_total(object()) == 0.0
