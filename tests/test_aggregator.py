"""Tests for the aggregator and its key functions."""

from datetime import date, datetime

import pytest

from bookkeeper.calculator import calculate_total
from bookkeeper.models.transaction import TransactionType
from bookkeeper.reports.aggregator import (
    BANK_IN,
    BANK_OUT,
    CASH_IN,
    CASH_OUT,
    aggregate,
    by_category,
    by_flow_bucket,
    by_local_date,
    by_type,
    rank_top,
)


class TestAggregate:
    """Tests for aggregate."""

    def test_sums_per_key(self, tx):
        """Test totals are summed per category."""
        transactions = [
            tx("expense", items=[(1, 100)], category="Rent"),
            tx("expense", items=[(2, 25)], category="Groceries"),
            tx("expense", items=[(1, 200)], category="Rent"),
        ]
        assert aggregate(transactions, by_category) == {"Rent": 300, "Groceries": 50}

    def test_keys_keep_first_seen_order(self, tx):
        """Test the result dict preserves first appearance."""
        transactions = [
            tx("expense", category="Utilities"),
            tx("expense", category="Rent"),
            tx("expense", category="Utilities"),
        ]
        assert list(aggregate(transactions, by_category)) == ["Utilities", "Rent"]

    def test_none_keys_are_skipped(self, tx):
        """Test a key function can exclude transactions."""
        transactions = [tx("sale", items=[(1, 10)]), tx("expense", items=[(1, 5)])]
        totals = aggregate(
            transactions,
            lambda t: "sales" if t.type == TransactionType.SALE else None,
        )
        assert totals == {"sales": 10}

    def test_category_totals_match_calculated_totals(self, tx):
        """Test grouping neither loses nor double counts amounts."""
        transactions = [
            tx("expense", items=[(2, 12.5), (1, 3)], category="Groceries"),
            tx("expense", items=[(1, 300)], category="Rent"),
            tx("expense", items=[(4, 0.25)], category="Office Supplies"),
        ]
        totals = aggregate(transactions, by_category)
        assert sum(totals.values()) == pytest.approx(
            sum(calculate_total(t.items) for t in transactions)
        )

    def test_by_type_and_date(self, tx):
        """Test the type and local-date key functions."""
        sale = tx("sale", items=[(1, 10)], when=datetime(2024, 3, 1, 9, 0))
        expense = tx("expense", items=[(1, 4)], when=datetime(2024, 3, 2, 18, 0))
        assert aggregate([sale, expense], by_type) == {
            TransactionType.SALE: 10,
            TransactionType.EXPENSE: 4,
        }
        assert aggregate([sale, expense], by_local_date) == {
            date(2024, 3, 1): 10,
            date(2024, 3, 2): 4,
        }

    def test_flow_buckets(self, tx):
        """Test payment method and type map to the four flow buckets."""
        assert by_flow_bucket(tx("sale", payment_method="Cash")) == CASH_IN
        assert by_flow_bucket(tx("expense", payment_method="Cash")) == CASH_OUT
        assert by_flow_bucket(tx("sale", payment_method="Online")) == BANK_IN
        assert by_flow_bucket(tx("expense", payment_method="Online")) == BANK_OUT


class TestRankTop:
    """Tests for rank_top."""

    def test_descending_with_limit(self):
        """Test entries are sorted largest first and truncated."""
        totals = {"a": 1.0, "b": 3.0, "c": 2.0}
        assert rank_top(totals, 2) == [("b", 3.0), ("c", 2.0)]

    def test_ties_keep_first_seen_order(self):
        """Test equal totals stay in insertion order."""
        totals = {"first": 5.0, "second": 5.0, "big": 9.0, "third": 5.0}
        assert [key for key, _ in rank_top(totals)] == ["big", "first", "second", "third"]

    def test_no_limit_returns_everything(self):
        """Test limit=None keeps every entry."""
        assert len(rank_top({"a": 1.0, "b": 2.0})) == 2
