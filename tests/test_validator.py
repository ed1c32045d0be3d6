"""Tests for transaction validation."""

import pytest

from bookkeeper.models.transaction import TransactionLineItem
from bookkeeper.validation import (
    CategoryNameError,
    DuplicateCategoryError,
    TransactionValidationError,
    TransactionValidator,
)


CATEGORIES = ["Groceries", "Rent", "Sale"]


class TestTransactionValidator:
    """Tests for TransactionValidator."""

    def setup_method(self):
        self.validator = TransactionValidator()

    def test_valid_expense_passes(self, tx):
        """Test a well-formed expense has no issues."""
        result = self.validator.validate(tx("expense", category="Rent"), CATEGORIES)
        assert result.is_valid
        assert result.issues == []

    def test_requires_items(self, tx):
        """Test a transaction without items is rejected."""
        result = self.validator.validate(tx("sale", items=[]), CATEGORIES)
        assert result.has_errors
        assert result.issues[0].field == "items"

    def test_reports_every_bad_item(self, tx):
        """Test all item problems are collected at once."""
        transaction = tx("sale")
        transaction.items = [
            TransactionLineItem(description="", quantity=1, unit_price=10),
            TransactionLineItem(description="Bad", quantity=0, unit_price=None),
        ]
        result = self.validator.validate(transaction, CATEGORIES)
        fields = [issue.field for issue in result.issues]
        assert fields == [
            "items[0].description",
            "items[1].quantity",
            "items[1].unit_price",
        ]

    def test_negative_price_rejected(self, tx):
        """Test prices must be positive."""
        result = self.validator.validate(tx("sale", items=[(1, -5)]), CATEGORIES)
        assert result.error_count == 1

    def test_unknown_expense_category(self, tx):
        """Test an expense must reference an existing category."""
        result = self.validator.validate(tx("expense", category="Travel"), CATEGORIES)
        assert [issue.issue_type for issue in result.issues] == ["unknown_category"]

    def test_category_check_skipped_without_categories(self, tx):
        """Test None categories skips the reference check."""
        assert self.validator.validate(tx("expense", category="Travel")).is_valid

    def test_sales_skip_category_check(self, tx):
        """Test sales are not checked against the category list."""
        assert self.validator.validate(tx("sale", category="Anything"), []).is_valid

    def test_ensure_valid_raises(self, tx):
        """Test ensure_valid raises with the issues attached."""
        with pytest.raises(TransactionValidationError) as exc_info:
            self.validator.ensure_valid(tx("sale", items=[]), CATEGORIES)
        assert len(exc_info.value.issues) == 1
        assert "at least one line item" in str(exc_info.value)


class TestCategoryNames:
    """Tests for validate_category_name."""

    def setup_method(self):
        self.validator = TransactionValidator()

    def test_strips_name(self):
        """Test surrounding whitespace is removed."""
        assert self.validator.validate_category_name("  Misc ", CATEGORIES) == "Misc"

    def test_blank_name(self):
        """Test blank names are rejected."""
        with pytest.raises(CategoryNameError):
            self.validator.validate_category_name("   ", CATEGORIES)

    def test_duplicate_ignores_case(self):
        """Test 'rent' clashes with 'Rent'."""
        with pytest.raises(DuplicateCategoryError):
            self.validator.validate_category_name("rent", CATEGORIES)
