"""
Transaction Validation

DESIGN DECISION: Validation happens before any write is attempted and
never silently fixes anything. Every problem is reported as a
ValidationIssue so the caller can show all of them at once instead of
one per attempt.

Checks:
- A transaction has at least one line item
- Every item has a description
- Every item has a positive quantity and a positive unit price
- An expense references an existing category

Reads are not validated: data already in storage loads as-is and the
report functions coerce malformed amounts to zero.
"""

from typing import Iterable, Optional

from bookkeeper.models.transaction import Transaction, is_number
from bookkeeper.models.validation import ValidationIssue, ValidationResult


class TransactionValidationError(Exception):
    """A transaction failed validation and was not written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        self.issues = result.issues
        messages = "; ".join(issue.message for issue in result.issues)
        super().__init__(f"Transaction {result.transaction_id} is invalid: {messages}")


class CategoryNameError(ValueError):
    """A category name is blank."""
    pass


class DuplicateCategoryError(ValueError):
    """A category with the same name (ignoring case) already exists."""
    pass


class TransactionValidator:
    """Validates transactions before they are written to storage."""

    def validate(
        self,
        transaction: Transaction,
        categories: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """
        Collect every issue with a transaction.

        Args:
            transaction: The transaction about to be written
            categories: Known category names. If None, the category
                        reference check is skipped.
        """
        issues: list[ValidationIssue] = []

        if not transaction.items:
            issues.append(ValidationIssue(
                field="items",
                issue_type="missing",
                message="A transaction needs at least one line item",
                suggested_fix="Add an item with a description, quantity and price",
            ))

        for index, item in enumerate(transaction.items):
            prefix = f"items[{index}]"
            if not item.description.strip():
                issues.append(ValidationIssue(
                    field=f"{prefix}.description",
                    issue_type="missing",
                    message=f"Item {index + 1} has no description",
                ))
            if not is_number(item.quantity) or item.quantity <= 0:
                issues.append(ValidationIssue(
                    field=f"{prefix}.quantity",
                    issue_type="invalid_value",
                    message=f"Item {index + 1} quantity must be greater than zero",
                ))
            if not is_number(item.unit_price) or item.unit_price <= 0:
                issues.append(ValidationIssue(
                    field=f"{prefix}.unit_price",
                    issue_type="invalid_value",
                    message=f"Item {index + 1} price must be greater than zero",
                ))

        if transaction.is_expense and categories is not None:
            if transaction.category not in set(categories):
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="unknown_category",
                    message=f"Category '{transaction.category}' does not exist",
                    suggested_fix="Pick an existing category or create it first",
                ))

        return ValidationResult(transaction_id=transaction.id, issues=issues)

    def ensure_valid(
        self,
        transaction: Transaction,
        categories: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """Validate and raise TransactionValidationError on any error."""
        result = self.validate(transaction, categories)
        if result.has_errors:
            raise TransactionValidationError(result)
        return result

    def validate_category_name(self, name: str, existing: Iterable[str]) -> str:
        """
        Check a new category name and return it stripped.

        Raises:
            CategoryNameError: If the name is blank
            DuplicateCategoryError: If it matches an existing name, ignoring case
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise CategoryNameError("Category name cannot be empty")
        if any(cleaned.lower() == other.lower() for other in existing):
            raise DuplicateCategoryError(f"Category '{cleaned}' already exists")
        return cleaned
