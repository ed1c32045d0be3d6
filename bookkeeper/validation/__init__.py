"""Validation package."""

from bookkeeper.validation.validator import (
    CategoryNameError,
    DuplicateCategoryError,
    TransactionValidationError,
    TransactionValidator,
)

__all__ = [
    "CategoryNameError",
    "DuplicateCategoryError",
    "TransactionValidationError",
    "TransactionValidator",
]
