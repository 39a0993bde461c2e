"""
Data Models Package

This package contains all Pydantic models used in ZenFinance.
All data flowing through the system must conform to these schemas.
"""

from zenfinance.models.finance import (
    APP_COLORS,
    DEFAULT_CATEGORIES,
    UNKNOWN_ACCOUNT_LABEL,
    Account,
    Category,
    CategoryTotal,
    FinancialSummary,
    Identity,
    Transaction,
    TransactionDigest,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    category_icon,
    to_instant,
    utc_now,
)
from zenfinance.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Finance models
    "APP_COLORS",
    "DEFAULT_CATEGORIES",
    "UNKNOWN_ACCOUNT_LABEL",
    "Account",
    "Category",
    "CategoryTotal",
    "FinancialSummary",
    "Identity",
    "Transaction",
    "TransactionDigest",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "category_icon",
    "to_instant",
    "utc_now",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
