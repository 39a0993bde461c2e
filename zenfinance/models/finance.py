"""
Core Data Models for ZenFinance

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Round-trip through any record store as plain documents

DESIGN DECISION: Amounts are Decimal everywhere. A transaction amount is
always stored non-negative; its direction is carried by the transaction
kind, never by the sign of the amount.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS AND REFERENCE DATA
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(BaseModel):
    """
    Static reference category.

    Not user-editable and not persisted per user. Transactions store the
    category name as a free-form label, so anything outside this list is
    still accepted.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    kind: TransactionType
    icon: str


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(name="Food", kind=TransactionType.EXPENSE, icon="🍔"),
    Category(name="Transport", kind=TransactionType.EXPENSE, icon="🚗"),
    Category(name="Entertainment", kind=TransactionType.EXPENSE, icon="🎮"),
    Category(name="Shopping", kind=TransactionType.EXPENSE, icon="🛍️"),
    Category(name="Medical", kind=TransactionType.EXPENSE, icon="🏥"),
    Category(name="Housing", kind=TransactionType.EXPENSE, icon="🏠"),
    Category(name="Salary", kind=TransactionType.INCOME, icon="💰"),
    Category(name="Bonus", kind=TransactionType.INCOME, icon="🎁"),
    Category(name="Investment", kind=TransactionType.INCOME, icon="📈"),
)

APP_COLORS: tuple[str, ...] = (
    "#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#64748b",
)

UNKNOWN_ACCOUNT_LABEL = "Unknown account"

MAX_LABEL_LENGTH = 100
MAX_NOTE_LENGTH = 500


def categories_for(kind: TransactionType) -> list[Category]:
    """Reference categories for one transaction kind, in display order."""
    return [category for category in DEFAULT_CATEGORIES if category.kind == kind]


def category_icon(name: str) -> str:
    """Icon for a category label; free-form labels get a neutral glyph."""
    for category in DEFAULT_CATEGORIES:
        if category.name == name:
            return category.icon
    return "🏷️"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_instant(value: date | datetime | None) -> datetime:
    """
    Normalize a date-granularity input to a UTC instant.

    Plain dates become midnight UTC; naive datetimes are taken as UTC.
    """
    if value is None:
        value = utc_now()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


# =============================================================================
# ENTITIES
# =============================================================================

class Account(BaseModel):
    """
    A tracked bank account with a running balance.

    CRITICAL: After creation the balance only moves through the ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owning user identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_LABEL_LENGTH,
        description="Display name, e.g. 'Salary account'"
    )
    institution: str = Field(
        ...,
        min_length=1,
        max_length=MAX_LABEL_LENGTH,
        description="Bank or institution name"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance (signed, any magnitude)"
    )
    color: str = Field(
        default=APP_COLORS[0],
        pattern="^#[0-9a-fA-F]{6}$",
        description="Display color"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the account was created"
    )


class Transaction(BaseModel):
    """
    A single recorded money movement.

    The account reference is weak: the account may be deleted later and
    the transaction keeps pointing at a missing identifier.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    account_id: str = Field(
        ...,
        description="Identifier of the account this transaction was applied to"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owning user identifier"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, always non-negative"
    )
    kind: TransactionType
    category: str = Field(
        ...,
        max_length=MAX_LABEL_LENGTH,
        description="Category label (free-form)"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=MAX_NOTE_LENGTH,
        description="Optional free-text note"
    )
    occurred_at: datetime = Field(
        ...,
        description="When the money moved (date granularity)"
    )

    @field_validator('note', mode='before')
    @classmethod
    def empty_note_is_none(cls, v):
        """Stores without null support hand back '' for a missing note."""
        if v == "":
            return None
        return v

    @property
    def signed_amount(self) -> Decimal:
        """Amount as applied to the account balance."""
        if self.kind == TransactionType.INCOME:
            return self.amount
        return -self.amount


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class CategoryTotal(BaseModel):
    """One slice of the expense breakdown chart."""
    model_config = ConfigDict(frozen=True)

    category: str
    total: Decimal


class TransactionDigest(BaseModel):
    """The parts of a transaction the advisor gets to see."""

    amount: Decimal
    kind: TransactionType
    category: str
    note: Optional[str] = None


class FinancialSummary(BaseModel):
    """Bounded summary of a user's finances, used to build the advice prompt."""

    total_balance: Decimal
    account_count: int = Field(ge=0)
    recent_transactions: list[TransactionDigest] = Field(default_factory=list)


# =============================================================================
# IDENTITY
# =============================================================================

class Identity(BaseModel):
    """
    Signed-in identity supplied by the authentication boundary.

    The core treats user_id as an opaque scoping key.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a form."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one form submission."""

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
