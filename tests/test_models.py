"""
Tests for ZenFinance

Test strategy:
1. Unit tests for individual components (models, validators, aggregation)
2. Integration tests for flows (in-memory store, mocked external services)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from zenfinance.models.finance import (
    APP_COLORS,
    DEFAULT_CATEGORIES,
    Account,
    Category,
    Identity,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    category_icon,
    to_instant,
)
from zenfinance.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


def make_transaction(**overrides) -> Transaction:
    fields = dict(
        id="tx-1",
        account_id="acc-1",
        owner_id="user-1",
        amount=Decimal("150"),
        kind=TransactionType.EXPENSE,
        category="Food",
        occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestFinanceModels:
    """Tests for account and transaction Pydantic models."""

    def test_account_creation(self):
        """Test Account model creation with defaults."""
        account = Account(
            id="acc-1",
            owner_id="user-1",
            name="Salary account",
            institution="Cathay United Bank",
        )
        assert account.balance == Decimal("0")
        assert account.color == APP_COLORS[0]
        assert account.created_at.tzinfo is not None

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from the account name."""
        account = Account(id="acc-1", owner_id="u", name="  Savings  ", institution="Bank")
        assert account.name == "Savings"

    def test_account_allows_negative_balance(self):
        account = Account(
            id="acc-1", owner_id="u", name="Card", institution="Bank",
            balance=Decimal("-250.50"),
        )
        assert account.balance == Decimal("-250.50")

    def test_account_rejects_bad_color(self):
        with pytest.raises(ValueError):
            Account(id="acc-1", owner_id="u", name="Card", institution="Bank", color="blue")

    def test_account_parses_stored_strings(self):
        """Documents from the Sheets store are all text."""
        account = Account.model_validate({
            "id": "acc-1",
            "owner_id": "u",
            "name": "Card",
            "institution": "Bank",
            "balance": "1000.5",
            "color": "#3b82f6",
            "created_at": "2024-01-01T00:00:00+00:00",
        })
        assert account.balance == Decimal("1000.5")

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            make_transaction(amount=Decimal("-100"))

    def test_transaction_empty_note_is_none(self):
        assert make_transaction(note="").note is None

    def test_signed_amount(self):
        assert make_transaction(kind=TransactionType.EXPENSE).signed_amount == Decimal("-150")
        assert make_transaction(kind=TransactionType.INCOME).signed_amount == Decimal("150")

    def test_transaction_type_values(self):
        assert TransactionType("INCOME") == TransactionType.INCOME
        assert TransactionType.EXPENSE.value == "EXPENSE"

    def test_identity_is_frozen(self):
        identity = Identity(user_id="u", email="a@b.co")
        with pytest.raises(ValueError):
            identity.user_id = "other"


class TestInstants:
    """Tests for date-to-instant conversion."""

    def test_date_becomes_midnight_utc(self):
        instant = to_instant(date(2024, 3, 5))
        assert instant == datetime(2024, 3, 5, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        instant = to_instant(datetime(2024, 3, 5, 12, 30))
        assert instant.tzinfo == timezone.utc
        assert instant.hour == 12

    def test_none_is_now(self):
        before = datetime.now(timezone.utc)
        assert to_instant(None) >= before


class TestCategories:
    """Tests for the fixed category list."""

    def test_expense_categories(self):
        names = [c.name for c in categories_for(TransactionType.EXPENSE)]
        assert names == ["Food", "Transport", "Entertainment", "Shopping", "Medical", "Housing"]

    def test_income_categories(self):
        names = [c.name for c in categories_for(TransactionType.INCOME)]
        assert names == ["Salary", "Bonus", "Investment"]

    def test_category_icon_unknown(self):
        assert category_icon("Food") == DEFAULT_CATEGORIES[0].icon
        assert category_icon("Something else") == "🏷️"

    def test_category_is_frozen(self):
        category = Category(name="Food", kind=TransactionType.EXPENSE, icon="🍔")
        with pytest.raises(ValueError):
            category.name = "Drinks"


class TestActivityModels:
    """Tests for activity event models."""

    def test_activity_event_creation(self):
        """Test ActivityEvent model creation."""
        event = ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_REFUSED,
            description="Refused",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_refused"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_builder_transaction_recorded(self):
        event = ActivityEventBuilder.transaction_recorded(
            transaction_id="tx-1",
            account_id="acc-1",
            owner_id="user-1",
            delta=Decimal("-150"),
        )
        assert event.event_type == ActivityEventType.TRANSACTION_RECORDED
        assert event.entity_id == "tx-1"
        assert event.owner_id == "user-1"

    def test_builder_balance_adjustment_failed_is_error(self):
        event = ActivityEventBuilder.balance_adjustment_failed(
            transaction_id="tx-1",
            account_id="acc-1",
            error_message="quota exceeded",
        )
        assert event.severity == ActivitySeverity.ERROR
        assert event.error_message == "quota exceeded"


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ),
        ])
        assert result.has_errors
        assert not result.is_valid
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(issues=[
            ValidationIssue(
                field="occurred_on",
                issue_type="future_date",
                message="Date is in the future",
                severity="warning",
            ),
        ])
        assert result.is_valid
        assert result.warnings == ["Date is in the future"]
