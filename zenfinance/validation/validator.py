"""
Form Validation

Checks the account and transaction forms before any write is attempted.
Errors block the submission and are shown inline; warnings are shown but
do not block.

IMPORTANT: Validation NEVER silently fixes input. It reports issues for
the user to correct. The ledger repeats the checks that protect the
balance invariant, so skipping the form validator cannot corrupt data.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from zenfinance.config import AppSettings, get_settings
from zenfinance.models.finance import (
    MAX_LABEL_LENGTH,
    MAX_NOTE_LENGTH,
    ValidationIssue,
    ValidationResult,
)


def parse_amount(value) -> Optional[Decimal]:
    """Parse a form amount; None if it is not a finite number."""
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _check_length(issues: list, field: str, label: str, value: Optional[str], limit: int) -> None:
    """Flag free text longer than the stored record allows."""
    if value is None or len(value.strip()) <= limit:
        return
    issues.append(ValidationIssue(
        field=field,
        issue_type="too_long",
        message=f"{label} must be at most {limit} characters",
        severity="error",
        suggested_fix="Please shorten it",
    ))


class FormValidator:
    """Validates the add-account and add-transaction forms."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate_account(
        self,
        name: Optional[str],
        institution: Optional[str],
        balance,
    ) -> ValidationResult:
        """
        Validate the add-account form.

        The initial balance may be negative (e.g. an overdrawn account).
        """
        issues = []

        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Account name is required",
                severity="error",
            ))
        _check_length(issues, "name", "Account name", name, MAX_LABEL_LENGTH)

        if not institution or not institution.strip():
            issues.append(ValidationIssue(
                field="institution",
                issue_type="missing",
                message="Bank name is required",
                severity="error",
            ))
        _check_length(issues, "institution", "Bank name", institution, MAX_LABEL_LENGTH)

        if parse_amount(balance) is None:
            issues.append(ValidationIssue(
                field="balance",
                issue_type="invalid_value",
                message="Initial balance must be a number",
                severity="error",
                suggested_fix="Enter 0 if the account is empty",
            ))

        return ValidationResult(issues=issues)

    def validate_transaction(
        self,
        account_id: Optional[str],
        amount,
        category: Optional[str],
        occurred_on: Optional[date] = None,
        note: Optional[str] = None,
    ) -> ValidationResult:
        """Validate the add-transaction form."""
        issues = []

        if not account_id:
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="missing",
                message="Please add an account first",
                severity="error",
                suggested_fix="Create an account on the Accounts page",
            ))

        parsed = parse_amount(amount)
        if parsed is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif parsed <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Choose Income or Expense instead of a negative amount",
            ))

        if not category or not category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))
        _check_length(issues, "category", "Category", category, MAX_LABEL_LENGTH)
        _check_length(issues, "note", "Note", note, MAX_NOTE_LENGTH)

        if occurred_on is not None:
            if isinstance(occurred_on, datetime):
                occurred_on = occurred_on.date()
            tolerance = timedelta(days=self._settings.future_date_tolerance_days)
            if occurred_on > date.today() + tolerance:
                issues.append(ValidationIssue(
                    field="occurred_on",
                    issue_type="future_date",
                    message=f"Date ({occurred_on}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary shown under the form."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []
        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
