"""
Activity Models for ZenFinance

Significant actions (ledger writes, refusals, advice requests, sign-ins)
are emitted as typed activity events and written to the structured log.

DESIGN DECISION: Activity events are log records only. They are never
persisted to the record store, so they are not an audit trail of balance
changes and nothing reads them back.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REFUSED = "transaction_refused"
    BALANCE_ADJUSTMENT_FAILED = "balance_adjustment_failed"

    # Advice
    ADVICE_REQUESTED = "advice_requested"
    ADVICE_FALLBACK = "advice_fallback"

    # Session
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_OUT = "user_signed_out"

    # System events
    STORE_ERROR = "store_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction')"
    )
    entity_id: Optional[str] = None
    owner_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "owner_id": self.owner_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.account_created(account_id, owner_id, name)
        event = ActivityEventBuilder.transaction_recorded(...)
    """

    @staticmethod
    def account_created(
        account_id: str,
        owner_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Account created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        account_id: str,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Account deleted; its transactions are kept",
            is_user_action=True,
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        account_id: str,
        owner_id: str,
        delta: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded, balance moved by {delta}",
            details={
                "account_id": account_id,
                "delta": str(delta),
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_refused(
        owner_id: str,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_REFUSED,
            severity=ActivitySeverity.WARNING,
            entity_type="transaction",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Transaction refused: {reason}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def balance_adjustment_failed(
        transaction_id: Optional[str],
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.BALANCE_ADJUSTMENT_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Transaction recorded but the account balance was not adjusted",
            details={"transaction_id": transaction_id},
            error_message=error_message,
        )

    @staticmethod
    def advice_requested(
        owner_id: Optional[str],
        account_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADVICE_REQUESTED,
            entity_type="advice",
            owner_id=owner_id,
            correlation_id=correlation_id,
            description="Financial advice requested",
            details={
                "account_count": account_count,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def advice_fallback(
        reason: str,
        error_message: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADVICE_FALLBACK,
            severity=ActivitySeverity.WARNING,
            entity_type="advice",
            correlation_id=correlation_id,
            description=f"Advice fallback used: {reason}",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def session_changed(
        event_type: ActivityEventType,
        user_id: Optional[str],
        email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            entity_type="user",
            entity_id=user_id,
            owner_id=user_id,
            description=event_type.value.replace("_", " ").capitalize(),
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"Record store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
