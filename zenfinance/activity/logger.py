"""
Activity Logger

Every significant action in the system is logged as a structured event.
This provides:
1. Traceability of ledger writes and refusals
2. Debugging capability for store and advice failures

The activity logger only writes to the local structured log. It has no
storage backend: a log line is not a balance history.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from zenfinance.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """Central activity logging service."""

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("zenfinance.activity")

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("activity_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("activity_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_account_created(
        self,
        account_id: str,
        owner_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.account_created(
            account_id=account_id,
            owner_id=owner_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_account_deleted(
        self,
        account_id: str,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.account_deleted(
            account_id=account_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))

    def log_transaction_recorded(
        self,
        transaction_id: str,
        account_id: str,
        owner_id: str,
        delta,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            account_id=account_id,
            owner_id=owner_id,
            delta=delta,
            correlation_id=correlation_id,
        ))

    def log_transaction_refused(
        self,
        owner_id: str,
        reason: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.transaction_refused(
            owner_id=owner_id,
            reason=reason,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_balance_adjustment_failed(
        self,
        transaction_id: Optional[str],
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.balance_adjustment_failed(
            transaction_id=transaction_id,
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_advice_requested(
        self,
        owner_id: Optional[str],
        account_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.advice_requested(
            owner_id=owner_id,
            account_count=account_count,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    def log_advice_fallback(
        self,
        reason: str,
        error_message: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.advice_fallback(
            reason=reason,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_session_changed(
        self,
        event_type: ActivityEventType,
        user_id: Optional[str],
        email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.session_changed(
            event_type=event_type,
            user_id=user_id,
            email=email,
        ))

    def log_store_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(ActivityEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., recording a transaction).
    """
    return uuid4()
