"""
Balance Ledger

The only write path that moves an account balance after the account is
created. Recording a transaction and adjusting its account's balance go
to the store as a single create_and_increment call:

- In-memory store: atomic.
- Google Sheets: appended, then incremented; a failed increment deletes
  the appended row again. Only if that undo also fails does the balance
  drift, and then BalanceAdjustmentError says so instead of staying silent.

Guarantee on success: balance_after == balance_before + delta, where
delta is +amount for income and -amount for expense.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from zenfinance.activity import ActivityLogger
from zenfinance.models.finance import (
    Account,
    Transaction,
    TransactionType,
    to_instant,
)
from zenfinance.read_model import FinanceReadModel
from zenfinance.services.storage import (
    BalanceAdjustmentError,
    NotFoundError,
    RecordStore,
    StoreUnavailableError,
)
from zenfinance.validation import parse_amount


class LedgerError(Exception):
    """Base exception for refused ledger operations."""
    pass


class InvalidAmountError(LedgerError):
    """Amount missing, not a number, or not greater than zero."""
    pass


class NoAccountError(LedgerError):
    """The referenced account doesn't exist or belongs to someone else."""

    def __init__(self, message: str = "Please add an account first"):
        super().__init__(message)


@dataclass(frozen=True)
class LedgerEntry:
    """Result of a recorded transaction."""

    transaction: Transaction
    account: Account

    @property
    def delta(self) -> Decimal:
        return self.transaction.signed_amount


class BalanceLedger:
    """Records transactions and keeps account balances in step with them."""

    def __init__(
        self,
        store: RecordStore,
        activity_logger: Optional[ActivityLogger] = None,
        read_model: Optional[FinanceReadModel] = None,
    ):
        self._store = store
        self._activity_logger = activity_logger
        self._read_model = read_model

    def attach_read_model(self, read_model: Optional[FinanceReadModel]) -> None:
        self._read_model = read_model

    async def record_transaction(
        self,
        account_id: Optional[str],
        amount,
        kind: TransactionType | str,
        owner_id: str,
        category: str,
        note: Optional[str] = None,
        occurred_on: Optional[date | datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEntry:
        """
        Record a transaction and apply it to the account balance.

        Raises:
            InvalidAmountError: amount <= 0 or not a number (nothing written)
            NoAccountError: unknown account or another owner's (nothing written)
            StoreUnavailableError: store failure, transaction not recorded
            BalanceAdjustmentError: transaction recorded, balance not adjusted
        """
        kind = TransactionType(kind)

        parsed = parse_amount(amount)
        if parsed is None or parsed <= 0:
            self._refuse(owner_id, "invalid amount", {"amount": str(amount)}, correlation_id)
            raise InvalidAmountError("Amount must be greater than zero")

        try:
            account = await self._store.get_account(account_id) if account_id else None
        except StoreUnavailableError as e:
            self._log_store_error("get_account", e, correlation_id)
            raise

        if account is None or account.owner_id != owner_id:
            self._refuse(owner_id, "no account", {"account_id": account_id}, correlation_id)
            raise NoAccountError()

        try:
            transaction, updated = await self._store.apply_transaction(
                account_id=account.id,
                owner_id=owner_id,
                amount=parsed,
                kind=kind,
                category=category,
                note=note,
                occurred_at=to_instant(occurred_on),
            )
        except NotFoundError:
            # Account deleted between the check and the write
            self._refuse(owner_id, "no account", {"account_id": account_id}, correlation_id)
            raise NoAccountError()
        except BalanceAdjustmentError as e:
            if self._activity_logger:
                recorded_id = e.recorded.get("id") if e.recorded else None
                self._activity_logger.log_balance_adjustment_failed(
                    transaction_id=recorded_id,
                    account_id=account.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StoreUnavailableError as e:
            self._log_store_error("apply_transaction", e, correlation_id)
            raise

        entry = LedgerEntry(transaction=transaction, account=updated)

        if self._activity_logger:
            self._activity_logger.log_transaction_recorded(
                transaction_id=transaction.id,
                account_id=updated.id,
                owner_id=owner_id,
                delta=entry.delta,
                correlation_id=correlation_id,
            )

        if self._read_model is not None and self._read_model.owner_id == owner_id:
            self._read_model.add_transaction(transaction, updated)

        return entry

    def _refuse(
        self,
        owner_id: str,
        reason: str,
        details: dict,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._activity_logger:
            self._activity_logger.log_transaction_refused(
                owner_id=owner_id,
                reason=reason,
                details=details,
                correlation_id=correlation_id,
            )

    def _log_store_error(
        self,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._activity_logger:
            self._activity_logger.log_store_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )
