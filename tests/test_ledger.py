"""
Tests for the balance ledger.

The ledger is the only place a balance moves after account creation;
these tests pin the balance arithmetic and the refusal cases.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from conftest import OTHER_OWNER, OWNER
from zenfinance.ledger import InvalidAmountError, NoAccountError
from zenfinance.models.finance import TransactionType, UNKNOWN_ACCOUNT_LABEL
from zenfinance.services.storage import (
    BalanceAdjustmentError,
    EntityKind,
    NotFoundError,
    StoreUnavailableError,
)


async def balance_of(store, account_id) -> Decimal:
    account = await store.get_account(account_id)
    return account.balance


class TestRecordTransaction:
    """Balance arithmetic for recorded transactions."""

    @pytest.mark.asyncio
    async def test_expense_then_income_scenario(self, store, ledger):
        account = await store.create_account(OWNER, "Salary account", "Bank", Decimal("1000"))

        await ledger.record_transaction(
            account.id, "150", TransactionType.EXPENSE, OWNER, "Food",
            occurred_on=date(2024, 1, 1),
        )
        assert await balance_of(store, account.id) == Decimal("850")
        assert len(await store.list_transactions(OWNER)) == 1

        await ledger.record_transaction(
            account.id, "2000", TransactionType.INCOME, OWNER, "Salary",
            occurred_on=date(2024, 1, 2),
        )
        assert await balance_of(store, account.id) == Decimal("2850")

        transactions = await store.list_transactions(OWNER)
        assert [t.kind for t in transactions] == [TransactionType.INCOME, TransactionType.EXPENSE]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount, kind, expected", [
        ("0.01", TransactionType.INCOME, Decimal("100.01")),
        ("0.01", TransactionType.EXPENSE, Decimal("99.99")),
        ("250", TransactionType.EXPENSE, Decimal("-150")),
        (Decimal("12.5"), TransactionType.INCOME, Decimal("112.5")),
    ])
    async def test_balance_moves_by_signed_amount(self, store, ledger, amount, kind, expected):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("100"))
        entry = await ledger.record_transaction(account.id, amount, kind, OWNER, "Misc")

        assert entry.account.balance == expected
        assert await balance_of(store, account.id) == expected
        assert entry.delta == (Decimal(str(amount)) if kind == TransactionType.INCOME
                               else -Decimal(str(amount)))

    @pytest.mark.asyncio
    async def test_kind_accepts_string_value(self, store, ledger):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("0"))
        entry = await ledger.record_transaction(account.id, "10", "INCOME", OWNER, "Bonus")
        assert entry.transaction.kind == TransactionType.INCOME

    @pytest.mark.asyncio
    async def test_success_is_logged(self, store, ledger, activity_logger):
        account = await store.create_account(OWNER, "Card", "Bank")
        entry = await ledger.record_transaction(
            account.id, "5", TransactionType.EXPENSE, OWNER, "Food"
        )
        activity_logger.log_transaction_recorded.assert_called_once()
        kwargs = activity_logger.log_transaction_recorded.call_args.kwargs
        assert kwargs["transaction_id"] == entry.transaction.id
        assert kwargs["delta"] == Decimal("-5")


class TestRefusals:
    """Refused writes leave the store unchanged."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "", None, "abc", "NaN"])
    async def test_non_positive_or_invalid_amount(self, store, ledger, activity_logger, amount):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))

        with pytest.raises(InvalidAmountError):
            await ledger.record_transaction(
                account.id, amount, TransactionType.EXPENSE, OWNER, "Food"
            )

        assert await balance_of(store, account.id) == Decimal("1000")
        assert await store.list_transactions(OWNER) == []
        activity_logger.log_transaction_refused.assert_called_once()

    @pytest.mark.asyncio
    async def test_unknown_account(self, store, ledger):
        await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))

        with pytest.raises(NoAccountError, match="Please add an account first"):
            await ledger.record_transaction(
                "missing", "10", TransactionType.EXPENSE, OWNER, "Food"
            )

        assert await store.list_transactions(OWNER) == []

    @pytest.mark.asyncio
    async def test_no_account_selected(self, store, ledger):
        with pytest.raises(NoAccountError):
            await ledger.record_transaction(None, "10", TransactionType.EXPENSE, OWNER, "Food")

    @pytest.mark.asyncio
    async def test_other_owners_account(self, store, ledger):
        account = await store.create_account(OTHER_OWNER, "Theirs", "Bank", Decimal("1000"))

        with pytest.raises(NoAccountError):
            await ledger.record_transaction(
                account.id, "10", TransactionType.EXPENSE, OWNER, "Food"
            )

        assert await balance_of(store, account.id) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_account_deleted_before_write(self, store, ledger):
        account = await store.create_account(OWNER, "Card", "Bank")
        store.apply_transaction = AsyncMock(side_effect=NotFoundError("gone"))

        with pytest.raises(NoAccountError):
            await ledger.record_transaction(
                account.id, "10", TransactionType.EXPENSE, OWNER, "Food"
            )


class TestStoreFailures:
    """Store failures propagate with their own error kinds."""

    @pytest.mark.asyncio
    async def test_store_unavailable_is_logged_and_raised(self, store, ledger, activity_logger):
        account = await store.create_account(OWNER, "Card", "Bank")
        store.apply_transaction = AsyncMock(side_effect=StoreUnavailableError("offline"))

        with pytest.raises(StoreUnavailableError):
            await ledger.record_transaction(
                account.id, "10", TransactionType.EXPENSE, OWNER, "Food"
            )
        activity_logger.log_store_error.assert_called_once()

    @pytest.mark.asyncio
    async def test_balance_adjustment_failure_is_surfaced(
        self, store, ledger, activity_logger, read_model
    ):
        account = await store.create_account(OWNER, "Card", "Bank")
        store.apply_transaction = AsyncMock(side_effect=BalanceAdjustmentError(
            "recorded without balance move", recorded={"id": "tx-9"},
        ))

        with pytest.raises(BalanceAdjustmentError):
            await ledger.record_transaction(
                account.id, "10", TransactionType.EXPENSE, OWNER, "Food"
            )

        kwargs = activity_logger.log_balance_adjustment_failed.call_args.kwargs
        assert kwargs["transaction_id"] == "tx-9"
        assert read_model.transactions == []


class TestReadModelUpdates:
    """The ledger keeps the attached read model current."""

    @pytest.mark.asyncio
    async def test_read_model_receives_new_transaction(self, store, ledger, read_model):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))
        await read_model.load(store)

        await ledger.record_transaction(
            account.id, "150", TransactionType.EXPENSE, OWNER, "Food"
        )

        assert len(read_model.transactions) == 1
        assert read_model.get_account(account.id).balance == Decimal("850")
        assert read_model.total_balance == Decimal("850")

    @pytest.mark.asyncio
    async def test_delete_account_keeps_transactions(self, store, ledger, read_model, backend):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))
        await read_model.load(store)
        entry = await ledger.record_transaction(
            account.id, "150", TransactionType.EXPENSE, OWNER, "Food"
        )

        await store.delete_account(account.id)
        read_model.remove_account(account.id)

        stored = await backend.get_document(EntityKind.TRANSACTIONS, entry.transaction.id)
        assert stored is not None
        assert stored["account_id"] == account.id
        assert len(await store.list_transactions(OWNER)) == 1
        assert read_model.account_name(account.id) == UNKNOWN_ACCOUNT_LABEL
