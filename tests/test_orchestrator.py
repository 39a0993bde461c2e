"""
Integration tests for the flows.

Offline mode is used throughout: an in-memory store seeded with demo data.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import OTHER_OWNER, OWNER
from zenfinance.auth import DemoAuthenticator, StoreAuthenticator
from zenfinance.config import Settings, get_settings
from zenfinance.ledger import NoAccountError
from zenfinance.models.finance import APP_COLORS, UNKNOWN_ACCOUNT_LABEL, TransactionType
from zenfinance.orchestrator import (
    AccountsFlow,
    AdviceFlow,
    AppComponents,
    DashboardFlow,
    TransactionsFlow,
    create_app_components,
    create_session,
)
from zenfinance.services.storage import GoogleSheetsDocumentStore, InMemoryDocumentStore


@pytest.fixture
def offline_env(monkeypatch):
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def accounts_flow(store, validator, activity_logger, read_model) -> AccountsFlow:
    return AccountsFlow(store, validator, activity_logger, read_model)


@pytest.fixture
def transactions_flow(ledger, store, validator) -> TransactionsFlow:
    return TransactionsFlow(ledger, store, validator)


class TestCreateAppComponents:
    """Backend selection and per-session state."""

    @pytest.mark.asyncio
    async def test_offline_mode_uses_seeded_memory_store(self, offline_env):
        components = await create_app_components(Settings())
        session = create_session(components)

        assert components.offline_mode
        assert isinstance(components.backend, InMemoryDocumentStore)
        assert isinstance(session.authenticator, DemoAuthenticator)

        identity = session.authenticator.current_identity
        read_model = await session.open(identity)
        assert len(read_model.accounts) == 2
        assert len(read_model.transactions) == 3
        assert await session.open(identity) is read_model

    @pytest.mark.asyncio
    async def test_live_mode_uses_sheets(self, offline_env, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        offline_env.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        offline_env.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")

        components = await create_app_components(Settings())
        session = create_session(components)

        assert not components.offline_mode
        assert isinstance(components.backend, GoogleSheetsDocumentStore)
        assert isinstance(session.authenticator, StoreAuthenticator)
        assert session.authenticator.current_identity is None

    @pytest.mark.asyncio
    async def test_sessions_sign_in_independently(self, offline_env, backend, store, validator):
        components = AppComponents(
            settings=Settings(),
            backend=backend,
            store=store,
            activity_logger=MagicMock(),
            validator=validator,
            dashboard_flow=DashboardFlow(),
            advice_flow=AdviceFlow(MagicMock()),
            offline_mode=False,
        )
        alice = create_session(components)
        visitor = create_session(components)

        identity = await alice.authenticator.sign_up("alice@example.com", "secret123")
        read_model = await alice.open(identity)
        await alice.accounts_flow.create_account(identity.user_id, "Salary", "Bank", "1000")

        assert visitor.authenticator.current_identity is None
        assert visitor.read_model is None
        assert len(read_model.accounts) == 1

        await visitor.authenticator.sign_up("bob@example.com", "secret456")
        await visitor.authenticator.sign_out()
        assert alice.authenticator.current_identity == identity

    @pytest.mark.asyncio
    async def test_offline_advice_without_key_is_fallback(self, offline_env):
        components = await create_app_components(Settings())
        session = create_session(components)
        read_model = await session.open(session.authenticator.current_identity)

        advice = await components.advice_flow.request_advice(read_model)

        assert "unavailable" in advice

    @pytest.mark.asyncio
    async def test_end_to_end_offline_transaction(self, offline_env):
        components = await create_app_components(Settings())
        session = create_session(components)
        read_model = await session.open(session.authenticator.current_identity)
        account = read_model.accounts[0]

        entry, result = await session.transactions_flow.record_transaction(
            owner_id=read_model.owner_id,
            account_id=account.id,
            amount="150",
            kind=TransactionType.EXPENSE,
            category="Food",
            occurred_on=date.today(),
        )

        assert result.is_valid
        assert read_model.get_account(account.id).balance == account.balance - Decimal("150")
        assert read_model.transactions[0].id == entry.transaction.id

        session.close()
        assert session.read_model is None


class TestAccountsFlow:
    """Account creation and deletion."""

    @pytest.mark.asyncio
    async def test_create_account(self, accounts_flow, read_model, activity_logger):
        account, result = await accounts_flow.create_account(OWNER, " Salary ", "Bank", "1000")

        assert result.is_valid
        assert account.name == "Salary"
        assert account.balance == Decimal("1000")
        assert account.color == APP_COLORS[0]
        assert read_model.get_account(account.id) == account
        activity_logger.log_account_created.assert_called_once()

    @pytest.mark.asyncio
    async def test_colors_cycle_through_palette(self, accounts_flow, read_model, store):
        await read_model.load(store)
        first, _ = await accounts_flow.create_account(OWNER, "One", "Bank", "0")
        second, _ = await accounts_flow.create_account(OWNER, "Two", "Bank", "0")
        assert (first.color, second.color) == (APP_COLORS[0], APP_COLORS[1])

    @pytest.mark.asyncio
    async def test_invalid_form_writes_nothing(self, accounts_flow, store):
        account, result = await accounts_flow.create_account(OWNER, "", "Bank", "x")

        assert account is None
        assert result.error_count == 2
        assert await store.list_accounts(OWNER) == []

    @pytest.mark.asyncio
    async def test_over_long_name_is_a_form_error(self, accounts_flow, store):
        account, result = await accounts_flow.create_account(OWNER, "x" * 101, "Bank", "0")

        assert account is None
        assert [issue.field for issue in result.issues] == ["name"]
        assert await store.list_accounts(OWNER) == []

    @pytest.mark.asyncio
    async def test_delete_account_keeps_transactions(
        self, accounts_flow, transactions_flow, read_model, store
    ):
        await read_model.load(store)
        account, _ = await accounts_flow.create_account(OWNER, "Card", "Bank", "1000")
        await transactions_flow.record_transaction(
            OWNER, account.id, "150", TransactionType.EXPENSE, "Food"
        )

        await accounts_flow.delete_account(OWNER, account.id)

        assert read_model.accounts == []
        assert len(read_model.transactions) == 1
        assert read_model.account_name(read_model.transactions[0].account_id) == UNKNOWN_ACCOUNT_LABEL
        assert len(await store.list_transactions(OWNER)) == 1

    @pytest.mark.asyncio
    async def test_delete_other_owners_account(self, accounts_flow, store):
        account = await store.create_account(OTHER_OWNER, "Theirs", "Bank")

        with pytest.raises(NoAccountError):
            await accounts_flow.delete_account(OWNER, account.id)
        assert await store.get_account(account.id) is not None

    @pytest.mark.asyncio
    async def test_delete_missing_account(self, accounts_flow):
        with pytest.raises(NoAccountError):
            await accounts_flow.delete_account(OWNER, "missing")


class TestTransactionsFlow:
    """Form validation ahead of the ledger."""

    @pytest.mark.asyncio
    async def test_invalid_form_skips_ledger(self, store, validator):
        ledger = MagicMock()
        ledger.record_transaction = AsyncMock()
        flow = TransactionsFlow(ledger, store, validator)

        entry, result = await flow.record_transaction(OWNER, None, "0", "EXPENSE", "")

        assert entry is None
        assert result.error_count == 3
        ledger.record_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_over_long_note_is_a_form_error(self, transactions_flow, store):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))

        entry, result = await transactions_flow.record_transaction(
            OWNER, account.id, "10", TransactionType.EXPENSE, "Food", note="n" * 501
        )

        assert entry is None
        assert [issue.field for issue in result.issues] == ["note"]
        assert (await store.get_account(account.id)).balance == Decimal("1000")
        assert await store.list_transactions(OWNER) == []

    @pytest.mark.asyncio
    async def test_records_through_ledger(self, transactions_flow, store):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))

        entry, _ = await transactions_flow.record_transaction(
            OWNER, account.id, "2000", TransactionType.INCOME, "Salary", note="January"
        )

        assert entry.account.balance == Decimal("3000")
        listed = await transactions_flow.list_transactions(OWNER)
        assert [t.note for t in listed] == ["January"]


class TestDashboardFlow:
    """Dashboard snapshot."""

    @pytest.mark.asyncio
    async def test_snapshot(self, store, transactions_flow, read_model):
        account = await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))
        await read_model.load(store)
        for day, category in enumerate(["Old", "A", "B", "A", "C", "D"], start=1):
            await transactions_flow.record_transaction(
                OWNER, account.id, "10", TransactionType.EXPENSE, category,
                occurred_on=date(2024, 1, day),
            )

        snapshot = DashboardFlow(recent_limit=5).snapshot(read_model)

        assert snapshot.total_balance == Decimal("940")
        assert snapshot.account_count == 1
        assert snapshot.income_total == Decimal("0")
        assert snapshot.expense_total == Decimal("60")
        assert len(snapshot.recent_transactions) == 5
        assert [row.category for row in snapshot.expense_breakdown] == ["D", "C", "A", "B"]

    def test_empty_snapshot(self, read_model):
        snapshot = DashboardFlow().snapshot(read_model)
        assert snapshot.total_balance == Decimal("0")
        assert snapshot.income_total == snapshot.expense_total == Decimal("0")
        assert snapshot.recent_transactions == []
        assert snapshot.expense_breakdown == []


class TestAdviceFlow:
    """Advice over the read model."""

    @pytest.mark.asyncio
    async def test_passes_full_history(self, store, read_model, activity_logger):
        await store.create_account(OWNER, "Card", "Bank", Decimal("1000"))
        await read_model.load(store)
        advisor = MagicMock()
        advisor.request_advice = AsyncMock(return_value="Save more.")
        flow = AdviceFlow(advisor, activity_logger)

        assert await flow.request_advice(read_model) == "Save more."

        accounts, transactions = advisor.request_advice.call_args.args
        assert len(accounts) == 1
        assert transactions == []
        activity_logger.log_advice_requested.assert_called_once()
