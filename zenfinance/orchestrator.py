"""
Main Orchestrator for ZenFinance

This module ties together all the components and defines the
end-to-end flows for:
1. Accounts (list → validate → create / delete)
2. Transactions (validate → ledger write → read model update)
3. Dashboard (read model → totals, recent activity, expense breakdown)
4. Advice (read model → summary → Gemini → display text)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every read and write is scoped by the signed-in owner
- Balances only move through the BalanceLedger
- Every step is logged as an activity event (never persisted)

The Streamlit shell only talks to these flows, never to the store.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from zenfinance.activity import (
    ActivityLogger,
    configure_logging,
    create_correlation_id,
)
from zenfinance.agents import FinancialAdvisorAgent
from zenfinance.auth import (
    AuthenticatorInterface,
    DemoAuthenticator,
    StoreAuthenticator,
)
from zenfinance.config import Settings, get_settings
from zenfinance.ledger import BalanceLedger, LedgerEntry, NoAccountError
from zenfinance.models.finance import (
    APP_COLORS,
    Account,
    CategoryTotal,
    Identity,
    Transaction,
    TransactionType,
    ValidationResult,
)
from zenfinance.queries import totals_by_kind
from zenfinance.read_model import FinanceReadModel
from zenfinance.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    RecordStore,
    StoreUnavailableError,
    seed_demo_data,
)
from zenfinance.validation import FormValidator, parse_amount


logger = structlog.get_logger(__name__)


class AccountsFlow:
    """
    Orchestrates account management.

    Flow:
    1. Validate → FormValidator (errors block, nothing is written)
    2. Save → RecordStore
    3. Update → read model, so screens don't re-query

    Deleting an account never touches its transactions.
    """

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[FormValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        read_model: Optional[FinanceReadModel] = None,
    ):
        self._store = store
        self._validator = validator or FormValidator()
        self._activity_logger = activity_logger
        self._read_model = read_model

    def attach_read_model(self, read_model: Optional[FinanceReadModel]) -> None:
        self._read_model = read_model

    def _owned_read_model(self, owner_id: str) -> Optional[FinanceReadModel]:
        if self._read_model is not None and self._read_model.owner_id == owner_id:
            return self._read_model
        return None

    async def list_accounts(self, owner_id: str) -> list[Account]:
        read_model = self._owned_read_model(owner_id)
        if read_model is not None and read_model.loaded:
            return read_model.accounts
        return await self._store.list_accounts(owner_id)

    async def create_account(
        self,
        owner_id: str,
        name: str,
        institution: str,
        balance="0",
        color: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Account], ValidationResult]:
        """
        Validate and create an account.

        Returns:
            (account, validation_result); account is None when the form
            has errors
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_account(name, institution, balance)
        if result.has_errors:
            return None, result

        if color is None:
            existing = await self.list_accounts(owner_id)
            color = APP_COLORS[len(existing) % len(APP_COLORS)]

        try:
            account = await self._store.create_account(
                owner_id=owner_id,
                name=name.strip(),
                institution=institution.strip(),
                balance=parse_amount(balance),
                color=color,
            )
        except StoreUnavailableError as e:
            if self._activity_logger:
                self._activity_logger.log_store_error(
                    operation="create_account",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._activity_logger:
            self._activity_logger.log_account_created(
                account_id=account.id,
                owner_id=owner_id,
                name=account.name,
                correlation_id=correlation_id,
            )

        read_model = self._owned_read_model(owner_id)
        if read_model is not None:
            read_model.upsert_account(account)

        return account, result

    async def delete_account(
        self,
        owner_id: str,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete one of the owner's accounts. Its transactions stay.

        Raises:
            NoAccountError: unknown account or another owner's
        """
        correlation_id = correlation_id or create_correlation_id()

        account = await self._store.get_account(account_id)
        if account is None or account.owner_id != owner_id:
            raise NoAccountError("Account not found")

        try:
            await self._store.delete_account(account_id)
        except NotFoundError:
            raise NoAccountError("Account not found")
        except StoreUnavailableError as e:
            if self._activity_logger:
                self._activity_logger.log_store_error(
                    operation="delete_account",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._activity_logger:
            self._activity_logger.log_account_deleted(
                account_id=account_id,
                owner_id=owner_id,
                correlation_id=correlation_id,
            )

        read_model = self._owned_read_model(owner_id)
        if read_model is not None:
            read_model.remove_account(account_id)


class TransactionsFlow:
    """
    Orchestrates transaction entry.

    The form is validated first so the user sees every problem at once;
    the ledger then repeats the checks that guard the balance.
    """

    def __init__(
        self,
        ledger: BalanceLedger,
        store: RecordStore,
        validator: Optional[FormValidator] = None,
    ):
        self._ledger = ledger
        self._store = store
        self._validator = validator or FormValidator()

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        return await self._store.list_transactions(owner_id)

    async def record_transaction(
        self,
        owner_id: str,
        account_id: Optional[str],
        amount,
        kind: TransactionType | str,
        category: str,
        note: Optional[str] = None,
        occurred_on=None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[LedgerEntry], ValidationResult]:
        """
        Validate the form and record the transaction through the ledger.

        Returns:
            (entry, validation_result); entry is None when the form has errors

        Ledger and store errors propagate unchanged.
        """
        result = self._validator.validate_transaction(
            account_id=account_id,
            amount=amount,
            category=category,
            occurred_on=occurred_on,
            note=note,
        )
        if result.has_errors:
            return None, result

        entry = await self._ledger.record_transaction(
            account_id=account_id,
            amount=amount,
            kind=kind,
            owner_id=owner_id,
            category=category.strip(),
            note=note,
            occurred_on=occurred_on,
            correlation_id=correlation_id or create_correlation_id(),
        )
        return entry, result


@dataclass(frozen=True)
class DashboardSnapshot:
    """What the dashboard shows."""

    total_balance: Decimal
    account_count: int
    income_total: Decimal
    expense_total: Decimal
    recent_transactions: list[Transaction]
    expense_breakdown: list[CategoryTotal]


class DashboardFlow:
    """Builds the dashboard view from an owner's read model."""

    def __init__(self, recent_limit: int = 5):
        self._recent_limit = recent_limit

    def snapshot(self, read_model: FinanceReadModel) -> DashboardSnapshot:
        # The chart covers the same recent page the list shows
        recent = read_model.recent_transactions(self._recent_limit)
        totals = totals_by_kind(read_model.transactions)
        return DashboardSnapshot(
            total_balance=read_model.total_balance,
            account_count=len(read_model.accounts),
            income_total=totals[TransactionType.INCOME],
            expense_total=totals[TransactionType.EXPENSE],
            recent_transactions=recent,
            expense_breakdown=read_model.expense_breakdown(self._recent_limit),
        )


class AdviceFlow:
    """
    Orchestrates the advice request.

    The advisor sees the owner's accounts and full history (most recent
    first) and trims them to its own summary. The answer is display text.
    """

    def __init__(
        self,
        advisor: FinancialAdvisorAgent,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._advisor = advisor
        self._activity_logger = activity_logger

    @property
    def configured(self) -> bool:
        return self._advisor.configured

    async def request_advice(
        self,
        read_model: FinanceReadModel,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        correlation_id = correlation_id or create_correlation_id()
        accounts = read_model.accounts
        transactions = read_model.transactions

        if self._activity_logger:
            self._activity_logger.log_advice_requested(
                owner_id=read_model.owner_id,
                account_count=len(accounts),
                transaction_count=len(transactions),
                correlation_id=correlation_id,
            )

        return await self._advisor.request_advice(accounts, transactions)


@dataclass
class AppComponents:
    """
    Process-wide pieces, wired for one backend.

    Safe to share between browser sessions: nothing here knows who is
    signed in. Per-user state lives in an AppSession.
    """

    settings: Settings
    backend: DocumentStoreInterface
    store: RecordStore
    activity_logger: ActivityLogger
    validator: FormValidator
    dashboard_flow: DashboardFlow
    advice_flow: AdviceFlow
    offline_mode: bool


@dataclass
class AppSession:
    """One browser session: its sign-in state, read model and write flows."""

    components: AppComponents
    authenticator: AuthenticatorInterface
    ledger: BalanceLedger
    accounts_flow: AccountsFlow
    transactions_flow: TransactionsFlow
    read_model: Optional[FinanceReadModel] = field(default=None)

    async def open(self, identity: Identity) -> FinanceReadModel:
        """
        Load the signed-in owner's read model and route writes through it.

        Reuses the current read model when it already belongs to this owner.
        """
        if (
            self.read_model is not None
            and self.read_model.owner_id == identity.user_id
            and self.read_model.loaded
        ):
            return self.read_model

        read_model = FinanceReadModel(identity.user_id)
        await read_model.load(self.components.store)
        self.read_model = read_model
        self.ledger.attach_read_model(read_model)
        self.accounts_flow.attach_read_model(read_model)
        return read_model

    def close(self) -> None:
        self.read_model = None
        self.ledger.attach_read_model(None)
        self.accounts_flow.attach_read_model(None)


def create_session(components: AppComponents) -> AppSession:
    """
    Build the per-session half of the app on top of shared components.

    Offline mode signs every session in as the demo user; otherwise the
    session starts signed out.
    """
    app_settings = components.settings.app
    if components.offline_mode:
        authenticator = DemoAuthenticator(
            user_id=app_settings.demo_user_id,
            email=app_settings.demo_email,
            activity_logger=components.activity_logger,
        )
    else:
        authenticator = StoreAuthenticator(
            components.backend,
            activity_logger=components.activity_logger,
        )

    ledger = BalanceLedger(components.store, activity_logger=components.activity_logger)
    return AppSession(
        components=components,
        authenticator=authenticator,
        ledger=ledger,
        accounts_flow=AccountsFlow(
            components.store,
            components.validator,
            components.activity_logger,
        ),
        transactions_flow=TransactionsFlow(ledger, components.store, components.validator),
    )


async def create_app_components(settings: Optional[Settings] = None) -> AppComponents:
    """
    Factory function to create the shared application components.

    With Google Sheets configured, data lives in the spreadsheet and users
    sign in with email and password. Otherwise the app runs in offline/demo
    mode: an in-memory store seeded with sample data.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)
    activity_logger = ActivityLogger()

    offline_mode = not settings.store_configured
    if offline_mode:
        logger.warning("store_not_configured", mode="offline")
        backend = InMemoryDocumentStore()
        await seed_demo_data(backend, app_settings.demo_user_id)
    else:
        backend = GoogleSheetsDocumentStore(GoogleSheetsClient(settings.google_sheets))

    store = RecordStore(backend, recent_limit=app_settings.recent_transactions_limit)
    advisor = FinancialAdvisorAgent(
        settings=settings.gemini,
        language=app_settings.advice_language,
        transaction_limit=app_settings.advice_transactions_limit,
        activity_logger=activity_logger,
    )

    return AppComponents(
        settings=settings,
        backend=backend,
        store=store,
        activity_logger=activity_logger,
        validator=FormValidator(app_settings),
        dashboard_flow=DashboardFlow(app_settings.recent_transactions_limit),
        advice_flow=AdviceFlow(advisor, activity_logger),
        offline_mode=offline_mode,
    )
