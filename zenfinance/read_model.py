"""
Finance Read Model

An in-memory view of one owner's accounts and transactions. It is loaded
once from the RecordStore and then kept current by the flows after each
successful write, so screens read from here instead of re-querying the
store after every mutation. Listeners are notified after every change.
"""

from decimal import Decimal
from typing import Callable, Optional

from zenfinance.models.finance import (
    UNKNOWN_ACCOUNT_LABEL,
    Account,
    CategoryTotal,
    Transaction,
)
from zenfinance.queries.aggregation import (
    aggregate_expenses_by_category,
    total_balance,
)
from zenfinance.services.storage.records import RecordStore, sort_most_recent_first


Listener = Callable[["FinanceReadModel"], None]


class FinanceReadModel:
    """Current accounts and transactions for one owner."""

    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        self._accounts: dict[str, Account] = {}
        self._transactions: list[Transaction] = []
        self._listeners: list[Listener] = []
        self.loaded = False

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------------
    # Loading and updates
    # -------------------------------------------------------------------------

    async def load(self, store: RecordStore) -> "FinanceReadModel":
        """Replace the current state with a fresh read from the store."""
        accounts = await store.list_accounts(self.owner_id)
        transactions = await store.list_transactions(self.owner_id)
        self._accounts = {account.id: account for account in accounts}
        self._transactions = transactions
        self.loaded = True
        self._notify()
        return self

    def upsert_account(self, account: Account) -> None:
        self._accounts[account.id] = account
        self._notify()

    def remove_account(self, account_id: str) -> None:
        """Drop an account; transactions that reference it stay."""
        if self._accounts.pop(account_id, None) is not None:
            self._notify()

    def add_transaction(self, transaction: Transaction, account: Optional[Account] = None) -> None:
        """Insert a newly recorded transaction, keeping most-recent-first order."""
        # New entries win ties, matching the store's ordering
        self._transactions = sort_most_recent_first(
            list(reversed(self._transactions)) + [transaction]
        )
        if account is not None:
            self._accounts[account.id] = account
        self._notify()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())

    @property
    def transactions(self) -> list[Transaction]:
        """All transactions, most recent first."""
        return list(self._transactions)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def account_name(self, account_id: str) -> str:
        """Display name for a transaction's account, or the unknown label."""
        account = self._accounts.get(account_id)
        return account.name if account is not None else UNKNOWN_ACCOUNT_LABEL

    def recent_transactions(self, limit: int = 5) -> list[Transaction]:
        return self._transactions[:limit]

    @property
    def total_balance(self) -> Decimal:
        return total_balance(self._accounts.values())

    def expense_breakdown(self, limit: Optional[int] = None) -> list[CategoryTotal]:
        """Expense totals over the most recent `limit` transactions (all if None)."""
        transactions = self._transactions if limit is None else self._transactions[:limit]
        return aggregate_expenses_by_category(transactions)
