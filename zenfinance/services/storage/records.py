"""
Record Store Adapter

Translates Account and Transaction models to and from documents in a
DocumentStoreInterface backend. Every read is scoped by owner; there is
no join and no referential check, so deleting an account leaves its
transactions untouched.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from zenfinance.models.finance import (
    APP_COLORS,
    Account,
    Transaction,
    TransactionType,
    utc_now,
)
from zenfinance.services.storage.interface import (
    Document,
    DocumentStoreInterface,
    EntityKind,
)


DEFAULT_RECENT_LIMIT = 5


def sort_most_recent_first(transactions: list[Transaction]) -> list[Transaction]:
    """
    Order transactions by occurrence, newest first.

    Ties keep the most recently inserted first: the input is in insertion
    order, and sorted() is stable with reverse=True.
    """
    return sorted(
        reversed(transactions),
        key=lambda t: t.occurred_at,
        reverse=True,
    )


class RecordStore:
    """Typed, owner-scoped access to accounts and transactions."""

    def __init__(
        self,
        backend: DocumentStoreInterface,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
    ):
        self._backend = backend
        self._recent_limit = recent_limit

    @property
    def backend(self) -> DocumentStoreInterface:
        return self._backend

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_account(document: Document) -> Account:
        return Account.model_validate(document)

    @staticmethod
    def _to_transaction(document: Document) -> Transaction:
        return Transaction.model_validate(document)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def list_accounts(self, owner_id: str) -> list[Account]:
        documents = await self._backend.list_documents(EntityKind.ACCOUNTS, owner_id=owner_id)
        return [self._to_account(document) for document in documents]

    async def get_account(self, account_id: str) -> Optional[Account]:
        if not account_id:
            return None
        document = await self._backend.get_document(EntityKind.ACCOUNTS, account_id)
        return self._to_account(document) if document is not None else None

    async def create_account(
        self,
        owner_id: str,
        name: str,
        institution: str,
        balance: Decimal = Decimal("0"),
        color: str = APP_COLORS[0],
        created_at: Optional[datetime] = None,
    ) -> Account:
        # Validate through the model before anything reaches the store
        draft = Account(
            id="pending",
            owner_id=owner_id,
            name=name,
            institution=institution,
            balance=balance,
            color=color,
            created_at=created_at or utc_now(),
        )
        fields = draft.model_dump(mode="json", exclude={"id"})
        document = await self._backend.create_document(EntityKind.ACCOUNTS, fields)
        return self._to_account(document)

    async def update_account(self, account_id: str, **fields) -> Account:
        """
        Partial update of an account.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        current = await self._backend.get_document(EntityKind.ACCOUNTS, account_id)
        if current is not None:
            # Validate the merged result before writing
            Account.model_validate({**current, **fields})
        serializable = {
            key: str(value) if isinstance(value, Decimal) else value
            for key, value in fields.items()
        }
        document = await self._backend.update_document(
            EntityKind.ACCOUNTS, account_id, serializable
        )
        return self._to_account(document)

    async def delete_account(self, account_id: str) -> None:
        """
        Delete an account. Its transactions are left in place.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        await self._backend.delete_document(EntityKind.ACCOUNTS, account_id)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def list_transactions(
        self,
        owner_id: str,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """List an owner's transactions, most recent first."""
        documents = await self._backend.list_documents(
            EntityKind.TRANSACTIONS, owner_id=owner_id
        )
        transactions = sort_most_recent_first(
            [self._to_transaction(document) for document in documents]
        )
        if limit is not None:
            return transactions[:limit]
        return transactions

    async def recent_transactions(self, owner_id: str) -> list[Transaction]:
        """The dashboard's recent-activity page."""
        return await self.list_transactions(owner_id, limit=self._recent_limit)

    async def apply_transaction(
        self,
        account_id: str,
        owner_id: str,
        amount: Decimal,
        kind: TransactionType,
        category: str,
        note: Optional[str],
        occurred_at: datetime,
    ) -> tuple[Transaction, Account]:
        """
        Persist a transaction and move its account's balance in one backend call.

        The caller has already validated the amount and the account.

        Raises:
            NotFoundError: If the account disappeared (nothing written)
            StoreUnavailableError: If nothing was recorded
            BalanceAdjustmentError: If recorded without the balance move
        """
        draft = Transaction(
            id="pending",
            account_id=account_id,
            owner_id=owner_id,
            amount=amount,
            kind=kind,
            category=category,
            note=note,
            occurred_at=occurred_at,
        )
        fields = draft.model_dump(mode="json", exclude={"id"})
        created, updated = await self._backend.create_and_increment(
            EntityKind.TRANSACTIONS,
            fields,
            target_kind=EntityKind.ACCOUNTS,
            target_id=account_id,
            field="balance",
            delta=draft.signed_amount,
        )
        return self._to_transaction(created), self._to_account(updated)
