"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract document-store interface.
This allows us to:
1. Use Google Sheets as the hosted record store
2. Use in-memory storage for offline/demo mode and testing
3. Keep the ledger and the UI decoupled from the storage implementation

Documents are plain dicts, one collection per entity kind. The store
assigns identifiers and performs no joins or referential checks; mapping
to domain models happens one level up, in RecordStore.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


Document = dict[str, Any]


class EntityKind(str, Enum):
    """Collections the application persists."""
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    USERS = "users"


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document storage operations.

    Any backend (Google Sheets, in-memory, etc.) must implement these methods.
    """

    @abstractmethod
    async def list_documents(
        self,
        kind: EntityKind,
        owner_id: Optional[str] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[Document]:
        """
        List documents of one kind, in insertion order.

        Args:
            kind: Collection to read
            owner_id: Equality filter on the owner_id field
            filters: Extra equality filters (field -> value)

        Returns:
            Matching documents

        Raises:
            StoreUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def get_document(self, kind: EntityKind, document_id: str) -> Optional[Document]:
        """
        Retrieve one document by its identifier.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_document(self, kind: EntityKind, fields: Document) -> Document:
        """
        Create a document.

        The store assigns the identifier; any 'id' in fields is ignored.

        Returns:
            The stored document including its new 'id'
        """
        pass

    @abstractmethod
    async def update_document(
        self,
        kind: EntityKind,
        document_id: str,
        fields: Document,
    ) -> Document:
        """
        Apply a partial update.

        Returns:
            The updated document

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def delete_document(self, kind: EntityKind, document_id: str) -> None:
        """
        Delete a document by identifier.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def increment_field(
        self,
        kind: EntityKind,
        document_id: str,
        field: str,
        delta: Decimal,
    ) -> Document:
        """
        Add delta to a numeric field.

        Returns:
            The updated document

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def create_and_increment(
        self,
        kind: EntityKind,
        fields: Document,
        target_kind: EntityKind,
        target_id: str,
        field: str,
        delta: Decimal,
    ) -> tuple[Document, Document]:
        """
        Create a document and increment a field of another one as one operation.

        This is the ledger write: record a transaction and move the balance
        of its account. Backends that cannot do this atomically must either
        undo the created document or raise BalanceAdjustmentError.

        Returns:
            (created_document, updated_target_document)

        Raises:
            NotFoundError: If the target doesn't exist (nothing is written)
            StoreUnavailableError: If nothing was recorded
            BalanceAdjustmentError: If the document was created but the
                target could not be incremented
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StoreUnavailableError(StorageError):
    """Could not reach the storage backend, or the write did not happen."""
    pass


class BalanceAdjustmentError(StorageError):
    """
    A transaction was recorded but its account balance was not adjusted.

    The balance is out of sync with the transaction history until someone
    fixes it by hand; there is no reconciliation job.
    """

    def __init__(self, message: str, recorded: Optional[Document] = None):
        super().__init__(message)
        self.recorded = recorded
