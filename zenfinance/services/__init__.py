"""Services package."""

from zenfinance.services.storage import (
    BalanceAdjustmentError,
    DocumentStoreInterface,
    EntityKind,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    RecordStore,
    StorageError,
    StoreUnavailableError,
)

__all__ = [
    "BalanceAdjustmentError",
    "DocumentStoreInterface",
    "EntityKind",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "RecordStore",
    "StorageError",
    "StoreUnavailableError",
]
