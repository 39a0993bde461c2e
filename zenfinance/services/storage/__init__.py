"""
Storage Services Package

Provides the abstract document-store interface, its Google Sheets and
in-memory implementations, and the typed RecordStore adapter on top.
"""

from zenfinance.services.storage.interface import (
    BalanceAdjustmentError,
    Document,
    DocumentStoreInterface,
    EntityKind,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)
from zenfinance.services.storage.memory import InMemoryDocumentStore
from zenfinance.services.storage.records import RecordStore, sort_most_recent_first
from zenfinance.services.storage.demo_data import seed_demo_data
from zenfinance.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "Document",
    "DocumentStoreInterface",
    "EntityKind",
    # Exceptions
    "BalanceAdjustmentError",
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    # Typed adapter
    "RecordStore",
    "seed_demo_data",
    "sort_most_recent_first",
]
