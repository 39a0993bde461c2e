"""
In-Memory Storage Implementation

Used for offline/demo mode (no Google Sheets configured) and in tests.
Nothing survives the process; writes only change this object's state.

Unlike the Sheets backend, create_and_increment is atomic here: all
writes run under one asyncio.Lock and the target is checked before
anything is written.
"""

import asyncio
import copy
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from zenfinance.services.storage.interface import (
    Document,
    DocumentStoreInterface,
    EntityKind,
    NotFoundError,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-backed document store, one ordered collection per entity kind."""

    def __init__(self):
        self._collections: dict[EntityKind, dict[str, Document]] = {
            kind: {} for kind in EntityKind
        }
        self._lock = asyncio.Lock()

    @staticmethod
    def _new_id() -> str:
        return uuid4().hex

    @staticmethod
    def _matches(
        document: Document,
        owner_id: Optional[str],
        filters: Optional[dict[str, Any]],
    ) -> bool:
        if owner_id is not None and document.get("owner_id") != owner_id:
            return False
        for key, value in (filters or {}).items():
            if document.get(key) != value:
                return False
        return True

    def _require(self, kind: EntityKind, document_id: str) -> Document:
        document = self._collections[kind].get(document_id)
        if document is None:
            raise NotFoundError(f"{kind.value} not found: {document_id}")
        return document

    @staticmethod
    def _incremented(document: Document, field: str, delta: Decimal) -> Document:
        current = Decimal(str(document.get(field) or "0"))
        return {**document, field: current + delta}

    async def list_documents(
        self,
        kind: EntityKind,
        owner_id: Optional[str] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[Document]:
        return [
            copy.deepcopy(document)
            for document in self._collections[kind].values()
            if self._matches(document, owner_id, filters)
        ]

    async def get_document(self, kind: EntityKind, document_id: str) -> Optional[Document]:
        document = self._collections[kind].get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def create_document(self, kind: EntityKind, fields: Document) -> Document:
        async with self._lock:
            document = {**copy.deepcopy(fields), "id": self._new_id()}
            self._collections[kind][document["id"]] = document
            return copy.deepcopy(document)

    async def update_document(
        self,
        kind: EntityKind,
        document_id: str,
        fields: Document,
    ) -> Document:
        async with self._lock:
            document = self._require(kind, document_id)
            updates = {k: v for k, v in copy.deepcopy(fields).items() if k != "id"}
            document.update(updates)
            return copy.deepcopy(document)

    async def delete_document(self, kind: EntityKind, document_id: str) -> None:
        async with self._lock:
            self._require(kind, document_id)
            del self._collections[kind][document_id]

    async def increment_field(
        self,
        kind: EntityKind,
        document_id: str,
        field: str,
        delta: Decimal,
    ) -> Document:
        async with self._lock:
            document = self._require(kind, document_id)
            updated = self._incremented(document, field, delta)
            self._collections[kind][document_id] = updated
            return copy.deepcopy(updated)

    async def create_and_increment(
        self,
        kind: EntityKind,
        fields: Document,
        target_kind: EntityKind,
        target_id: str,
        field: str,
        delta: Decimal,
    ) -> tuple[Document, Document]:
        async with self._lock:
            target = self._require(target_kind, target_id)
            updated_target = self._incremented(target, field, delta)

            created = {**copy.deepcopy(fields), "id": self._new_id()}
            self._collections[kind][created["id"]] = created
            self._collections[target_kind][target_id] = updated_target
            return copy.deepcopy(created), copy.deepcopy(updated_target)
