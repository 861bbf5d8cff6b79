"""In-memory document store for docmigrate."""

import copy
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from docmigrate.core.exceptions import DuplicateKeyError, StorageOperationError
from docmigrate.storage.base import DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store.

    Suitable for tests and single-process tools. When created with
    ``transactional=True`` it emulates multi-document transactions by
    snapshotting every collection on entry and restoring the snapshot if the
    scope raises.
    """

    def __init__(self, transactional: bool = False):
        """Initialize the store.

        Args:
            transactional: Whether to advertise transaction support
        """
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.transactional = transactional
        self.transactions_started = 0
        self.transactions_aborted = 0

    def _get_collection(self, name: str) -> dict[str, dict[str, Any]]:
        if name not in self._collections:
            raise StorageOperationError(
                f"Collection '{name}' does not exist",
                operation="find",
                key=name,
            )
        return self._collections[name]

    async def collection_exists(self, name: str) -> bool:
        return name in self._collections

    async def create_collection(self, name: str) -> None:
        self._collections.setdefault(name, {})

    async def find(
        self,
        collection: str,
        sort_by: str | None = None,
    ) -> list[dict[str, Any]]:
        documents = [
            copy.deepcopy(doc) for doc in self._get_collection(collection).values()
        ]
        if sort_by:
            documents.sort(key=lambda d: d.get(sort_by))
        return documents

    async def insert_one(
        self,
        collection: str,
        key: str,
        document: dict[str, Any],
    ) -> None:
        # Mongo-style implicit collection creation
        docs = self._collections.setdefault(collection, {})
        if key in docs:
            raise DuplicateKeyError(collection, key)
        docs[key] = copy.deepcopy(document)

    async def delete_one(self, collection: str, key: str) -> bool:
        docs = self._collections.get(collection, {})
        return docs.pop(key, None) is not None

    def supports_transactions(self) -> bool:
        return self.transactional

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        """Snapshot-and-restore transactional scope."""
        if not self.transactional:
            raise NotImplementedError(
                "InMemoryDocumentStore was created without transaction support"
            )
        snapshot = copy.deepcopy(self._collections)
        self.transactions_started += 1
        try:
            yield
        except BaseException:
            self._collections = snapshot
            self.transactions_aborted += 1
            raise

    def clear(self) -> None:
        """Remove all collections."""
        self._collections.clear()

    def dump(self, collection: str) -> dict[str, dict[str, Any]]:
        """Get all documents in a collection (for testing assertions)."""
        return copy.deepcopy(self._collections.get(collection, {}))
