"""Storage backend interface for docmigrate."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any


class DocumentStore(ABC):
    """Abstract base class for document storage backends.

    The runner only needs a handful of primitives from the datastore:
    collection management, an ordered scan, single-document insert and
    delete by key, and an optional transactional scope.
    """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check whether a collection exists.

        Args:
            name: The collection name

        Returns:
            True if the collection exists
        """
        pass

    @abstractmethod
    async def create_collection(self, name: str) -> None:
        """Create a collection.

        Args:
            name: The collection name
        """
        pass

    @abstractmethod
    async def find(
        self,
        collection: str,
        sort_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return every document in a collection.

        Args:
            collection: The collection name
            sort_by: Optional field to sort ascending by

        Returns:
            List of documents
        """
        pass

    @abstractmethod
    async def insert_one(
        self,
        collection: str,
        key: str,
        document: dict[str, Any],
    ) -> None:
        """Insert a single document.

        Args:
            collection: The collection name
            key: Unique key of the document within the collection
            document: The document body

        Raises:
            DuplicateKeyError: If a document with this key already exists
        """
        pass

    @abstractmethod
    async def delete_one(self, collection: str, key: str) -> bool:
        """Delete a single document by key.

        Args:
            collection: The collection name
            key: The document key

        Returns:
            True if the document existed and was deleted
        """
        pass

    def supports_transactions(self) -> bool:
        """Report whether this deployment supports multi-document transactions."""
        return False

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transactional scope.

        Default implementation raises NotImplementedError.
        Backends that return True from supports_transactions() must override.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not support transactions"
        )
