"""Persisted record of applied migrations."""

import logging
from typing import List

from docmigrate.core.exceptions import DuplicateKeyError, DuplicateVersionError
from docmigrate.migrations.base import AppliedRecord, MigrationDefinition
from docmigrate.storage.base import DocumentStore

logger = logging.getLogger(__name__)


class AppliedStateStore:
    """Append-only set of AppliedRecords kept in a document collection.

    The records, ordered by version, are the only source of truth for which
    migrations the database has been through.
    """

    def __init__(self, store: DocumentStore, collection: str = "migrations"):
        """Initialize the state store.

        Args:
            store: The document storage backend
            collection: Name of the collection holding applied records
        """
        self.store = store
        self.collection = collection

    async def ensure_initialized(self) -> None:
        """Create the backing collection if it does not exist yet."""
        if not await self.store.collection_exists(self.collection):
            await self.store.create_collection(self.collection)
            logger.info(f"Created {self.collection} collection")

    async def list_records(self) -> List[AppliedRecord]:
        """Get applied records, ascending by version."""
        documents = await self.store.find(self.collection, sort_by="version")
        return [AppliedRecord.from_dict(doc) for doc in documents]

    async def list_applied(self) -> List[str]:
        """Get applied versions, ascending."""
        return [record.version for record in await self.list_records()]

    async def record(
        self,
        definition: MigrationDefinition,
        checksum: str,
    ) -> AppliedRecord:
        """Record a migration as applied.

        Args:
            definition: The migration that completed forward execution
            checksum: Fingerprint of the definition at apply time

        Returns:
            The stored record

        Raises:
            DuplicateVersionError: If the version is already recorded
        """
        record = AppliedRecord(
            version=definition.version,
            description=definition.description,
            filename=definition.filename,
            checksum=checksum,
        )
        try:
            await self.store.insert_one(self.collection, record.version, record.to_dict())
        except DuplicateKeyError as e:
            raise DuplicateVersionError(definition.version) from e
        return record

    async def remove(self, version: str) -> bool:
        """Remove the record for a version; absent records are ignored.

        Returns:
            True if a record was removed
        """
        return await self.store.delete_one(self.collection, version)
