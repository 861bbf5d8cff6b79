"""Migration runner for docmigrate."""

import logging
from pathlib import Path
from typing import List

from docmigrate.core.exceptions import DuplicateVersionError
from docmigrate.migrations.base import (
    ExecutionResult,
    MigrationDefinition,
    MigrationStatus,
    ValidationReport,
)
from docmigrate.migrations.engine import ExecutionEngine
from docmigrate.migrations.loader import MigrationLoader, validate_definition
from docmigrate.migrations.reporter import StatusReporter
from docmigrate.migrations.scaffold import create_migration_file
from docmigrate.migrations.state import AppliedStateStore
from docmigrate.storage.base import DocumentStore

logger = logging.getLogger(__name__)


class MigrationRunner:
    """Runs migrations against a document store.

    This runner:
    - Loads migrations from Python files (or programmatic registration)
    - Tracks which migrations have been applied
    - Applies pending migrations in order, halting on the first failure
    - Rolls back applied migrations, most recent first
    - Reports status and drift between the catalog and the applied set

    Only one runner may operate on a given store at a time. Concurrent
    migrate/rollback calls from separate processes can lose updates to the
    applied set.
    """

    def __init__(
        self,
        store: DocumentStore,
        migrations_dir: Path | None = None,
        collection: str = "migrations",
        log: logging.Logger | None = None,
    ):
        """Initialize the migration runner.

        Args:
            store: The document storage backend
            migrations_dir: Directory containing migration files
            collection: Collection that holds applied records
            log: Logger to report to (defaults to this module's logger)
        """
        self.store = store
        self.migrations_dir = Path(migrations_dir) if migrations_dir else None
        self.log = log or logger
        self.state = AppliedStateStore(store, collection)
        self._loader = MigrationLoader()
        self._migrations: List[MigrationDefinition] = []
        self._registered: List[MigrationDefinition] = []
        self._initialized = False

    @property
    def migrations(self) -> List[MigrationDefinition]:
        """The loaded catalog, ascending by version."""
        return list(self._migrations)

    def _build_catalog(self, loaded: List[MigrationDefinition]) -> List[MigrationDefinition]:
        catalog = list(loaded)
        versions = {m.version for m in catalog}
        for migration in self._registered:
            if migration.version in versions:
                raise DuplicateVersionError(
                    migration.version, filename=migration.filename or "<registered>"
                )
            versions.add(migration.version)
            catalog.append(migration)
        catalog.sort(key=lambda m: m.version)
        return catalog

    async def initialize(self) -> None:
        """Ensure the state collection exists and load the catalog.

        Raises:
            MalformedMigrationError: If any migration file is malformed
            DuplicateVersionError: If two migrations share a version
        """
        self._initialized = False
        self._migrations = []
        try:
            await self.state.ensure_initialized()
            catalog = self._build_catalog(self._loader.load(self.migrations_dir))
        except Exception as e:
            self.log.error(
                f"Failed to initialize migration system: {e}",
                extra={"error": str(e)},
            )
            raise

        self._migrations = catalog
        self._initialized = True
        self.log.info(
            f"Migration system initialized with {len(catalog)} migration(s)",
            extra={"total_migrations": len(catalog)},
        )

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    def register(self, migration: MigrationDefinition) -> None:
        """Register a migration programmatically.

        Args:
            migration: The migration to register

        Raises:
            MalformedMigrationError: If the definition is invalid
            DuplicateVersionError: If the version is already registered
        """
        validate_definition(migration)
        known = {m.version for m in self._registered} | {m.version for m in self._migrations}
        if migration.version in known:
            raise DuplicateVersionError(
                migration.version, filename=migration.filename or "<registered>"
            )
        self._registered.append(migration)
        if self._initialized:
            self._migrations = sorted(
                self._migrations + [migration], key=lambda m: m.version
            )

    def _engine(self) -> ExecutionEngine:
        return ExecutionEngine(self._migrations, self.state, self.store, log=self.log)

    def _reporter(self) -> StatusReporter:
        return StatusReporter(
            self._migrations, self.state, out_of_order=self._loader.out_of_order
        )

    async def get_applied_migrations(self) -> List[str]:
        """Get list of applied migration versions, ascending."""
        await self._ensure_initialized()
        return await self.state.list_applied()

    async def get_pending_migrations(self) -> List[MigrationDefinition]:
        """Get migrations that haven't been applied, ascending."""
        await self._ensure_initialized()
        return await self._engine().pending()

    async def migrate(self, target_version: str | None = None) -> ExecutionResult:
        """Apply pending migrations up to an optional target (inclusive).

        Raises:
            ExecutionFailureError: If a migration fails
        """
        await self._ensure_initialized()
        try:
            return await self._engine().migrate(target_version)
        except Exception as e:
            self.log.error(f"Migration process failed: {e}", extra={"error": str(e)})
            raise

    async def rollback(
        self,
        target_version: str | None = None,
        steps: int = 1,
    ) -> ExecutionResult:
        """Roll back to a target version (exclusive) or by a number of steps.

        Raises:
            TargetNotFoundError: If target_version is not applied
            ExecutionFailureError: If a rollback fails
        """
        await self._ensure_initialized()
        try:
            return await self._engine().rollback(target_version, steps)
        except Exception as e:
            self.log.error(f"Rollback process failed: {e}", extra={"error": str(e)})
            raise

    async def get_status(self) -> MigrationStatus:
        """Get migration progress."""
        await self._ensure_initialized()
        return await self._reporter().status()

    async def validate(self) -> ValidationReport:
        """Check applied migrations against the catalog for drift."""
        await self._ensure_initialized()
        return await self._reporter().validate()

    def create_migration(self, name: str, description: str) -> dict:
        """Scaffold a new migration file in the migrations directory.

        Args:
            name: Short name used in the filename
            description: Human-readable description

        Returns:
            Dictionary with filename, version and path
        """
        directory = self.migrations_dir or Path("migrations")
        created = create_migration_file(directory, name, description)
        self.log.info(
            f"Migration file created: {created['filename']}",
            extra={"migration_file": created["filename"], "path": str(created["path"])},
        )
        return created
