"""Execution engine: computes and runs migrate/rollback batches."""

import inspect
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, List, Sequence

from docmigrate.core.exceptions import ExecutionFailureError, TargetNotFoundError
from docmigrate.migrations.base import (
    BACKWARD,
    FORWARD,
    ExecutedMigration,
    ExecutionResult,
    MigrationDefinition,
)
from docmigrate.migrations.checksum import fingerprint
from docmigrate.migrations.state import AppliedStateStore
from docmigrate.storage.base import DocumentStore

logger = logging.getLogger(__name__)


class BatchState(str, Enum):
    """Lifecycle of a single migrate or rollback call."""

    IDLE = "idle"
    COMPUTING = "computing"
    EXECUTING = "executing"
    COMPLETED = "completed"
    HALTED = "halted"


async def _invoke(operation: Callable[[], Any]) -> None:
    result = operation()
    if inspect.isawaitable(result):
        await result


class ExecutionEngine:
    """Runs migrations one at a time, in order, halting on the first failure.

    Migrations never run concurrently: later migrations may depend on the
    schema produced by earlier ones. The engine takes no lock, so only one
    runner process may operate on a backend at a time.
    """

    def __init__(
        self,
        catalog: Sequence[MigrationDefinition],
        state: AppliedStateStore,
        store: DocumentStore,
        log: logging.Logger | None = None,
    ):
        """Initialize the engine.

        Args:
            catalog: Migration definitions, ascending by version
            state: The applied-state store
            store: The storage backend, queried for transaction support
            log: Logger to report progress to
        """
        self.catalog = catalog
        self.state = state
        self.store = store
        self.log = log or logger
        self.batch_state = BatchState.IDLE

    def _find(self, version: str) -> MigrationDefinition | None:
        return next((m for m in self.catalog if m.version == version), None)

    async def _run_scoped(self, work: Callable[[], Awaitable[None]]) -> None:
        """Run work inside a transaction when the backend supports one.

        Without transaction support the body and the state write run
        unscoped: a crash between them leaves the change unrecorded.
        """
        if self.store.supports_transactions():
            async with self.store.transaction():
                await work()
        else:
            await work()

    async def pending(self, target_version: str | None = None) -> List[MigrationDefinition]:
        """Get migrations not yet applied, ascending.

        Args:
            target_version: Only include versions up to and including this one
        """
        applied = set(await self.state.list_applied())
        pending = [m for m in self.catalog if m.version not in applied]
        if target_version:
            pending = [m for m in pending if m.version <= target_version]
        return pending

    async def migrate(self, target_version: str | None = None) -> ExecutionResult:
        """Apply pending migrations in ascending order.

        Args:
            target_version: Stop after this version (inclusive)

        Returns:
            ExecutionResult listing applied migrations

        Raises:
            ExecutionFailureError: If a migration fails; the batch halts there
        """
        self.batch_state = BatchState.COMPUTING
        result = ExecutionResult(direction=FORWARD)
        try:
            to_run = await self.pending(target_version)
        except Exception:
            self.batch_state = BatchState.HALTED
            raise

        if not to_run:
            self.log.info("No pending migrations")
            self.batch_state = BatchState.COMPLETED
            return result

        self.batch_state = BatchState.EXECUTING
        for migration in to_run:
            self.log.info(
                f"Applying migration {migration.version}: {migration.description}",
                extra={"version": migration.version, "description": migration.description},
            )
            start = time.perf_counter()

            async def work(m=migration):
                await _invoke(m.forward)
                await self.state.record(m, fingerprint(m))

            try:
                await self._run_scoped(work)
            except Exception as e:
                self.batch_state = BatchState.HALTED
                self.log.error(
                    f"Migration {migration.version} failed: {e}",
                    extra={
                        "version": migration.version,
                        "description": migration.description,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                raise ExecutionFailureError(
                    migration.version,
                    migration.description,
                    FORWARD,
                    e,
                    completed=result.migrations,
                ) from e

            duration = int((time.perf_counter() - start) * 1000)
            self.log.info(
                f"Migration {migration.version} applied in {duration}ms",
                extra={"version": migration.version, "duration": duration},
            )
            result.migrations.append(
                ExecutedMigration(migration.version, migration.description, duration)
            )

        self.batch_state = BatchState.COMPLETED
        self.log.info(
            f"Migration batch completed: {result.count} applied",
            extra={"applied": result.count, "total": len(to_run)},
        )
        return result

    def _select_rollback(
        self,
        applied: List[str],
        target_version: str | None,
        steps: int,
    ) -> List[str]:
        if target_version:
            if target_version not in applied:
                raise TargetNotFoundError(target_version)
            # The target itself stays applied
            index = applied.index(target_version)
            return list(reversed(applied[index + 1:]))
        return list(reversed(applied[-steps:]))

    async def rollback(
        self,
        target_version: str | None = None,
        steps: int = 1,
    ) -> ExecutionResult:
        """Revert applied migrations, most recent first.

        Args:
            target_version: Roll back everything applied after this version
            steps: Number of migrations to roll back when no target is given

        Returns:
            ExecutionResult listing rolled back migrations

        Raises:
            ValueError: If steps is less than 1
            TargetNotFoundError: If target_version is not applied
            ExecutionFailureError: If a rollback fails; the batch halts there
        """
        if not target_version and steps < 1:
            raise ValueError(f"steps must be at least 1, got {steps}")

        self.batch_state = BatchState.COMPUTING
        result = ExecutionResult(direction=BACKWARD)
        try:
            applied = await self.state.list_applied()
            if not applied:
                self.log.info("No migrations to rollback")
                self.batch_state = BatchState.COMPLETED
                return result
            to_rollback = self._select_rollback(applied, target_version, steps)
        except Exception:
            self.batch_state = BatchState.HALTED
            raise

        self.batch_state = BatchState.EXECUTING
        for version in to_rollback:
            migration = self._find(version)
            if migration is None:
                self.log.warning(
                    f"Migration file not found for rollback of {version}, skipping",
                    extra={"version": version},
                )
                continue

            self.log.info(
                f"Rolling back migration {migration.version}: {migration.description}",
                extra={"version": migration.version, "description": migration.description},
            )
            start = time.perf_counter()

            async def work(m=migration):
                await _invoke(m.backward)
                await self.state.remove(m.version)

            try:
                await self._run_scoped(work)
            except Exception as e:
                self.batch_state = BatchState.HALTED
                self.log.error(
                    f"Rollback {migration.version} failed: {e}",
                    extra={
                        "version": migration.version,
                        "description": migration.description,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                raise ExecutionFailureError(
                    migration.version,
                    migration.description,
                    BACKWARD,
                    e,
                    completed=result.migrations,
                ) from e

            duration = int((time.perf_counter() - start) * 1000)
            self.log.info(
                f"Migration {migration.version} rolled back in {duration}ms",
                extra={"version": migration.version, "duration": duration},
            )
            result.migrations.append(
                ExecutedMigration(migration.version, migration.description, duration)
            )

        self.batch_state = BatchState.COMPLETED
        self.log.info(
            f"Rollback completed: {result.count} rolled back",
            extra={"rolled_back": result.count},
        )
        return result
