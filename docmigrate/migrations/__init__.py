"""Migration system for docmigrate.

Migrations are Python files exposing ``version``, ``description``,
``forward`` and ``backward``. The runner applies them in version order,
records each applied migration with a checksum, and can roll them back or
report drift.
"""

from docmigrate.migrations.base import (
    AppliedRecord,
    ExecutedMigration,
    ExecutionResult,
    MigrationDefinition,
    MigrationStatus,
    ValidationIssue,
    ValidationReport,
)
from docmigrate.migrations.checksum import fingerprint
from docmigrate.migrations.engine import BatchState, ExecutionEngine
from docmigrate.migrations.loader import MigrationLoader
from docmigrate.migrations.reporter import StatusReporter
from docmigrate.migrations.runner import MigrationRunner
from docmigrate.migrations.state import AppliedStateStore

__all__ = [
    "AppliedRecord",
    "AppliedStateStore",
    "BatchState",
    "ExecutedMigration",
    "ExecutionEngine",
    "ExecutionResult",
    "MigrationDefinition",
    "MigrationLoader",
    "MigrationRunner",
    "MigrationStatus",
    "StatusReporter",
    "ValidationIssue",
    "ValidationReport",
    "fingerprint",
]
