"""docmigrate: versioned schema and data migrations for document stores."""

__version__ = "0.1.0"

# Core components
from docmigrate.core.client import S3ClientManager
from docmigrate.core.exceptions import (
    ConfigurationError,
    DuplicateKeyError,
    DuplicateVersionError,
    ExecutionFailureError,
    MalformedMigrationError,
    MigrationError,
    StorageConnectionError,
    StorageError,
    StorageOperationError,
    TargetNotFoundError,
)
from docmigrate.core.settings import MigrationSettings

# Storage components
from docmigrate.storage import DocumentStore, InMemoryDocumentStore, S3DocumentStore

# Migration components
from docmigrate.migrations import (
    AppliedRecord,
    ExecutionResult,
    MigrationDefinition,
    MigrationRunner,
    MigrationStatus,
    ValidationIssue,
    ValidationReport,
    fingerprint,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "S3ClientManager",
    "MigrationSettings",
    "MigrationError",
    "MalformedMigrationError",
    "DuplicateVersionError",
    "TargetNotFoundError",
    "ExecutionFailureError",
    "StorageError",
    "StorageConnectionError",
    "StorageOperationError",
    "DuplicateKeyError",
    "ConfigurationError",
    # Storage
    "DocumentStore",
    "InMemoryDocumentStore",
    "S3DocumentStore",
    # Migrations
    "AppliedRecord",
    "ExecutionResult",
    "MigrationDefinition",
    "MigrationRunner",
    "MigrationStatus",
    "ValidationIssue",
    "ValidationReport",
    "fingerprint",
]
