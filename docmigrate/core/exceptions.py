"""Custom exceptions for docmigrate.

This module provides a hierarchy of exceptions with helpful error messages
so operators can tell load-time problems, execution failures and storage
problems apart.
"""

from typing import Sequence


class MigrationError(Exception):
    """Base exception for all docmigrate errors.

    All docmigrate exceptions inherit from this class, making it easy
    to catch all framework-specific errors.
    """

    def __init__(self, message: str, hint: str | None = None):
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class MalformedMigrationError(MigrationError):
    """Raised when a migration unit fails structural validation at load time."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        field: str | None = None,
    ):
        """Initialize the malformed migration error.

        Args:
            message: The error message
            filename: The migration file that failed validation
            field: The offending attribute, if any
        """
        self.filename = filename
        self.field = field

        hint = None
        if field == "version":
            hint = "Versions are 14-digit UTC timestamps (YYYYMMDDHHMMSS)."
        elif field in ("forward", "backward"):
            hint = "Define 'async def forward()' and 'async def backward()' at module level."
        elif field:
            hint = f"Add a module-level '{field}' attribute to the migration file."

        super().__init__(message, hint)


class DuplicateVersionError(MigrationError):
    """Raised when a migration version appears twice."""

    def __init__(self, version: str, filename: str | None = None):
        """Initialize the duplicate version error.

        Args:
            version: The duplicated version
            filename: The file that introduced the duplicate, if known
        """
        self.version = version
        self.filename = filename

        if filename:
            message = f"Duplicate migration version {version} in {filename}"
        else:
            message = f"Migration version {version} is already recorded"

        super().__init__(
            message,
            "Regenerate one of the migrations with 'docmigrate migrate create'.",
        )


class TargetNotFoundError(MigrationError):
    """Raised when a rollback target is not in the applied set."""

    def __init__(self, target_version: str):
        """Initialize the target not found error.

        Args:
            target_version: The requested rollback target
        """
        self.target_version = target_version
        super().__init__(
            f"Target version {target_version} not found in applied migrations",
            "Run 'docmigrate migrate status' to list applied versions.",
        )


class ExecutionFailureError(MigrationError):
    """Raised when a migration's forward or backward logic fails.

    The batch halts at the failing migration. Migrations that completed
    earlier in the same batch stay committed and are listed in ``completed``.
    """

    def __init__(
        self,
        version: str,
        description: str,
        direction: str,
        original_error: Exception,
        completed: Sequence = (),
    ):
        """Initialize the execution failure.

        Args:
            version: Version of the failing migration
            description: Description of the failing migration
            direction: "forward" or "backward"
            original_error: The exception raised by the migration body
            completed: Entries that completed before the failure
        """
        self.version = version
        self.description = description
        self.direction = direction
        self.original_error = original_error
        self.completed = list(completed)

        label = "Migration" if direction == "forward" else "Rollback"
        super().__init__(
            f"{label} {version} failed: {original_error}",
            "Fix the migration and run it again; failed migrations are never retried.",
        )


class StorageError(MigrationError):
    """Base class for errors raised at the storage backend boundary."""


class StorageConnectionError(StorageError):
    """Raised when the storage backend cannot be reached."""

    def __init__(
        self,
        message: str | None = None,
        original_error: Exception | None = None,
        endpoint: str | None = None,
    ):
        """Initialize the connection error.

        Args:
            message: Custom error message (optional)
            original_error: The original exception that caused this error
            endpoint: The endpoint URL being connected to
        """
        self.original_error = original_error
        self.endpoint = endpoint

        hint = None
        if message:
            final_message = message
        elif original_error:
            final_message = f"Could not connect to {endpoint or 'AWS'}: {original_error}"
        else:
            final_message = "Failed to connect to the storage backend"

        if endpoint and "localhost" in endpoint:
            hint = "If using LocalStack, ensure it's running: docker run -d -p 4566:4566 localstack/localstack"
        elif original_error or not message:
            hint = "Check your AWS credentials and network connection."

        super().__init__(final_message, hint)


class StorageOperationError(StorageError):
    """Raised when a storage operation fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the operation error.

        Args:
            message: The error message
            operation: The backend operation that failed (e.g., 'put_object')
            key: The storage key involved in the operation
            original_error: The original exception
        """
        self.operation = operation
        self.key = key
        self.original_error = original_error

        hint = None
        if "NoSuchBucket" in message:
            hint = "The specified bucket does not exist."
        elif "AccessDenied" in message:
            hint = "Check your IAM permissions for this operation."

        super().__init__(message, hint)


class DuplicateKeyError(StorageError):
    """Raised when inserting a document whose key already exists."""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"Document '{key}' already exists in '{collection}'")


class ConfigurationError(MigrationError):
    """Raised when docmigrate configuration is invalid."""

    def __init__(
        self,
        message: str | None = None,
        missing_fields: list[str] | None = None,
    ):
        """Initialize the configuration error.

        Args:
            message: Custom error message
            missing_fields: List of missing configuration fields
        """
        self.missing_fields = missing_fields or []

        if missing_fields:
            fields_str = ", ".join(missing_fields)
            message = f"Missing required configuration: {fields_str}"
            hint = "Set these as environment variables or in your .env file."
        else:
            hint = "Check your docmigrate configuration."

        super().__init__(message or "Invalid docmigrate configuration", hint)
