"""Data model for docmigrate migrations."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List

VERSION_PATTERN = r"[0-9]{14}"

FORWARD = "forward"
BACKWARD = "backward"


@dataclass(frozen=True)
class MigrationDefinition:
    """A versioned pair of forward/backward operations.

    Definitions are immutable once loaded. ``forward`` and ``backward`` take
    no arguments; if they return an awaitable it is awaited.

    Attributes:
        version: 14-digit UTC timestamp (YYYYMMDDHHMMSS)
        description: Human-readable description of the migration
        forward: Operation applying the migration
        backward: Operation reverting the migration
        filename: Name of the file the migration was loaded from
        source_path: Full path of that file, if loaded from disk
    """

    version: str
    description: str
    forward: Callable[[], Any]
    backward: Callable[[], Any]
    filename: str = ""
    source_path: Path | None = None


@dataclass
class AppliedRecord:
    """Record of an applied migration, as persisted in the state store."""

    version: str
    description: str
    filename: str
    checksum: str
    applied_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "description": self.description,
            "filename": self.filename,
            "applied_at": self.applied_at.isoformat(),
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppliedRecord":
        """Create from dictionary."""
        applied_at = data["applied_at"]
        if isinstance(applied_at, str):
            applied_at = datetime.fromisoformat(applied_at)
        return cls(
            version=data["version"],
            description=data.get("description", ""),
            filename=data.get("filename", ""),
            checksum=data.get("checksum", ""),
            applied_at=applied_at,
        )


@dataclass
class ExecutedMigration:
    """One migration executed within a batch."""

    version: str
    description: str
    duration_ms: int

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "description": self.description,
            "duration": self.duration_ms,
        }


@dataclass
class ExecutionResult:
    """Summary of a migrate or rollback batch."""

    direction: str
    migrations: List[ExecutedMigration] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.migrations)

    @property
    def versions(self) -> List[str]:
        return [m.version for m in self.migrations]

    def to_dict(self) -> dict:
        count_key = "applied" if self.direction == FORWARD else "rolledBack"
        return {
            count_key: self.count,
            "migrations": [m.to_dict() for m in self.migrations],
        }


@dataclass
class ValidationIssue:
    """A single drift finding.

    ``type`` is one of ``missing_file``, ``checksum_mismatch`` or
    ``out_of_order``.
    """

    MISSING_FILE = "missing_file"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    OUT_OF_ORDER = "out_of_order"

    type: str
    version: str
    message: str

    def to_dict(self) -> dict:
        return {"type": self.type, "version": self.version, "description": self.message}


@dataclass
class ValidationReport:
    """Result of validating the applied set against the catalog."""

    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict:
        return {"valid": self.valid, "issues": [i.to_dict() for i in self.issues]}


@dataclass
class MigrationStatus:
    """Progress snapshot of the catalog against the applied set."""

    total: int
    applied: int
    pending: int
    applied_versions: List[str]
    pending_versions: List[str]
    last_applied: AppliedRecord | None = None

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "applied": self.applied,
            "pending": self.pending,
            "applied_versions": list(self.applied_versions),
            "pending_versions": list(self.pending_versions),
            "last_applied": self.last_applied.to_dict() if self.last_applied else None,
        }
