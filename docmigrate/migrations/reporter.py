"""Status and drift reporting."""

from typing import Sequence

from docmigrate.migrations.base import (
    MigrationDefinition,
    MigrationStatus,
    ValidationIssue,
    ValidationReport,
)
from docmigrate.migrations.checksum import fingerprint
from docmigrate.migrations.state import AppliedStateStore


class StatusReporter:
    """Cross-references the catalog with the applied set. Never mutates state."""

    def __init__(
        self,
        catalog: Sequence[MigrationDefinition],
        state: AppliedStateStore,
        out_of_order: Sequence[str] = (),
    ):
        """Initialize the reporter.

        Args:
            catalog: Migration definitions, ascending by version
            state: The applied-state store
            out_of_order: Versions whose filename position diverged from
                version order at load time
        """
        self.catalog = catalog
        self.state = state
        self.out_of_order = out_of_order

    async def status(self) -> MigrationStatus:
        """Get counts and versions of applied and pending migrations."""
        records = await self.state.list_records()
        applied_versions = [r.version for r in records]
        applied_set = set(applied_versions)
        pending_versions = [m.version for m in self.catalog if m.version not in applied_set]

        return MigrationStatus(
            total=len(self.catalog),
            applied=len(applied_versions),
            pending=len(pending_versions),
            applied_versions=applied_versions,
            pending_versions=pending_versions,
            last_applied=records[-1] if records else None,
        )

    async def validate(self) -> ValidationReport:
        """Report drift between applied records and the catalog.

        Returns:
            ValidationReport; ``valid`` is True when no issues were found
        """
        by_version = {m.version: m for m in self.catalog}
        issues = []

        for record in await self.state.list_records():
            migration = by_version.get(record.version)
            if migration is None:
                issues.append(
                    ValidationIssue(
                        ValidationIssue.MISSING_FILE,
                        record.version,
                        "Migration file not found for applied migration",
                    )
                )
                continue

            # Records written without a checksum are not compared
            if record.checksum and record.checksum != fingerprint(migration):
                issues.append(
                    ValidationIssue(
                        ValidationIssue.CHECKSUM_MISMATCH,
                        record.version,
                        "Migration file has been modified after application",
                    )
                )

        for version in self.out_of_order:
            migration = by_version.get(version)
            where = f" ({migration.filename})" if migration and migration.filename else ""
            issues.append(
                ValidationIssue(
                    ValidationIssue.OUT_OF_ORDER,
                    version,
                    f"Migration filename{where} does not sort in version order",
                )
            )

        return ValidationReport(issues=issues)
