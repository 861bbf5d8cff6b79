"""Tests for MigrationRunner with file-based migrations."""

import pytest

from docmigrate.core.exceptions import (
    DuplicateVersionError,
    ExecutionFailureError,
    MalformedMigrationError,
    TargetNotFoundError,
)
from docmigrate.migrations.base import MigrationDefinition, ValidationIssue
from docmigrate.migrations.runner import MigrationRunner
from docmigrate.testing.utils import write_migration

A = "20240101000000"
B = "20240102000000"
C = "20240103000000"

JOURNAL = "from docmigrate.testing.utils import journal"


def write_recording_migration(migrations_dir, version, name, fail=False):
    forward_body = f"journal.append('forward:{version}')"
    if fail:
        forward_body = f"raise RuntimeError('{name} is broken')"
    return write_migration(
        migrations_dir,
        version,
        name,
        forward_body=forward_body,
        backward_body=f"journal.append('backward:{version}')",
        preamble=JOURNAL,
    )


class TestInitialize:
    """Tests for runner initialization."""

    @pytest.mark.asyncio
    async def test_initialize_creates_collection_and_loads(
        self, runner, memory_store, migrations_dir
    ):
        """The state collection exists and the catalog is loaded."""
        write_recording_migration(migrations_dir, A, "first")

        await runner.initialize()

        assert await memory_store.collection_exists("migrations")
        assert [m.version for m in runner.migrations] == [A]

    @pytest.mark.asyncio
    async def test_malformed_migration_aborts_initialize(self, runner, migrations_dir):
        """A bad version loads zero migrations and keeps failing."""
        write_recording_migration(migrations_dir, A, "first")
        write_migration(migrations_dir, "2024-01-01", "bad", filename=f"{B}_bad.py")

        with pytest.raises(MalformedMigrationError):
            await runner.initialize()

        assert runner.migrations == []
        with pytest.raises(MalformedMigrationError):
            await runner.migrate()

    @pytest.mark.asyncio
    async def test_operations_initialize_lazily(self, runner, migrations_dir):
        """migrate() works without an explicit initialize()."""
        write_recording_migration(migrations_dir, A, "first")

        result = await runner.migrate()

        assert result.versions == [A]

    @pytest.mark.asyncio
    async def test_custom_collection(self, memory_store, migrations_dir):
        """Applied records go to the configured collection."""
        write_recording_migration(migrations_dir, A, "first")
        runner = MigrationRunner(memory_store, migrations_dir, collection="_schema")

        await runner.migrate()

        assert list(memory_store.dump("_schema")) == [A]


class TestMigrateAndRollback:
    """End-to-end tests through the runner."""

    @pytest.mark.asyncio
    async def test_full_migrate_matches_catalog(self, runner, migrations_dir, reset_journal):
        """After migrate() the applied set equals the catalog, in order."""
        for version, name in ((C, "third"), (A, "first"), (B, "second")):
            write_recording_migration(migrations_dir, version, name)

        await runner.migrate()

        assert await runner.get_applied_migrations() == [A, B, C]
        assert reset_journal == [f"forward:{A}", f"forward:{B}", f"forward:{C}"]

    @pytest.mark.asyncio
    async def test_halt_on_failure(self, runner, migrations_dir, reset_journal):
        """A applied, B failed, C not reached; the error names B."""
        write_recording_migration(migrations_dir, A, "first")
        write_recording_migration(migrations_dir, B, "second", fail=True)
        write_recording_migration(migrations_dir, C, "third")

        with pytest.raises(ExecutionFailureError) as exc_info:
            await runner.migrate()

        assert exc_info.value.version == B
        assert "second is broken" in str(exc_info.value)
        assert await runner.get_applied_migrations() == [A]
        assert reset_journal == [f"forward:{A}"]

    @pytest.mark.asyncio
    async def test_rollback_round_trip(self, runner, migrations_dir, reset_journal):
        """migrate then rollback(steps=1) restores the applied set."""
        write_recording_migration(migrations_dir, A, "first")
        before = await runner.get_applied_migrations()

        await runner.migrate()
        result = await runner.rollback(steps=1)

        assert result.to_dict()["rolledBack"] == 1
        assert await runner.get_applied_migrations() == before
        assert reset_journal == [f"forward:{A}", f"backward:{A}"]

    @pytest.mark.asyncio
    async def test_rollback_unknown_target(self, runner, migrations_dir):
        """Rolling back to a version that was never applied fails."""
        write_recording_migration(migrations_dir, A, "first")
        await runner.migrate()

        with pytest.raises(TargetNotFoundError):
            await runner.rollback(target_version=B)

    @pytest.mark.asyncio
    async def test_deleted_file_is_skipped_and_reported(
        self, memory_store, migrations_dir, reset_journal
    ):
        """A deleted migration file is skipped on rollback and flagged by validate()."""
        write_recording_migration(migrations_dir, A, "first")
        doomed = write_recording_migration(migrations_dir, B, "second")
        await MigrationRunner(memory_store, migrations_dir).migrate()
        doomed.unlink()
        reset_journal.clear()

        runner = MigrationRunner(memory_store, migrations_dir)
        report = await runner.validate()
        result = await runner.rollback(steps=2)

        assert [(i.type, i.version) for i in report.issues] == [
            (ValidationIssue.MISSING_FILE, B)
        ]
        assert result.versions == [A]
        assert reset_journal == [f"backward:{A}"]
        assert await runner.get_applied_migrations() == [B]


class TestDrift:
    """Tests for drift detection through the runner."""

    @pytest.mark.asyncio
    async def test_edited_migration_is_flagged(self, memory_store, migrations_dir):
        """Editing an applied migration yields one checksum_mismatch."""
        write_recording_migration(migrations_dir, A, "first")
        write_recording_migration(migrations_dir, B, "second")
        await MigrationRunner(memory_store, migrations_dir).migrate()

        write_migration(
            migrations_dir,
            A,
            "first",
            forward_body="journal.append('forward:A with a brand new behaviour')",
            backward_body=f"journal.append('backward:{A}')",
            preamble=JOURNAL,
        )
        report = await MigrationRunner(memory_store, migrations_dir).validate()

        assert report.valid is False
        assert [(i.type, i.version) for i in report.issues] == [
            (ValidationIssue.CHECKSUM_MISMATCH, A)
        ]

    @pytest.mark.asyncio
    async def test_unchanged_catalog_is_valid(self, runner, migrations_dir):
        """No edits, no drift."""
        write_recording_migration(migrations_dir, A, "first")
        await runner.migrate()

        report = await runner.validate()

        assert report.valid is True


class TestStatus:
    """Tests for get_status()."""

    @pytest.mark.asyncio
    async def test_status_after_partial_migrate(self, runner, migrations_dir):
        """Status reflects a migrate bounded by a target."""
        for version, name in ((A, "first"), (B, "second"), (C, "third")):
            write_recording_migration(migrations_dir, version, name)

        await runner.migrate(target_version=A)
        status = await runner.get_status()

        assert status.total == 3
        assert status.applied == 1
        assert status.pending == 2
        assert status.pending_versions == [B, C]
        assert status.last_applied.version == A
        assert status.last_applied.filename == f"{A}_first.py"


class TestRegister:
    """Tests for programmatic registration."""

    @pytest.fixture
    def calls(self):
        return []

    def _definition(self, version, calls):
        async def forward():
            calls.append(version)

        async def backward():
            calls.append(f"undo {version}")

        return MigrationDefinition(version, f"Registered {version}", forward, backward)

    @pytest.mark.asyncio
    async def test_registered_migrations_merge_with_files(
        self, runner, migrations_dir, calls, reset_journal
    ):
        """Registered and file migrations run in one version-ordered catalog."""
        write_recording_migration(migrations_dir, B, "second")
        runner.register(self._definition(C, calls))
        runner.register(self._definition(A, calls))

        await runner.migrate()

        assert await runner.get_applied_migrations() == [A, B, C]
        assert calls == [A, C]
        assert reset_journal == [f"forward:{B}"]

    @pytest.mark.asyncio
    async def test_register_after_initialize(self, runner, calls):
        """Registering later adds to the live catalog."""
        await runner.initialize()
        runner.register(self._definition(A, calls))

        assert [m.version for m in await runner.get_pending_migrations()] == [A]

    @pytest.mark.asyncio
    async def test_register_duplicate_of_file(self, runner, migrations_dir, calls):
        """A registered version clashing with a file fails initialization."""
        write_recording_migration(migrations_dir, A, "first")
        runner.register(self._definition(A, calls))

        with pytest.raises(DuplicateVersionError):
            await runner.initialize()

    def test_register_invalid(self, runner, calls):
        """Registration validates the definition."""
        with pytest.raises(MalformedMigrationError):
            runner.register(self._definition("001", calls))

    def test_register_duplicate(self, runner, calls):
        """The same version can't be registered twice."""
        runner.register(self._definition(A, calls))

        with pytest.raises(DuplicateVersionError):
            runner.register(self._definition(A, calls))


class TestCreateMigration:
    """Tests for scaffolding new migrations."""

    @pytest.mark.asyncio
    async def test_created_file_loads_and_runs(self, runner, migrations_dir):
        """A scaffolded migration is immediately valid and applicable."""
        created = runner.create_migration("Add user index", "Add an index on users")

        assert created["filename"] == f"{created['version']}_add_user_index.py"
        assert created["path"].exists()

        result = await runner.migrate()
        assert result.versions == [created["version"]]
        assert runner.migrations[0].description == "Add an index on users"
