"""Tests for the docmigrate CLI."""

from contextlib import asynccontextmanager

import pytest
from click.testing import CliRunner

from docmigrate import cli as cli_module
from docmigrate.cli import cli
from docmigrate.storage.memory import InMemoryDocumentStore
from docmigrate.testing.utils import write_migration

A = "20240101000000"
B = "20240102000000"


@pytest.fixture
def store(monkeypatch):
    """Route every CLI command to one in-memory store."""
    store = InMemoryDocumentStore()

    @asynccontextmanager
    async def fake_open_store(settings):
        yield store

    monkeypatch.setattr(cli_module, "_open_store", fake_open_store)
    return store


@pytest.fixture
def cli_runner():
    return CliRunner()


def invoke(cli_runner, *args):
    return cli_runner.invoke(cli, list(args))


class TestMigrateCommands:
    """Tests for the migrate command group."""

    def test_version(self, cli_runner):
        """The version command prints the package version."""
        from docmigrate import __version__

        result = invoke(cli_runner, "version")

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run_no_pending(self, cli_runner, store, migrations_dir):
        """An empty directory reports nothing to do."""
        result = invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        assert result.exit_code == 0
        assert "No pending migrations" in result.output

    def test_run_and_status(self, cli_runner, store, migrations_dir):
        """run applies migrations and status lists them."""
        write_migration(migrations_dir, A, "first")
        write_migration(migrations_dir, B, "second")

        run = invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir), "--target", A)
        status = invoke(cli_runner, "migrate", "status", "--dir", str(migrations_dir))

        assert run.exit_code == 0
        assert f"✓ {A}: first" in run.output
        assert "Applied 1 migration(s)" in run.output
        assert status.exit_code == 0
        assert f"✓ {A}" in status.output
        assert f"○ {B}" in status.output
        assert f"Last applied: {A}" in status.output

    def test_run_failure_exits_nonzero(self, cli_runner, store, migrations_dir):
        """A failing migration prints completed ones and the error."""
        write_migration(migrations_dir, A, "first")
        write_migration(migrations_dir, B, "second", forward_body="raise ValueError('nope')")

        result = invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        assert result.exit_code == 1
        assert f"✓ {A}: first" in result.output
        assert f"Migration {B} failed: nope" in result.output

    def test_malformed_migration_exits_nonzero(self, cli_runner, store, migrations_dir):
        """Load errors are reported, not raised."""
        write_migration(migrations_dir, "2024-01-01", "bad", filename=f"{A}_bad.py")

        result = invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        assert result.exit_code == 1
        assert "YYYYMMDDHHMMSS" in result.output

    def test_rollback(self, cli_runner, store, migrations_dir):
        """rollback reverts the latest migration."""
        write_migration(migrations_dir, A, "first")
        write_migration(migrations_dir, B, "second")
        invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        result = invoke(cli_runner, "migrate", "rollback", "--dir", str(migrations_dir))

        assert result.exit_code == 0
        assert f"Rolled back {B}: second" in result.output
        assert list(store.dump("migrations")) == [A]

    def test_rollback_unknown_target(self, cli_runner, store, migrations_dir):
        """An unknown target is an error."""
        write_migration(migrations_dir, A, "first")
        invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        result = invoke(
            cli_runner, "migrate", "rollback", "--dir", str(migrations_dir), "--target", B
        )

        assert result.exit_code == 1
        assert "not found in applied migrations" in result.output

    def test_rollback_rejects_zero_steps(self, cli_runner, store, migrations_dir):
        """steps must be positive."""
        result = invoke(
            cli_runner, "migrate", "rollback", "--dir", str(migrations_dir), "--steps", "0"
        )

        assert result.exit_code == 2

    def test_validate(self, cli_runner, store, migrations_dir):
        """validate exits 1 when drift is found."""
        path = write_migration(migrations_dir, A, "first")
        invoke(cli_runner, "migrate", "run", "--dir", str(migrations_dir))

        clean = invoke(cli_runner, "migrate", "validate", "--dir", str(migrations_dir))
        path.unlink()
        drifted = invoke(cli_runner, "migrate", "validate", "--dir", str(migrations_dir))

        assert clean.exit_code == 0
        assert "No drift detected" in clean.output
        assert drifted.exit_code == 1
        assert "missing_file" in drifted.output

    def test_create(self, cli_runner, migrations_dir):
        """create scaffolds a migration file."""
        result = invoke(
            cli_runner,
            "migrate", "create", "add users",
            "--description", "Add users collection",
            "--dir", str(migrations_dir),
        )

        assert result.exit_code == 0
        files = list(migrations_dir.glob("*_add_users.py"))
        assert len(files) == 1
        assert "Add users collection" in files[0].read_text()

    def test_missing_bucket(self, cli_runner, migrations_dir, monkeypatch):
        """Without a bucket the real store refuses to open."""
        monkeypatch.delenv("AWS_BUCKET_NAME", raising=False)

        result = invoke(cli_runner, "migrate", "status", "--dir", str(migrations_dir))

        assert result.exit_code == 1
        assert "AWS_BUCKET_NAME" in result.output
