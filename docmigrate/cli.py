"""docmigrate CLI tool."""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import click

from docmigrate.core.client import S3ClientManager
from docmigrate.core.exceptions import ExecutionFailureError, MigrationError
from docmigrate.core.settings import MigrationSettings
from docmigrate.migrations.runner import MigrationRunner
from docmigrate.migrations.scaffold import create_migration_file
from docmigrate.storage.s3 import S3DocumentStore


def _build_settings(bucket, endpoint, migrations_dir, base_path) -> MigrationSettings:
    overrides = {
        "aws_bucket_name": bucket,
        "aws_url": endpoint,
        "migrations_dir": migrations_dir,
        "s3_base_path": base_path,
    }
    return MigrationSettings(**{k: v for k, v in overrides.items() if v is not None})


@asynccontextmanager
async def _open_store(settings: MigrationSettings):
    """Open an S3 document store for the configured bucket."""
    bucket = settings.require_bucket()
    manager = S3ClientManager(settings)
    async with manager.get_async_client() as s3_client:
        await manager.ensure_bucket_exists(s3_client)
        yield S3DocumentStore(s3_client, bucket, settings.s3_base_path)


def _run(coro_factory, settings: MigrationSettings):
    """Run an async command body against a freshly initialized runner."""

    async def _main():
        async with _open_store(settings) as store:
            runner = MigrationRunner(
                store,
                settings.migrations_dir,
                collection=settings.migrations_collection,
            )
            await runner.initialize()
            return await coro_factory(runner)

    try:
        return asyncio.run(_main())
    except ExecutionFailureError as e:
        for m in e.completed:
            click.echo(f"✓ {m.version}: {m.description} ({m.duration_ms}ms)")
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    except MigrationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


def connection_options(func):
    """Attach the options shared by every command that touches storage."""
    func = click.option("--base-path", default=None, help="S3 base path for data")(func)
    func = click.option("--dir", "migrations_dir", default=None, help="Migrations directory")(func)
    func = click.option("--endpoint", default=None, help="S3 endpoint URL (for LocalStack)")(func)
    func = click.option("--bucket", default=None, help="S3 bucket name")(func)
    return func


@click.group()
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING...)")
def cli(log_level):
    """docmigrate CLI - Manage migrations for document stores."""
    level = (log_level or MigrationSettings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def version():
    """Show docmigrate version."""
    from docmigrate import __version__

    click.echo(f"docmigrate version: {__version__}")


# Migration commands group
@cli.group()
def migrate():
    """Database migration commands."""
    pass


@migrate.command("run")
@click.option("--target", default=None, help="Apply up to and including this version")
@connection_options
def migrate_run(target, bucket, endpoint, migrations_dir, base_path):
    """Run pending migrations."""
    settings = _build_settings(bucket, endpoint, migrations_dir, base_path)
    result = _run(lambda runner: runner.migrate(target), settings)

    if not result.count:
        click.echo("✅ No pending migrations")
        return

    for m in result.migrations:
        click.echo(f"✓ {m.version}: {m.description} ({m.duration_ms}ms)")

    click.echo(f"\n✅ Applied {result.count} migration(s)")


@migrate.command("rollback")
@click.option("--target", default=None, help="Roll back to this version (it stays applied)")
@click.option("--steps", default=1, show_default=True, type=click.IntRange(min=1),
              help="Number of migrations to roll back when no target is given")
@connection_options
def migrate_rollback(target, steps, bucket, endpoint, migrations_dir, base_path):
    """Rollback applied migrations."""
    settings = _build_settings(bucket, endpoint, migrations_dir, base_path)
    result = _run(lambda runner: runner.rollback(target, steps), settings)

    if not result.count:
        click.echo("✅ Nothing to roll back")
        return

    for m in result.migrations:
        click.echo(f"✓ Rolled back {m.version}: {m.description}")

    click.echo(f"\n✅ Rolled back {result.count} migration(s)")


@migrate.command("status")
@connection_options
def migrate_status(bucket, endpoint, migrations_dir, base_path):
    """Show migration status."""
    settings = _build_settings(bucket, endpoint, migrations_dir, base_path)
    status = _run(lambda runner: runner.get_status(), settings)

    click.echo("\n📋 Migration Status:\n")
    click.echo(f"Total: {status.total}  Applied: {status.applied}  Pending: {status.pending}\n")

    if status.applied_versions:
        click.echo("Applied:")
        for version in status.applied_versions:
            click.echo(f"  ✓ {version}")
    else:
        click.echo("Applied: (none)")

    if status.pending_versions:
        click.echo("\nPending:")
        for version in status.pending_versions:
            click.echo(f"  ○ {version}")
    else:
        click.echo("\nPending: (none)")

    if status.last_applied:
        last = status.last_applied
        click.echo(f"\nLast applied: {last.version} at {last.applied_at.isoformat()}")


@migrate.command("validate")
@connection_options
def migrate_validate(bucket, endpoint, migrations_dir, base_path):
    """Check applied migrations for drift."""
    settings = _build_settings(bucket, endpoint, migrations_dir, base_path)
    report = _run(lambda runner: runner.validate(), settings)

    if report.valid:
        click.echo("✅ No drift detected")
        return

    click.echo(f"Found {len(report.issues)} issue(s):\n")
    for issue in report.issues:
        click.echo(f"  ⚠ {issue.version} [{issue.type}] {issue.message}")
    sys.exit(1)


@migrate.command("create")
@click.argument("name")
@click.option("--description", default=None, help="Migration description (defaults to NAME)")
@click.option("--dir", "migrations_dir", default=None, help="Migrations directory")
def migrate_create(name, description, migrations_dir):
    """Create a new empty migration file."""
    directory = Path(migrations_dir) if migrations_dir else MigrationSettings().migrations_dir
    try:
        created = create_migration_file(directory, name, description or name)
    except (ValueError, FileExistsError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ Created {created['path']}")
    click.echo(f"   Version: {created['version']}")


if __name__ == "__main__":
    cli()
