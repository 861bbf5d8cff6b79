"""Pytest fixtures for docmigrate testing.

To use these fixtures, add to your conftest.py:

    pytest_plugins = ["docmigrate.testing.fixtures"]
"""

import pytest

from docmigrate.core.settings import MigrationSettings
from docmigrate.migrations.runner import MigrationRunner
from docmigrate.storage.memory import InMemoryDocumentStore
from docmigrate.testing.mocks import InMemoryS3
from docmigrate.testing.utils import create_test_settings, journal


@pytest.fixture
def migration_settings() -> MigrationSettings:
    """Provide test settings for docmigrate."""
    return create_test_settings()


@pytest.fixture
def mock_s3() -> InMemoryS3:
    """Provide in-memory S3 mock."""
    s3 = InMemoryS3()
    yield s3
    s3.clear()


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """Provide a non-transactional in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def transactional_store() -> InMemoryDocumentStore:
    """Provide an in-memory document store with transaction support."""
    return InMemoryDocumentStore(transactional=True)


@pytest.fixture
def migrations_dir(tmp_path):
    """Provide an empty migrations directory."""
    path = tmp_path / "migrations"
    path.mkdir()
    return path


@pytest.fixture
def runner(memory_store, migrations_dir) -> MigrationRunner:
    """Provide a runner over the in-memory store and the test directory."""
    return MigrationRunner(memory_store, migrations_dir)


@pytest.fixture(autouse=True)
def reset_journal():
    """Clear the shared migration call journal around each test."""
    journal.clear()
    yield journal
    journal.clear()

