"""Testing utilities for docmigrate.

This module provides an in-memory S3 mock, settings helpers and a helper
for writing migration files, plus pytest fixtures.

Usage in conftest.py:
    pytest_plugins = ["docmigrate.testing.fixtures"]
"""

from docmigrate.testing.mocks import InMemoryS3, mock_s3_client
from docmigrate.testing.utils import create_test_settings, journal, write_migration

__all__ = [
    "InMemoryS3",
    "mock_s3_client",
    "create_test_settings",
    "journal",
    "write_migration",
]
