"""Shared test configuration."""

pytest_plugins = ["docmigrate.testing.fixtures"]
