"""Testing utilities for docmigrate."""

import textwrap
from pathlib import Path

from docmigrate.core.settings import MigrationSettings

# Shared record of calls made by file-based test migrations
journal: list[str] = []


def create_test_settings(
    bucket_name: str = "test-bucket",
    base_path: str = "test/",
    **overrides
) -> MigrationSettings:
    """Create docmigrate settings for testing.

    Args:
        bucket_name: The S3 bucket name for tests
        base_path: The S3 base path for tests
        **overrides: Additional settings to override

    Returns:
        MigrationSettings instance configured for testing
    """
    return MigrationSettings(
        aws_bucket_name=bucket_name,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_default_region="us-east-1",
        aws_url="http://localhost:4566",
        s3_base_path=base_path,
        **overrides,
    )


def write_migration(
    migrations_dir: Path,
    version: str,
    name: str = "change",
    description: str | None = None,
    forward_body: str = "pass",
    backward_body: str = "pass",
    filename: str | None = None,
    preamble: str = "",
) -> Path:
    """Write a migration file for tests.

    Bodies are inserted into ``async def forward()`` / ``async def backward()``.

    Args:
        migrations_dir: Directory to write into
        version: Migration version
        name: Used to build the default filename
        description: Defaults to ``name``
        forward_body: Source of the forward body
        backward_body: Source of the backward body
        filename: Explicit filename, overrides the default
        preamble: Extra module-level source placed before the functions

    Returns:
        Path of the written file
    """
    migrations_dir.mkdir(parents=True, exist_ok=True)
    path = migrations_dir / (filename or f"{version}_{name}.py")
    source = (
        f"version = {version!r}\n"
        f"description = {(description or name)!r}\n"
        f"{textwrap.dedent(preamble)}\n\n"
        "async def forward():\n"
        f"{textwrap.indent(textwrap.dedent(forward_body), '    ')}\n\n\n"
        "async def backward():\n"
        f"{textwrap.indent(textwrap.dedent(backward_body), '    ')}\n"
    )
    path.write_text(source, encoding="utf-8")
    return path
