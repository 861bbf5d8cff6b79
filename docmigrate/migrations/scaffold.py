"""Generator for new migration files."""

import re
from datetime import datetime, timezone
from pathlib import Path

MIGRATION_TEMPLATE = '''"""Migration: {summary}

Created: {created}
"""

version = "{version}"
description = {description!r}


async def forward():
    """Apply the migration."""
    # Example: add a field to every document of a collection
    #   for doc in await store.find("users"):
    #       ...
    pass


async def backward():
    """Revert the migration."""
    # Undo everything forward() did, in reverse order
    pass
'''


def make_version(now: datetime | None = None) -> str:
    """Build a 14-digit UTC timestamp version."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y%m%d%H%M%S")


def slugify(name: str) -> str:
    """Turn a free-form migration name into a snake_case file stem."""
    slug = re.sub(r"\s+", "_", name.strip()).lower()
    slug = re.sub(r"[^a-z0-9_]", "", slug)
    return slug or "migration"


def create_migration_file(
    migrations_dir: Path,
    name: str,
    description: str,
    now: datetime | None = None,
) -> dict:
    """Write a new, empty migration unit.

    Args:
        migrations_dir: Directory to write into (created if missing)
        name: Short name used in the filename
        description: Human-readable description stored in the file
        now: Timestamp to derive the version from (defaults to now, UTC)

    Returns:
        Dictionary with filename, version and path

    Raises:
        ValueError: If description is empty
        FileExistsError: If the target file already exists
    """
    if not description or not description.strip():
        raise ValueError("Migration description must not be empty")

    now = now or datetime.now(timezone.utc)
    version = make_version(now)
    filename = f"{version}_{slugify(name)}.py"

    migrations_dir.mkdir(parents=True, exist_ok=True)
    file_path = migrations_dir / filename
    if file_path.exists():
        raise FileExistsError(f"Migration file {file_path} already exists")

    # Docstring-safe form of the description
    summary = description.replace("\\", "\\\\").replace('"', '\\"')
    file_path.write_text(
        MIGRATION_TEMPLATE.format(
            summary=summary,
            description=description,
            created=now.isoformat(),
            version=version,
        ),
        encoding="utf-8",
    )

    return {
        "filename": filename,
        "version": version,
        "path": file_path,
    }
