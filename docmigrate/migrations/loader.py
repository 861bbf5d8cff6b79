"""Migration discovery and structural validation."""

import importlib.util
import logging
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import List

from docmigrate.core.exceptions import DuplicateVersionError, MalformedMigrationError
from docmigrate.migrations.base import VERSION_PATTERN, MigrationDefinition

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("version", "description", "forward", "backward")

_version_re = re.compile(VERSION_PATTERN)


def validate_definition(definition: MigrationDefinition) -> None:
    """Check a definition's structure.

    Raises:
        MalformedMigrationError: If a field is missing or invalid
    """
    name = definition.filename or definition.version or "<registered>"
    for field_name in REQUIRED_FIELDS:
        if not getattr(definition, field_name, None):
            raise MalformedMigrationError(
                f"Migration {name} missing required field: {field_name}",
                filename=definition.filename or None,
                field=field_name,
            )

    for field_name in ("forward", "backward"):
        if not callable(getattr(definition, field_name)):
            raise MalformedMigrationError(
                f"Migration {name} {field_name} must be callable",
                filename=definition.filename or None,
                field=field_name,
            )

    if not isinstance(definition.version, str) or not _version_re.fullmatch(definition.version):
        raise MalformedMigrationError(
            f"Migration {name} version must be timestamp format (YYYYMMDDHHMMSS), "
            f"got {definition.version!r}",
            filename=definition.filename or None,
            field="version",
        )


class MigrationLoader:
    """Builds the ordered migration catalog.

    Migrations are discovered from ``*.py`` files in lexical filename order.
    Files starting with ``_`` are ignored. Loading is all or nothing: the
    first malformed or duplicate unit aborts the whole load.
    """

    def __init__(self):
        self.out_of_order: List[str] = []

    def _import_module(self, file_path: Path) -> ModuleType:
        module_name = f"docmigrate_migration_{file_path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if not spec or not spec.loader:
            raise MalformedMigrationError(
                f"Migration {file_path.name} could not be imported",
                filename=file_path.name,
            )

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise MalformedMigrationError(
                f"Migration {file_path.name} failed to import: {e}",
                filename=file_path.name,
            ) from e
        return module

    def load_file(self, file_path: Path) -> MigrationDefinition:
        """Load and validate a single migration file.

        Args:
            file_path: Path to the migration file

        Returns:
            The validated MigrationDefinition

        Raises:
            MalformedMigrationError: If the file is not a valid migration
        """
        module = self._import_module(file_path)

        for field_name in REQUIRED_FIELDS:
            if not getattr(module, field_name, None):
                raise MalformedMigrationError(
                    f"Migration {file_path.name} missing required field: {field_name}",
                    filename=file_path.name,
                    field=field_name,
                )

        definition = MigrationDefinition(
            version=module.version,
            description=module.description,
            forward=module.forward,
            backward=module.backward,
            filename=file_path.name,
            source_path=file_path.resolve(),
        )
        validate_definition(definition)
        return definition

    def load(self, migrations_dir: Path | None) -> List[MigrationDefinition]:
        """Load every migration in a directory.

        Args:
            migrations_dir: Directory containing migration files

        Returns:
            Definitions sorted ascending by version

        Raises:
            MalformedMigrationError: If any file is malformed
            DuplicateVersionError: If two files share a version
        """
        self.out_of_order = []
        if not migrations_dir or not migrations_dir.exists():
            logger.info(f"No migrations directory at {migrations_dir}")
            return []

        migration_files = sorted(
            p for p in migrations_dir.glob("*.py") if not p.name.startswith("_")
        )

        definitions: List[MigrationDefinition] = []
        seen: dict[str, str] = {}
        for file_path in migration_files:
            definition = self.load_file(file_path)
            if definition.version in seen:
                raise DuplicateVersionError(definition.version, filename=file_path.name)
            seen[definition.version] = file_path.name
            definitions.append(definition)

        catalog = sorted(definitions, key=lambda d: d.version)
        # Filename order should already be version order; remember divergence
        self.out_of_order = [
            found.version
            for found, expected in zip(definitions, catalog)
            if found.version != expected.version
        ]
        if self.out_of_order:
            logger.warning(
                f"Migration filenames are not in version order: {self.out_of_order}",
                extra={"versions": self.out_of_order},
            )

        logger.info(
            f"Loaded {len(catalog)} migration(s)",
            extra={"count": len(catalog), "files": [d.filename for d in catalog]},
        )
        return catalog
