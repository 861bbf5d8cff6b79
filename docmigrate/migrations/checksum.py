"""Content fingerprints for migration definitions."""

import functools
import hashlib
import inspect
import linecache
from types import CodeType
from typing import Any, Callable

from docmigrate.migrations.base import MigrationDefinition


def _code_text(code: CodeType) -> str:
    """Render a code object without memory addresses, recursing into nested code."""
    parts = [code.co_code.hex()]
    for const in code.co_consts:
        if isinstance(const, CodeType):
            parts.append(_code_text(const))
        elif isinstance(const, frozenset):
            parts.append(repr(sorted(const, key=repr)))
        else:
            parts.append(repr(const))
    return "|".join(parts)


def _source_of(operation: Callable[..., Any]) -> str:
    """Return the source text of an operation.

    Callable instances contribute the source of their class. Falls back to
    bytecode and constants when the source cannot be found, e.g. for
    callables defined interactively.
    """
    target = inspect.unwrap(operation)
    if isinstance(target, functools.partial):
        return _source_of(target.func) + repr(target.args) + repr(sorted(target.keywords.items()))
    if not (inspect.isroutine(target) or inspect.isclass(target)):
        target = type(target)

    try:
        source_file = inspect.getsourcefile(target)
    except (OSError, TypeError):
        source_file = None
    if source_file:
        # Pick up edits made since the file was first read
        linecache.checkcache(source_file)
    try:
        return inspect.getsource(target)
    except (OSError, TypeError):
        code = getattr(target, "__code__", None)
        if code is None:
            call = getattr(target, "__call__", None)
            code = getattr(call, "__code__", None)
        if code is None:
            return f"{getattr(target, '__module__', '')}.{getattr(target, '__qualname__', '')}"
        return _code_text(code)


def fingerprint(definition: MigrationDefinition) -> str:
    """Compute the checksum of a migration's forward and backward logic.

    Args:
        definition: The migration to fingerprint

    Returns:
        SHA-256 hex digest
    """
    content = _source_of(definition.forward) + _source_of(definition.backward)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
