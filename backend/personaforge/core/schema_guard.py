"""Precondition checks run by migrations before any DDL is emitted.

A check that fails here raises before the first ALTER, so a rejected step
leaves both schema and data untouched.

Called by: alembic/versions/*
Depends on: errors.py
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.engine import Inspector

from personaforge.core.errors import MissingPrerequisite, SchemaConflict


def column_names(inspector: Inspector, table: str) -> set[str]:
    """Return the column names currently defined on ``table``."""
    return {column["name"] for column in inspector.get_columns(table)}


def require_columns(inspector: Inspector, table: str, columns: Iterable[str]) -> None:
    """Raise MissingPrerequisite unless ``table`` exists with every column in ``columns``."""
    if not inspector.has_table(table):
        raise MissingPrerequisite(f"table {table!r} does not exist")

    missing = sorted(set(columns) - column_names(inspector, table))
    if missing:
        raise MissingPrerequisite(
            f"table {table!r} is missing column(s): {', '.join(missing)}"
        )


def forbid_columns(inspector: Inspector, table: str, columns: Iterable[str]) -> None:
    """Raise SchemaConflict naming every column of ``columns`` already on ``table``."""
    existing = sorted(set(columns) & column_names(inspector, table))
    if existing:
        raise SchemaConflict(existing, table=table)
