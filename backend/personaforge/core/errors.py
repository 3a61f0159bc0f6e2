"""Error taxonomy for schema evolution steps.

Every failure aborts the whole step and is re-raised to the caller; nothing
here is recovered locally. ``kind`` is the stable identifier printed by the
CLI and attached to log events.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for failures that abort a schema evolution step."""

    kind = "migration_error"


class SchemaConflict(MigrationError):
    """A column the step would add already exists."""

    kind = "schema_conflict"

    def __init__(self, columns: list[str], table: str | None = None) -> None:
        self.table = table
        self.columns = columns
        owner = table or "table"
        super().__init__(
            f"{owner} already defines column(s): {', '.join(columns)}"
        )


class MissingPrerequisite(MigrationError):
    """The table or column the step builds on does not exist."""

    kind = "missing_prerequisite"


class StorageFailure(MigrationError):
    """The storage engine failed (I/O, locking, connectivity)."""

    kind = "storage_failure"
