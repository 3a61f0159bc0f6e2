"""migrations.py: In-process Alembic runner for the persona store.

Wraps ``alembic.command`` so scripts and tests can apply, roll back and
inspect revisions without an alembic.ini on disk. Alembic's version table
is the at-most-once guard; this module only drives it, logs each run and
turns driver errors into the MigrationError taxonomy.

Called by: scripts/migrate.py, core/preflight.py, tests
Depends on: config.py (DATABASE_URL), errors.py, backend/alembic/
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from personaforge.config import get_settings, to_sync_url
from personaforge.core.errors import (
    MigrationError,
    MissingPrerequisite,
    SchemaConflict,
    StorageFailure,
)

logger = structlog.get_logger()

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "alembic"

# SQLite: "duplicate column name: display_name"
# Postgres: 'column "display_name" of relation "personas" already exists'
_SQLITE_DUPLICATE = re.compile(r"duplicate column name:\s*(\w+)", re.IGNORECASE)
_PG_DUPLICATE = re.compile(
    r'column "(\w+)" of relation "(\w+)" already exists', re.IGNORECASE
)
_MISSING_MARKERS = ("no such table", "no such column", "does not exist")


@dataclass(frozen=True)
class MigrationState:
    """One revision of the script directory and whether it is applied."""

    revision: str
    description: str
    applied: bool


def build_config(database_url: str | None = None) -> Config:
    """Alembic Config for ``backend/alembic`` bound to ``database_url``."""
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    # WHY: attributes, not set_main_option; URLs may contain '%' which
    # ConfigParser would try to interpolate.
    config.attributes["database_url"] = database_url or get_settings().database_url
    return config


def translate_error(exc: BaseException) -> MigrationError | None:
    """Map a failure raised during a run onto the taxonomy.

    Returns None for errors that are not storage related (bad revision
    identifiers, broken scripts); those propagate unchanged.
    """
    if isinstance(exc, MigrationError):
        return exc
    if isinstance(exc, DBAPIError):
        message = str(exc.orig) if exc.orig is not None else str(exc)
        if match := _SQLITE_DUPLICATE.search(message):
            return SchemaConflict([match.group(1)])
        if match := _PG_DUPLICATE.search(message):
            return SchemaConflict([match.group(1)], table=match.group(2))
        if any(marker in message.lower() for marker in _MISSING_MARKERS):
            return MissingPrerequisite(message)
        return StorageFailure(message)
    if isinstance(exc, SQLAlchemyError):
        return StorageFailure(str(exc))
    return None


@contextmanager
def _translated(action: str, revision: str | None = None) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        error = translate_error(exc)
        if error is None:
            raise
        logger.error(
            "migration_failed",
            action=action,
            revision=revision,
            kind=error.kind,
            error=str(error),
        )
        if error is exc:
            raise
        raise error from exc


def upgrade(revision: str = "head", database_url: str | None = None) -> None:
    """Apply every pending revision up to ``revision``."""
    config = build_config(database_url)
    logger.info("migration_upgrade_started", revision=revision)
    with _translated("upgrade", revision):
        command.upgrade(config, revision)
    logger.info("migration_upgrade_finished", revision=revision)


def downgrade(revision: str = "-1", database_url: str | None = None) -> None:
    """Roll back to ``revision`` (default: one step)."""
    config = build_config(database_url)
    logger.info("migration_downgrade_started", revision=revision)
    with _translated("downgrade", revision):
        command.downgrade(config, revision)
    logger.info("migration_downgrade_finished", revision=revision)


def current_revision(database_url: str | None = None) -> str | None:
    """Revision recorded in the database, or None when unversioned."""
    url = to_sync_url(database_url or get_settings().database_url)
    engine = create_engine(url)
    try:
        with _translated("current"), engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()


def head_revision() -> str | None:
    """Newest revision in the script directory."""
    return ScriptDirectory.from_config(build_config()).get_current_head()


def migration_status(database_url: str | None = None) -> list[MigrationState]:
    """Every script revision, base first, flagged applied or pending."""
    script = ScriptDirectory.from_config(build_config(database_url))
    current = current_revision(database_url)

    applied: set[str] = set()
    if current is not None:
        applied = {rev.revision for rev in script.iterate_revisions(current, "base")}

    revisions = list(script.walk_revisions())
    revisions.reverse()
    return [
        MigrationState(
            revision=rev.revision,
            description=rev.doc or "",
            applied=rev.revision in applied,
        )
        for rev in revisions
    ]
