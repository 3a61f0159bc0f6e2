"""
Alembic environment configuration for the persona store.

Migrations always run on the synchronous driver; an async DATABASE_URL
(``sqlite+aiosqlite://``) is converted before connecting.
"""
from logging.config import fileConfig

from sqlalchemy import engine_from_config, event, pool
from sqlalchemy.engine import Connection, Engine

from alembic import context

from personaforge.config import get_settings, to_sync_url
from personaforge.models.tables import Base

# Alembic Config object
config = context.config

# Setup logging from alembic.ini (CLI only; the in-process runner has no ini file)
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Target metadata for autogenerate
target_metadata = Base.metadata


def get_url() -> str:
    """Database URL: runner override first, then settings."""
    url = config.attributes.get("database_url") or get_settings().database_url
    return to_sync_url(str(url))


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_transactional_ddl(engine: Engine) -> None:
    """Make SQLite DDL transactional and take the write lock up front.

    pysqlite only opens transactions before DML, so an ALTER TABLE would
    otherwise autocommit. Disabling its handling and emitting our own
    BEGIN IMMEDIATE puts every statement of a run in one transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    This generates SQL scripts without connecting to the database.
    """
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection, sqlite: bool) -> None:
    """Run migrations with an active connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=sqlite,
        # WHY: Alembic treats SQLite DDL as non-transactional by default;
        # the connect/begin hooks above make it transactional.
        transactional_ddl=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = get_url()
    connectable = engine_from_config(
        {"sqlalchemy.url": url},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    sqlite = _is_sqlite(url)
    if sqlite:
        _enable_sqlite_transactional_ddl(connectable)

    try:
        with connectable.connect() as connection:
            do_run_migrations(connection, sqlite)
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
