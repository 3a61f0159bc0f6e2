"""Application settings via pydantic-settings.

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  DEVELOPER QUICK-START: what env vars do I need?
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#
#    DATABASE_URL  → Persona store.  Defaults to a local SQLite file.
#                    The app uses the async driver (sqlite+aiosqlite);
#                    migrations run on the sync driver automatically.
#    BOT_NAME      → Name the bot answers to when a persona has no
#                    display_name of its own.
#    APP_ENV       → "production" switches logs to JSON lines.
#    LOG_LEVEL     → DEBUG | INFO | WARNING | ERROR
#
#  Apply the schema before first run:
#    cd backend && python scripts/migrate.py up
#
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# WHY: Async driver suffixes that Alembic cannot use. Migrations are run on
# the stdlib-backed sync driver of the same backend.
_ASYNC_DRIVERS = ("+aiosqlite", "+asyncpg")


class Settings(BaseSettings):
    """Typed configuration loaded from environment variables.

    Called by: Every module that needs configuration (via ``get_settings()``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: str = "development"
    log_level: str = "INFO"

    # Database  (async SQLite via SQLAlchemy + aiosqlite)
    database_url: str = "sqlite+aiosqlite:///./personaforge.db"

    # ─── Personas ─────────────────────────────────────────────────────────────
    # Fallback responder name for personas whose display_name is NULL.
    bot_name: str = Field(default="PersonaForge", min_length=1)

    # ─── Computed Properties ──────────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        """True when app_env is explicitly set to 'production'."""
        return self.app_env == "production"

    @property
    def sync_database_url(self) -> str:
        """Return DATABASE_URL with any async driver suffix removed."""
        return to_sync_url(self.database_url)


def to_sync_url(url: str) -> str:
    """Strip an async driver from a SQLAlchemy URL (``sqlite+aiosqlite`` → ``sqlite``)."""
    for driver in _ASYNC_DRIVERS:
        scheme, sep, rest = url.partition("://")
        if sep and scheme.endswith(driver):
            return f"{scheme[: -len(driver)]}://{rest}"
    return url


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
