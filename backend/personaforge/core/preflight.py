"""Preflight readiness checks for the persona store.

Run these checks before starting the bot or promoting an environment to
catch configuration and schema drift early.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy import make_url, text
from sqlalchemy.ext.asyncio import create_async_engine

from personaforge.config import Settings, get_settings
from personaforge.core.errors import MigrationError
from personaforge.core.migrations import current_revision, head_revision


@dataclass(frozen=True)
class CheckResult:
    """A single preflight check outcome."""

    name: str
    ok: bool
    detail: str


@dataclass(frozen=True)
class PreflightReport:
    """Aggregated preflight report."""

    ok: bool
    timestamp_utc: str
    checks: list[CheckResult]

    def as_dict(self) -> dict:
        return {
            "ok": self.ok,
            "timestamp_utc": self.timestamp_utc,
            "checks": [
                {"name": item.name, "ok": item.ok, "detail": item.detail}
                for item in self.checks
            ],
        }


def _pass(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, ok=True, detail=detail)


def _fail(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, ok=False, detail=detail)


def check_settings() -> CheckResult:
    """Validate that settings load from the environment."""
    try:
        settings = Settings()
    except ValidationError as exc:
        return _fail("settings", f"validation failed: {exc.error_count()} error(s)")
    return _pass(
        "settings",
        f"validated (env={settings.app_env}, bot_name={settings.bot_name!r})",
    )


async def check_database(database_url: str | None = None) -> CheckResult:
    """Verify database connectivity without creating a missing SQLite file."""
    url = make_url(database_url or get_settings().database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        if not Path(url.database).exists():
            return _fail("database", f"database file not found: {url.database}")

    engine = create_async_engine(url)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return _pass("database", "connection ok")
    except Exception as exc:
        return _fail("database", f"connection failed: {exc}")
    finally:
        await engine.dispose()


def check_schema(database_url: str | None = None) -> CheckResult:
    """Verify the database is migrated to the newest revision."""
    try:
        current = current_revision(database_url)
    except MigrationError as exc:
        return _fail("schema", f"{exc.kind}: {exc}")

    head = head_revision()
    if current != head:
        return _fail("schema", f"database at {current or 'base'}, head is {head}")
    return _pass("schema", f"at head ({head})")


async def run_preflight(database_url: str | None = None) -> PreflightReport:
    """Run all preflight checks and return a consolidated report."""
    checks: list[CheckResult] = []

    settings_check = check_settings()
    checks.append(settings_check)

    # If settings themselves fail, dependency checks are likely noisy.
    if settings_check.ok:
        database_check = await check_database(database_url)
        checks.append(database_check)
        # Reading the version table would create a missing SQLite file.
        if database_check.ok:
            checks.append(check_schema(database_url))

    ok = all(item.ok for item in checks)
    return PreflightReport(
        ok=ok,
        timestamp_utc=datetime.now(UTC).isoformat(),
        checks=checks,
    )
