"""Async database engine and session factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from personaforge.config import get_settings


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for ``database_url`` (defaults to DATABASE_URL)."""
    settings = get_settings()
    return create_async_engine(
        database_url or settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )


engine = build_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
