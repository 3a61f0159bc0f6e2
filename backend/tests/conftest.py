"""Global pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from personaforge.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop the cached Settings so env overrides in one test never leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "personas.db"


@pytest.fixture
def database_url(db_path: Path) -> str:
    """Sync SQLite URL handed to the migration runner."""
    return f"sqlite:///{db_path}"


@pytest.fixture
def async_database_url(db_path: Path) -> str:
    """Same database through the async driver the app uses."""
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture
def engine(database_url: str) -> Iterator[Engine]:
    """Plain sync engine for seeding and inspecting the test database."""
    engine = create_engine(database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def seed_personas(engine: Engine) -> Callable[..., None]:
    """Insert personas by name using only the baseline columns."""

    def _seed(*names: str) -> None:
        with engine.begin() as conn:
            for name in names:
                conn.execute(
                    text("INSERT INTO personas (name, prompt) VALUES (:name, :prompt)"),
                    {"name": name, "prompt": f"You are {name}."},
                )

    return _seed
