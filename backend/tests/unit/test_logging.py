"""Tests for structlog configuration (core/logging.py)."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from personaforge.core.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def test_development_uses_console_renderer(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "development")

    configure_logging()

    renderer = structlog.get_config()["processors"][-1]
    assert isinstance(renderer, structlog.dev.ConsoleRenderer)


def test_production_uses_json_renderer(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "production")

    configure_logging()

    renderer = structlog.get_config()["processors"][-1]
    assert isinstance(renderer, structlog.processors.JSONRenderer)


def test_log_level_filters_below_threshold(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")

    configure_logging()

    wrapper = structlog.get_config()["wrapper_class"]
    assert wrapper is structlog.make_filtering_bound_logger(30)
