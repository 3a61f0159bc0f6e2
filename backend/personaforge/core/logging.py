"""structlog configuration shared by the scripts and the migration runner.

Called by: scripts/migrate.py, scripts/preflight.py
Depends on: config.py (Settings)
"""

from __future__ import annotations

import logging

import structlog

from personaforge.config import get_settings


def configure_logging() -> None:
    """Configure structlog from LOG_LEVEL / APP_ENV.

    Console rendering in development, JSON lines in production.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if not settings.is_production
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
