"""structlog setup for hookcatch."""

from __future__ import annotations

import logging

import structlog

from hookcatch.core.config import get_config


def configure_logging(level: str | None = None, json: bool = False) -> None:
    """Configure structlog with a level filter.

    Args:
        level: Log level name (debug, info, warning, error). Defaults to
            the configured ``log_level``.
        json: Render events as JSON lines instead of the console renderer.
    """
    if level is None:
        level = get_config().log_level

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )
