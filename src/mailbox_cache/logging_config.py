"""structlog setup shared by the CLI and embedding applications."""

from __future__ import annotations

import logging
import sys

import structlog

from mailbox_cache.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog for the given settings.

    Args:
        settings: Application settings providing ``log_level``, ``log_json``
            and ``debug``.
    """

    level_name = "DEBUG" if settings.debug else settings.log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
