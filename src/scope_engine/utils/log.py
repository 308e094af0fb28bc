"""
Logging setup for the Zone Scope Engine.
Configures structlog console output for scripts and services embedding the engine.
"""

import logging

import structlog

from ..config import settings


def configure_logging(level: str | None = None, json_output: bool = False) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Log level name (defaults to settings.log_level)
        json_output: Render JSON lines instead of the console format
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
