"""structlog configuration."""

import logging

import structlog

from aila.core.settings import AppConfig


def configure_logging(app_config: AppConfig) -> None:
    """Configure structlog once at startup.

    Development gets a colourised console renderer, every other environment
    emits one JSON object per line.
    """
    level = logging.DEBUG if app_config.debug else logging.INFO
    renderer: structlog.typing.Processor
    if app_config.is_development:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
