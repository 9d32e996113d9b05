"""
Structured logging setup shared by the API and the import CLI.
"""

import logging
import structlog

from config.settings import Settings, settings as default_settings


def build_processors(settings: Settings) -> list:
    """Processor chain: JSON lines in production, console output elsewhere."""
    renderer = (
        structlog.processors.JSONRenderer() if settings.is_production
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        renderer,
    ]


def configure_logging(settings: Settings = default_settings, level: str = None) -> None:
    """
    Route structlog through stdlib logging at the configured level.

    Args:
        settings: Source of environment and log_level
        level: Overrides settings.log_level (the CLI passes WARNING)
    """
    level_name = level or settings.log_level
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name))
    logging.getLogger().setLevel(getattr(logging, level_name))

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
