"""
Structured logging setup shared by all services.

Importing this module applies the production JSON configuration; call
``configure_logging`` at startup to honour ``LoggingConfig``.
"""

import logging

import structlog
from structlog.types import Processor

from checkin_alerts.config import LoggingConfig


def _processors(renderer: Processor) -> list[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


# Configure structured logging (production-ready observability)
structlog.configure(
    processors=_processors(structlog.processors.JSONRenderer()),
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(config: LoggingConfig) -> None:
    """Apply level and renderer from configuration."""
    logging.basicConfig(format="%(message)s", level=config.level)
    logging.getLogger().setLevel(config.level)

    renderer: Processor = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=_processors(renderer),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger("checkin_alerts")
