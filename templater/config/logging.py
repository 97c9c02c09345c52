"""
Logging Configuration
=====================

Structured logging for the templater package.

Importing templater never configures logging. Module loggers are structlog
loggers wrapping the stdlib ``templater.*`` loggers, so they follow whatever
the host application configured for structlog and stdlib logging.
Applications and the test suite that want templater's own output format call
``setup_logging()`` explicitly.
"""

import logging
import logging.config
import sys
from typing import Dict, Any, Optional
import structlog
from structlog.types import Processor

from .settings import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog and the ``templater`` stdlib logger.

    Args:
        settings: Settings to read the environment and log level from,
            defaults to the global settings
    """
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
    ]

    if settings.environment == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.environment != "testing"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(get_logging_config(settings))


def get_logging_config(settings: Settings) -> Dict[str, Any]:
    """Get the stdlib logging configuration for the ``templater`` logger."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "json" if settings.environment == "production" else "standard",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "templater": {
                "level": settings.log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger bound to the stdlib logger ``name``."""
    return structlog.wrap_logger(logging.getLogger(name))


# Library default: stay silent unless the application adds handlers
logging.getLogger("templater").addHandler(logging.NullHandler())
