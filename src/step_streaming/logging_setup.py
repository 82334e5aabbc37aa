"""Structured logging configuration."""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

from .config import TrackingConfig


def setup_logging(config: Optional[TrackingConfig] = None) -> structlog.stdlib.BoundLogger:
    """
    Configure structlog on top of the standard logging module.

    Args:
        config: Tracking configuration providing LOG_LEVEL and LOG_FORMAT

    Returns:
        Logger bound to the package name
    """
    config = config or TrackingConfig()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, config.LOG_LEVEL.upper()),
    )

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("step_streaming")
