"""
Structured Logging Setup

Configures structlog on top of the standard logging module so that
service-layer events and infrastructure log records share one output.
"""

import logging
from typing import Optional

import structlog

from .config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Install the structlog processor chain.

    Args:
        level: Logging level name; defaults to ``settings.LOG_LEVEL``
    """
    log_level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger("cacheable").setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
