"""Structured logging configuration.

Every module asks for its logger through get_logger so that store
transitions and dataset fetch traffic share one JSON event format.
"""

import logging
import os
from typing import Any

import structlog

LOG_LEVEL_ENV = "LAZYSTORE_LOG_LEVEL"

_configured = False


def configure_logging(level: Any = None) -> None:
    """
    Install the structlog processor chain.

    Args:
        level: Minimum level to emit, as a logging constant or name.
            Defaults to LAZYSTORE_LOG_LEVEL, then INFO.
    """
    global _configured

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> Any:
    """
    Return a module logger instance.

    Args:
        name: Logger name, usually __name__

    Returns:
        A structlog logger bound to the module name
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name).bind(module=name)
