"""Logging configuration for the chainhook indexer."""

import logging
import sys
from typing import Optional

from chainhook_indexer.config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers held at WARNING regardless of LOG_LEVEL
QUIET_LOGGERS = ("sqlalchemy.engine", "alembic", "uvicorn.access")

# uvicorn installs its own handlers; route them through the root handler
PROPAGATED_LOGGERS = ("uvicorn", "uvicorn.error")


def setup_logging(config: Optional[Config] = None, log_level: Optional[str] = None) -> None:
    """Configure Python logging.

    Args:
        config: Config object (uses log_level from config if provided)
        log_level: Override log level (takes precedence over config)
    """
    level_name = (log_level or (config.log_level if config else "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in PROPAGATED_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    if level_name != logging.getLevelName(level):
        logging.getLogger(__name__).warning(f"Unknown LOG_LEVEL {level_name!r}, using INFO")


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (typically get_logger(__name__))."""
    return logging.getLogger(name)
