"""
Logging configuration.

One format for the API, the store and the ingestion pipeline. Passwords
never go through these loggers: pipeline and store messages carry counts,
urls and usernames only.
"""

import logging
import sys
from typing import Optional

from credvault.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_QUIET_LOGGERS = ("uvicorn.access", "multipart", "python_multipart")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Overrides ``settings.log_level`` when given.
    """
    name = (level or settings.log_level).upper()
    log_level = getattr(logging, name, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with the application's configuration."""
    return logging.getLogger(name)
