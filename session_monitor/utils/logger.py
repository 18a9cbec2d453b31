"""
Logging configuration for the Session Monitor.

Installs a single stdout handler on the package logger so that every
``session_monitor.*`` logger shares the same format and level.
"""

import logging
import sys
from typing import Optional

from ..config import settings

ROOT_LOGGER_NAME = "session_monitor"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to 'session_monitor')

    Returns:
        Configured logger instance
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(settings.app_log_level)

    return logging.getLogger(name or ROOT_LOGGER_NAME)


# Default logger instance
logger = get_logger()
