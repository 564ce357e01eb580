"""Logging configuration for Cordon.

Provides console logging with the application level taken from settings
and third-party loggers kept at WARNING.
"""

import logging
import sys
from typing import Literal

from cordon.settings import get_settings

# Third-party loggers that stay at WARNING regardless of the app level
NOISY_LOGGERS = [
    "asyncio",
]


def suppress_noisy_loggers() -> None:
    """Suppress noisy third-party loggers."""
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Configure application logging.

    Sets up a single stderr handler on the root logger and sets the
    ``cordon`` logger to the configured level.

    Args:
        level: Override log level (defaults to settings.log_level)
    """
    settings = get_settings()
    log_level = level or settings.log_level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level))
    console_handler.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
    root_logger.addHandler(console_handler)

    logging.getLogger("cordon").setLevel(getattr(logging, log_level))

    suppress_noisy_loggers()


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
