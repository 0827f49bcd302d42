"""
Logging infrastructure.

Installs one stream handler on the ``multiorder`` logger tree.
"""
import logging
from typing import Optional

from multiorder.settings import LoggingSettings


ROOT_LOGGER = "multiorder"


def configure_logging(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """
    Configure the package logger from settings.

    Safe to call repeatedly; the handler is installed once.

    Args:
        settings: Logging settings (defaults read from the environment)

    Returns:
        The configured ``multiorder`` logger
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.format))
        logger.addHandler(handler)
    logger.setLevel(settings.level.upper())
    return logger
