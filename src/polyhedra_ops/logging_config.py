"""
Logging Configuration
Sets up the package logger. The library itself only creates module loggers;
applications call ``setup_logging`` when they want output.
"""
import logging
import sys
from typing import Optional, Union

from .config import SETTINGS


def setup_logging(
    level: Optional[Union[int, str]] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configures the logger for the 'polyhedra_ops' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG"). Defaults to
            the configured ``SETTINGS.log_level``.
        log_file: Optional path to save logs to a file.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = SETTINGS.log_level_value
    elif isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger("polyhedra_ops")
    logger.setLevel(level)

    # Avoid duplicate records when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
