"""Centralized logging configuration."""

import logging
import sys


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
        logger.propagate = False

    return logger


def configure_package_logging(level: str) -> None:
    """Apply a log level to every logger under the ``scope_engine`` package."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger("scope_engine").setLevel(numeric_level)
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("scope_engine") and isinstance(logger, logging.Logger):
            logger.setLevel(numeric_level)
