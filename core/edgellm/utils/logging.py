"""Logging configuration for edgellm."""

import logging
import os
import sys

LOGGER_NAME = "edgellm"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    The level falls back to the EDGELLM_LOG_LEVEL environment variable,
    then INFO.
    """
    if level is None:
        level = os.environ.get("EDGELLM_LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger


logger = setup_logging()
