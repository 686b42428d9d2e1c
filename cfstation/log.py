"""Logging setup for the station process."""

from __future__ import annotations

import logging
import logging.handlers
import os
import socket
from typing import Optional

VERBOSE = 5
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_LEVELS = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "verbose": VERBOSE,
}
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
MAX_LOGFILE_SIZE = 1024 * 1024
MAX_RETAINED_LOGFILES = 2


def default_log_file() -> str:
    return f"{socket.gethostname().split('.')[0].lower()}-station.log"


def init_logging(level: str = "info", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``cfstation`` logger with a console and a rolling file sink.

    The _GW_LOGP environment variable overrides ``log_file``; an empty file
    name disables the file sink.
    """
    level = level.lower()
    if level not in LOG_LEVELS:
        raise ValueError(f"The loglevel must be one of: {', '.join(LOG_LEVELS)}")

    if os.getenv("_GW_LOGP"):
        log_file = os.getenv("_GW_LOGP")

    logger = logging.getLogger("cfstation")
    logger.setLevel(LOG_LEVELS[level])
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=MAX_LOGFILE_SIZE, backupCount=MAX_RETAINED_LOGFILES)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Current directory is: {os.getcwd()}")
    if log_file:
        logger.info(f"Log file is: {os.path.abspath(log_file)}")
    logger.info(f"Log level is: {level}")
    return logger
