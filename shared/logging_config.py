import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_LOGGER_NAME = "album_sync"
_NOISY_LOGGERS = ("httpx", "urllib3")


def setup_logging(log_file: Optional[str] = "album_sync.log") -> logging.Logger:
    """Configure the shared album sync logger (stdout plus optional log file).

    Safe to call more than once: a later call only adds the file handler if
    none is attached yet.
    """
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not logger.handlers:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    has_file_handler = any(isinstance(handler, logging.FileHandler) for handler in logger.handlers)
    if log_file and not has_file_handler:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    # notion-client logs every request through httpx at INFO
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a child logger from the shared configuration."""
    parent = logging.getLogger(_LOGGER_NAME)
    if not parent.handlers:
        setup_logging(log_file=None)
    return parent.getChild(name) if name else parent
