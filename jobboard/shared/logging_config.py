"""Logging configuration shared by the client and the server."""
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "JOBBOARD_LOG_LEVEL"


def resolve_level(default: int = logging.INFO) -> int:
    """Return the level named by JOBBOARD_LOG_LEVEL, or ``default``."""
    value = (os.getenv(LEVEL_ENV_VAR) or "").strip()
    if not value:
        return default
    if value.isdigit():
        return int(value)
    candidate = getattr(logging, value.upper(), None)
    return candidate if isinstance(candidate, int) else default


def configure_logging(name: str, log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure a named logger writing to a rotating file handler.

    Without ``log_file`` the logger writes to stderr instead.
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level())
    if not logger.handlers:
        if log_file is not None:
            handler: logging.Handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)
    return logger
