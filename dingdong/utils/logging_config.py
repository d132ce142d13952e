"""Logging setup for the server process.

stdout is the protocol channel for the stdio transport, so console output
only goes to stderr and only for the HTTP transport. A file log is kept
when the ``file_logging`` flag is on.
"""

import logging
import os
import sys
import warnings
from typing import List, Optional

from ..config.settings import TECHNICAL_NAME, get_log_dir, get_log_level_name, is_enabled

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

ROOT_LOGGER_NAME = "dingdong"


def _file_handler(log_dir: str) -> Optional[logging.Handler]:
    try:
        os.makedirs(log_dir, exist_ok=True)
        return logging.FileHandler(os.path.join(log_dir, f"{TECHNICAL_NAME}.log"), encoding="utf-8")
    except OSError as e:
        warnings.warn(f"Failed to create log file in {log_dir}: {e}", RuntimeWarning, stacklevel=2)
        return None


def configure_logging(
    transport: str = "stdio",
    verbose: bool = False,
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        transport: Active transport; console logging is disabled for "stdio"
        verbose: Force DEBUG level
        log_dir: Override the log directory

    Returns:
        The configured ``dingdong`` logger
    """
    level_name = get_log_level_name(verbose)
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = []

    if transport != "stdio":
        handlers.append(logging.StreamHandler(sys.stderr))

    if is_enabled('file_logging'):
        file_handler = _file_handler(log_dir or get_log_dir())
        if file_handler is not None:
            handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False

    # uvicorn logs through its own loggers; keep them quiet unless verbose
    logging.getLogger("uvicorn").setLevel(level if verbose else logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logger
