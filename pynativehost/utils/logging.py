"""
pynativehost Logging Utilities

Loggers here never write to stdout: a native messaging host owns stdout
for framed replies, so every console handler is bound to stderr.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOG_LEVEL_ENV = "NATIVE_MESSAGING_LOG_LEVEL"


def get_logger(
    name: str,
    level: Optional[Union[str, int]] = None,
    log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (defaults to $NATIVE_MESSAGING_LOG_LEVEL or INFO)
        log_file: Optional file for logging output

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, logging.INFO)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # stderr only: stdout carries the framed protocol
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
