"""Logging setup.

The TUI owns the terminal, so records go to a rotating file; the command
line additionally reports warnings on stderr.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from . import config

LOGGER_NAME = "job_tracker"
FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def setup_logging(
    path: Optional[Path] = None, level: Optional[str] = None, console: bool = False
) -> logging.Logger:
    """Configure the package logger once and return it."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level or config.log_level(), logging.INFO))

    # Avoid duplicate handlers on repeated setup
    if logger.handlers:
        return logger

    formatter = logging.Formatter(FORMAT)
    path = path or config.log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=1024 * 1024, backupCount=3, encoding="utf-8"
        )
    except OSError:
        # Unwritable log location; keep going without a log file
        file_handler = logging.NullHandler()
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console_handler)

    return logger
