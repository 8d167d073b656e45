# app/utils/logger.py
"""
Centralised logging configuration for the entire application.
Logs to console, and to a rotating file when a log directory is configured.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import Config

_configured = False


def configure_logging(level: str | None = None, log_dir: str | None = None) -> None:
    """Attach handlers to the root logger once; later calls only adjust the level."""
    global _configured
    level = (level or Config.LOG_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(level)
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    log_dir = log_dir or Config.LOG_DIR
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        # keeps last 10 x 5MB log files
        file_handler = RotatingFileHandler(
            filename=os.path.join(log_dir, "reservations.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    configure_logging()
    return logging.getLogger(name)
