"""
Centralised logging configuration for the entire application.
Logs to console and, unless LOG_TO_FILE is off, to a rotating file under LOG_DIR.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)
    root.addHandler(console)

    # SQLAlchemy is chatty at INFO; only surface its warnings
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if not settings.LOG_TO_FILE:
        return

    # Ledger audit trail: keeps last 10 × 5MB files
    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, "parking.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
