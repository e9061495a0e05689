"""
Logging Setup
Console + size-rotated file logging for the API process.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from studio.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(testing: bool = False) -> logging.Logger:
    """
    Idempotent logging init.

    - Console handler on stdout at settings.LOG_LEVEL.
    - Rotating file handler (settings.LOG_MAX_BYTES x settings.LOG_BACKUP_COUNT)
      at DEBUG when settings.LOG_TO_FILE is set and not testing.
    """
    root = logging.getLogger()
    if getattr(root, "_studio_configured", False):
        return logging.getLogger("studio")

    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root.setLevel(logging.DEBUG)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.LOG_TO_FILE and not testing:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet noisy libs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.INFO)

    root._studio_configured = True  # type: ignore[attr-defined]
    logger = logging.getLogger("studio")
    logger.debug("Logging configured")
    return logger
