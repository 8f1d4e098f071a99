"""Application-wide logging setup."""

import logging
import sys

from cherrycap.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging() -> None:
    """Attach a stdout handler to the ``cherrycap`` logger (idempotent)."""
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()

    logger = logging.getLogger("cherrycap")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    logger.propagate = False
