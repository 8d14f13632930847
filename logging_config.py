"""
Hotel API - Centralized Logging Configuration
=============================================

Application-wide logging under the `hotel_api` logger:
- Console output (DEBUG outside production, INFO in production)
- `hotel_api.log` rotating file with everything from INFO up
- `hotel_api_errors.log` rotating file with errors only

Usage:
    from logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Booking #12 created")
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import settings

LOG_DIR = Path(settings.LOG_DIR)
ROOT_LOGGER_NAME = "hotel_api"

# Rotation: 5 MB per file, 3 backups
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "multipart", "httpx")


def _rotating_handler(filename: str, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(environment: str = settings.ENVIRONMENT) -> logging.Logger:
    """
    Configures the application root logger. Safe to call more than once.

    Args:
        environment: "development", "production" or "test"
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if app_logger.handlers:
        return app_logger

    app_logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO if environment == "production" else logging.DEBUG)
    console.setFormatter(formatter)
    app_logger.addHandler(console)

    app_logger.addHandler(_rotating_handler(f"{ROOT_LOGGER_NAME}.log", logging.INFO, formatter))
    app_logger.addHandler(_rotating_handler(f"{ROOT_LOGGER_NAME}_errors.log", logging.ERROR, formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Child of the `hotel_api` logger, e.g. get_logger("services") -> hotel_api.services."""
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# Configure on import
setup_logging()
