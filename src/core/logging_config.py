"""
Logging configuration for the appraisal service.

Console output plus size-rotated application and error logs.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime

from src.core.config import settings


class ServiceFormatter(logging.Formatter):
    """Formatter adding the service name and an ISO timestamp to each record."""

    def format(self, record):
        record.service_name = getattr(record, "service_name", settings.SERVICE_NAME)
        record.timestamp = datetime.fromtimestamp(record.created).isoformat()
        return super().format(record)


def setup_logging() -> None:
    """Configure the root logger once at start-up."""
    os.makedirs(settings.LOG_DIRECTORY, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    if settings.DEBUG:
        console_format = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - %(message)s"
        )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    file_format = "%(timestamp)s - %(service_name)s - %(name)s - %(levelname)s - %(message)s"

    app_file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(settings.LOG_DIRECTORY, "app.log"),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
    )
    app_file_handler.setLevel(logging.INFO)
    app_file_handler.setFormatter(ServiceFormatter(file_format))
    root_logger.addHandler(app_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(settings.LOG_DIRECTORY, "error.log"),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(ServiceFormatter(file_format))
    root_logger.addHandler(error_file_handler)

    # SQL statements only when explicitly echoed
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.SQL_ECHO else logging.WARNING
    )
