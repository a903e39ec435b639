"""
STARSIGHT Logging Configuration

Provides centralized logging configuration for the STARSIGHT analysis engine:
- Console output with a consistent format
- Rotating file handlers with size limits
- Per-service log level configuration

The engine itself never configures logging; the host application calls
setup_logging() once and engine modules obtain loggers through get_logger().

Usage:
    from starsight.logging_config import setup_logging, get_logger

    setup_logging(log_level="DEBUG")

    logger = get_logger(__name__)
    logger.debug(f"Detected {count} stars")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

# Module-level constants
ROOT_LOGGER_NAME = "starsight"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str | Path] = None,
) -> None:
    """Configure logging for STARSIGHT.

    Sets up the starsight logger with a console handler and an optional
    rotating file handler. Calling it again replaces the previous handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, enables file logging
                  with rotation.
    """
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    if log_file:
        from logging.handlers import RotatingFileHandler

        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)
        )
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the starsight namespace.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance that inherits the starsight configuration

    Example:
        logger = get_logger(__name__)
        logger.info("Analyzer ready")
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_service_level(service_name: str, level: str) -> None:
    """Set log level for a specific service.

    Args:
        service_name: Name of the service package (e.g., "image_analysis")
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Example:
        set_service_level("image_analysis", "DEBUG")
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.services.{service_name}")
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))
