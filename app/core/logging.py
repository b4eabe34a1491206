import logging
import sys
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(component_name: str = "app", log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure the component logger.

    Args:
        component_name: Root logger name for the component
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to settings.LOG_LEVEL

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)
