"""Structured JSON logging configuration."""

import logging
import sys
from typing import Dict, Optional

from pythonjsonlogger import jsonlogger

from ..config.models import LoggingConfig

# Record attribute -> key in the emitted JSON object
RENAMED_FIELDS = {"levelname": "level", "name": "logger"}


def setup_logger(
    name: str = "fleet_health",
    level: str = "INFO",
    static_fields: Optional[Dict[str, str]] = None
) -> logging.Logger:
    """
    Configure a JSON logger writing one object per line to stdout.

    Every line carries timestamp, logger, level and message keys, plus
    any static fields and whatever was passed as ``extra``.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        static_fields: Constant keys added to every line

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Reconfiguring replaces the handler instead of stacking a second one
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(
        '%(name)s %(levelname)s %(message)s',
        rename_fields=RENAMED_FIELDS,
        static_fields=dict(static_fields or {}),
        timestamp=True
    ))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def logger_from_config(config: LoggingConfig, name: str = "fleet_health") -> logging.Logger:
    """Root logger for a run, configured from the logging section."""
    return setup_logger(name, config.level, config.fields)
