"""
Logging configuration for the request filter.

Matching decisions are logged with structured ``extra`` fields (rule index,
method, url, ...). The ``json`` format keeps those fields as JSON keys; the
``text`` format is meant for local development.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, List, Optional

PACKAGE_LOGGER = "rulegate"

LOG_FORMATS = {
    "text": {
        "format": "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S"
    },
    "json": {
        "()": "pythonjsonlogger.json.JsonFormatter",
        "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        "rename_fields": {"levelname": "level", "name": "logger"}
    }
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5


def get_logging_config(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` dictionary.

    Args:
        log_level: Level for the package logger and its handlers
        log_format: 'json' or 'text'; anything else falls back to 'text'
        log_file: Optional path of a rotating log file

    Returns:
        Logging configuration dictionary
    """
    formatter = log_format if log_format in LOG_FORMATS else "text"

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": formatter,
            "stream": sys.stdout
        }
    }

    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": formatter,
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUP_COUNT,
            "encoding": "utf8"
        }

    handler_names: List[str] = list(handlers)
    for handler in handlers.values():
        handler["level"] = log_level

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: dict(LOG_FORMATS[formatter])},
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "level": log_level,
                "handlers": handler_names,
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": handler_names
        }
    }


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None
) -> None:
    """Apply the logging configuration for the request filter."""
    logging.config.dictConfig(
        get_logging_config(log_level=log_level.upper(), log_format=log_format, log_file=log_file)
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)
