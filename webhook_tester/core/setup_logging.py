# webhook_tester/core/setup_logging.py
"""
Logging setup for the webhook tester.

One shared `webhook_tester` logger writes to the console and to a rotating
file in LOG_DIRECTORY. Records may carry webhook context through `extra`
(webhook_id, job_id, component, operation): the text format appends it in
brackets, the JSON format emits it as top-level keys.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, Union

from webhook_tester.core.config import config

LOGGER_NAME = "webhook_tester"
LOG_FILENAME = "webhook_tester.log"
UVICORN_LOG_FILENAME = "webhook_tester_uvicorn.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

CONTEXT_FIELDS = ("webhook_id", "job_id", "component", "operation")

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class ContextFormatter(logging.Formatter):
    """Text formatter appending the webhook context, e.g. `[webhook_id=abc job_id=j1]`."""

    def __init__(self):
        super().__init__(TEXT_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        tags = " ".join(f"{key}={value}" for key, value in context.items())
        first, newline, rest = line.partition("\n")
        return f"{first} [{tags}]{newline}{rest}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, webhook context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_log_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.strip().upper(), logging.INFO)


def _create_formatter(json_format: bool) -> logging.Formatter:
    return JSONFormatter() if json_format else ContextFormatter()


def _is_test_run() -> bool:
    return os.getenv("PYTEST_CURRENT_TEST") is not None


def _log_path(filename: str, log_dir: Optional[str] = None) -> str:
    return os.path.join(log_dir or config.LOG_DIRECTORY, filename)


def setup_logging(
    name: str = LOGGER_NAME,
    json_format: bool = False,
    log_level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger with a console handler and a rotating file handler.

    The file handler is skipped under pytest so tests never write to LOG_DIRECTORY.

    Args:
        name: Logger name
        json_format: Emit JSON lines instead of text
        log_level: Level of the logger and its handlers
        log_dir: Directory of the log file, defaults to LOG_DIRECTORY

    Returns:
        logging.Logger: Configured logger

    Raises:
        OSError: If the log directory cannot be created
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(_coerce_log_level(log_level))

    formatter = _create_formatter(json_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if not _is_test_run():
        log_path = _log_path(LOG_FILENAME, log_dir)
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_default_logging(
    json_format: bool = False, log_level: Union[int, str] = config.LOG_LEVEL
) -> logging.Logger:
    """
    Return the shared application logger, configuring it on first use.

    The logger is reconfigured only when the requested format or level changes.
    """
    resolved_level = _coerce_log_level(log_level)
    logger = logging.getLogger(LOGGER_NAME)
    if (
        logger.handlers
        and logger.level == resolved_level
        and isinstance(logger.handlers[0].formatter, JSONFormatter) == json_format
    ):
        return logger
    return setup_logging(LOGGER_NAME, json_format=json_format, log_level=resolved_level)


def get_uvicorn_log_config(json_format: bool = False) -> dict:
    """
    Logging configuration for `uvicorn.run(log_config=...)`.

    Server and access logs go to the console and to their own rotating file,
    formatted like the application logs.
    """
    formatter = {"()": JSONFormatter} if json_format else {"()": ContextFormatter}
    handlers = ["console", "file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"app": formatter},
        "handlers": {
            "console": {
                "formatter": "app",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "formatter": "app",
                "class": "logging.handlers.RotatingFileHandler",
                "filename": _log_path(UVICORN_LOG_FILENAME),
                "maxBytes": MAX_LOG_BYTES,
                "backupCount": LOG_BACKUP_COUNT,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": handlers, "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": handlers, "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": handlers, "level": "INFO", "propagate": False},
        },
    }
