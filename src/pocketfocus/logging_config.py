"""Structured logging: JSON log file with rotation plus an optional console stream."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path

from .config import BaseConfig

ROOT_LOGGER_NAME = "pocketfocus"
LOG_FILENAME = "pocketfocus.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with ``extra`` fields kept under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str)


def _console_handler(dev_mode: bool) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO if dev_mode else logging.WARNING)
    if dev_mode:
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    return handler


def _file_handler(log_file: Path, dev_mode: bool) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG if dev_mode else logging.INFO)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: BaseConfig, *, console: bool = True) -> logging.Logger:
    """Configure the ``pocketfocus`` logger.

    Args:
        config: Application configuration with DATA_DIR and DEV_MODE
        console: Also log to stderr. The CLI turns this off while it owns
            the terminal.

    Returns:
        The configured ``pocketfocus`` logger
    """
    logs_dir = Path(config.DATA_DIR) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / LOG_FILENAME

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(logging.DEBUG if config.DEV_MODE else logging.INFO)

    # Re-running setup must not stack handlers
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    if console:
        app_logger.addHandler(_console_handler(config.DEV_MODE))
    app_logger.addHandler(_file_handler(log_file, config.DEV_MODE))

    app_logger.info(
        "Logging initialized",
        extra={"dev_mode": config.DEV_MODE, "log_file": str(log_file), "data_dir": config.DATA_DIR},
    )
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger nested under the application logger.

    Args:
        name: Short area name, e.g. ``"timer"`` or ``"habits"``
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
