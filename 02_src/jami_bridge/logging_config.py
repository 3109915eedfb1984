"""Structured logging configuration for the Jami bridge."""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Signal payloads may carry bytes
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    return str(value)


_FALSE_VALUES = {"0", "false", "no", "off"}
_ROTATE_BYTES = 10 * 1024 * 1024


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


def build_logging_config(
    log_level: str | None = None,
    log_file: str | None = None,
    to_file: bool | None = None,
) -> dict[str, Any]:
    """
    Build the dictConfig mapping for the bridge.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to the rotating log file. Defaults to LOG_FILE env var
                  or 04_logs/jami_bridge.log.
        to_file: Whether to write the log file besides stdout. Defaults to
                 LOG_TO_FILE env var, true unless set to 0/false/no/off.
    """
    log_level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
    if to_file is None:
        to_file = _env_flag("LOG_TO_FILE", True)

    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    }
    if to_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file or os.getenv("LOG_FILE") or str(DEFAULT_LOG_PATH),
            "maxBytes": _ROTATE_BYTES,
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "jami_bridge.logging_config.JSONFormatter"},
        },
        "handlers": handlers,
        "root": {"level": log_level, "handlers": list(handlers)},
    }


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    to_file: bool | None = None,
) -> None:
    """Apply build_logging_config(), creating the log directory if needed."""
    config = build_logging_config(log_level, log_file, to_file)
    file_handler = config["handlers"].get("file")
    if file_handler is not None:
        Path(file_handler["filename"]).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
