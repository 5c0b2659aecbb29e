"""
Logging setup for the Flask application.

Console and rotating file handlers are attached to the root logger so that
``current_app.logger`` and module loggers share one configuration.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any

_HANDLER_MARKER = "_frs_users_handler"
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_RESERVED_LOG_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including ``extra={...}`` keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_FIELDS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def _coerce_level(value, default=logging.INFO) -> int:
    if isinstance(value, int):
        return value
    return getattr(logging, str(value or "").upper(), default)


def _remove_owned_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()


def setup_logging(app) -> None:
    """
    Configure logging from ``LOG_LEVEL``, ``LOG_JSON``, ``ENABLE_CONSOLE_LOGGING``,
    ``ENABLE_FILE_LOGGING`` and ``LOG_DIR``.

    Safe to call more than once; handlers installed by a previous call are
    replaced.
    """
    level = _coerce_level(app.config.get("LOG_LEVEL", "INFO"))
    formatter: logging.Formatter = JsonFormatter() if app.config.get("LOG_JSON") else logging.Formatter(_TEXT_FORMAT)

    root_logger = logging.getLogger()
    _remove_owned_handlers(root_logger)
    root_logger.setLevel(level)

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        setattr(console_handler, _HANDLER_MARKER, True)
        root_logger.addHandler(console_handler)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR") or os.path.join(app.instance_path, "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "frs_users.log"),
            maxBytes=int(app.config.get("LOG_MAX_BYTES", 10 * 1024 * 1024)),
            backupCount=int(app.config.get("LOG_BACKUP_COUNT", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARKER, True)
        root_logger.addHandler(file_handler)

    # Let app.logger records flow to the root handlers only.
    app.logger.setLevel(level)
    for handler in list(app.logger.handlers):
        app.logger.removeHandler(handler)
    app.logger.propagate = True

    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
    app.logger.debug("Logging configured (level=%s)", logging.getLevelName(level))
