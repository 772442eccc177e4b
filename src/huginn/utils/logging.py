"""
Operational logging for Huginn.

Diagnostics always go to stderr since stdout carries the MCP stdio
transport. Tool failures are not logged here; they go to the JSON-lines
tool log in ``huginn.utils.tool_log``.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

FORMATTERS: dict[str, dict[str, Any]] = {
    "text": {"format": TEXT_FORMAT, "datefmt": DATE_FORMAT},
    "json": {
        "()": "pythonjsonlogger.json.JsonFormatter",
        "format": JSON_FIELDS,
        "datefmt": DATE_FORMAT,
        "rename_fields": {"levelname": "level", "name": "logger"},
    },
}


def _make_formatter(structured: bool) -> logging.Formatter:
    if structured:
        return JsonFormatter(
            JSON_FIELDS,
            datefmt=DATE_FORMAT,
            rename_fields={"levelname": "level", "name": "logger"},
        )
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    name: str | None = None,
    level: str | None = None,
    structured: bool = False,
    log_file: Path | None = None
) -> logging.Logger:
    """Return the logger for ``name``, optionally with its own handlers.

    Module loggers are normally created without options and propagate to
    the handlers installed by ``configure_root_logging``. Passing any option
    gives the logger a dedicated stderr handler (and file handler).

    Args:
        name: Logger name, usually ``__name__``
        level: Logging level name
        structured: Emit JSON records
        log_file: Optional file that also receives the records
    """
    logger = logging.getLogger(name or "huginn")

    if level is not None:
        logger.setLevel(level.upper())

    wants_handlers = level is not None or structured or log_file is not None
    if not wants_handlers or logger.handlers:
        return logger

    formatter = _make_formatter(structured)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    return logger


def configure_root_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Path | None = None
) -> None:
    """Install process-wide logging for the CLI and the MCP entry point.

    Args:
        level: Level for the root and ``huginn`` loggers
        structured: Emit JSON records
        log_file: Optional operational log file
    """
    formatter = "json" if structured else "text"
    handlers: dict[str, dict[str, Any]] = {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": formatter,
            "stream": "ext://sys.stderr",
        }
    }
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": formatter,
            "filename": str(log_file),
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": FORMATTERS,
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "huginn": {"level": level, "handlers": list(handlers), "propagate": False},
            # The SDK logs every request at INFO
            "mcp": {"level": "WARNING"},
        },
    })
