"""
Logging setup for bqwrite-test.

The CLI calls `configure_logging` once; library modules only ever call
`get_logger(__name__)`. Records logged from the generator and streamer worker
threads carry the thread name, so interleaved batch failures can be traced back
to the worker that produced them.

Usage:
    from bqwrite.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("Records sent", extra={"records": 2000})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(threadName)s | %(name)s | %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every HTTP round trip at DEBUG.
_QUIET_LOGGERS = ("google", "google.auth", "google.api_core", "urllib3")

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a single JSON line."""
    payload: Dict[str, Any] = {
        "ts": record.created,
        "level": record.levelname,
        "logger": record.name,
        "thread": record.threadName,
        "message": record.getMessage(),
    }
    nested = None
    for key, value in vars(record).items():
        if key == "extra":
            nested = value
        elif key not in _STANDARD_ATTRS and not key.startswith("_"):
            payload[key] = value
    if isinstance(nested, dict):
        payload.update(nested)
    elif nested is not None:
        payload["extra"] = nested
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra=` fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _normalize_level(level: str | int) -> str:
    if isinstance(level, int):
        return logging.getLevelName(level)
    name = level.strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"unknown log level: {level!r}")
    return name


def _logging_config(level: str, json_logs: bool) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": CONSOLE_DATEFMT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "json" if json_logs else "console",
            }
        },
        "root": {"handlers": ["stdout"], "level": level},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    }


def configure_logging(level: str | int = "INFO", json_logs: bool = False) -> None:
    """
    Install the process-wide logging configuration.

    Parameters
    ----------
    level : str | int
        Root level, by name ("debug", "INFO") or number.
    json_logs : bool
        Emit JSON lines instead of the pipe-separated console format.

    Raises
    ------
    ValueError
        If `level` is not a known logging level name.
    """
    logging.config.dictConfig(_logging_config(_normalize_level(level), json_logs))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["CONSOLE_FORMAT", "JsonFormatter", "configure_logging", "get_logger"]
