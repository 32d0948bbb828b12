"""Logging set-up: output formats, a global log level and a WSGI access logger."""

from __future__ import annotations

import json
import logging
import sys
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

LOG_TEXT = "text"
LOG_JSON = "json"
LOG_PRETTY = "pretty"
LOG_DISCARD = "discard"

LOG_FORMATS = [LOG_TEXT, LOG_JSON, LOG_PRETTY, LOG_DISCARD]
LOG_LEVELS = ["DEBUG", "INFO", "WARN", "ERROR"]

REQUEST_ID_KEY = "livesim.request_id"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}
_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}

logger = logging.getLogger("livesim")
logger.propagate = False
logger.setLevel(logging.INFO)


def _level_name(levelno: int) -> str:
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno))


def _fields(record: logging.LogRecord) -> dict:
    return dict(getattr(record, "fields", {}) or {})


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat()


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"time={_timestamp(record)}",
            f"level={_level_name(record.levelno)}",
            f"msg={json.dumps(record.getMessage())}",
        ]
        for key, value in _fields(record).items():
            text = str(value)
            if not text or any(c in text for c in ' ="'):
                text = json.dumps(text)
            parts.append(f"{key}={text}")
        return " ".join(parts)


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        obj = {
            "time": _timestamp(record),
            "level": _level_name(record.levelno),
            "msg": record.getMessage(),
        }
        obj.update(_fields(record))
        return json.dumps(obj, default=str)


class _PrettyFormatter(logging.Formatter):
    _COLORS = {
        logging.DEBUG: "\x1b[35m",
        logging.INFO: "\x1b[36m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("[%H:%M:%S.%f")[:-3] + "]"
        line = f"{stamp} {color}{_level_name(record.levelno)}:\x1b[0m {record.getMessage()}"
        fields = _fields(record)
        if fields:
            line += " " + json.dumps(fields, default=str, indent=2)
        return line


def _parse_level(level: str) -> int:
    try:
        return _LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"log level {level.upper()!r} not known") from None


def init_logging(level: str, log_format: str) -> None:
    """Configure the package logger with a format and a level.

    Raises ValueError for an unknown format or level.
    """
    if log_format == LOG_DISCARD:
        handler: logging.Handler = logging.NullHandler()
    else:
        formatters = {LOG_TEXT: _TextFormatter, LOG_JSON: _JSONFormatter, LOG_PRETTY: _PrettyFormatter}
        if log_format not in formatters:
            raise ValueError(f"logFormat {log_format!r} not known")
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatters[log_format]())
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    set_log_level(level)


def log_level() -> str:
    """Return the current log level name."""
    return _level_name(logger.level)


def set_log_level(level: str) -> None:
    """Set the global log level; an empty string means INFO."""
    logger.setLevel(_parse_level(level))


class _FieldsAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict) -> tuple[Any, dict]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(self.extra or {})
        fields.update(extra.get("fields", {}))
        extra["fields"] = fields
        kwargs["extra"] = extra
        return msg, kwargs


def get_request_id(environ: dict) -> str:
    """Return the request id stored in the WSGI environ, or "-"."""
    request_id = environ.get(REQUEST_ID_KEY)
    return request_id if isinstance(request_id, str) else "-"


def sub_logger_with_request_id(logger: logging.Logger | logging.LoggerAdapter, environ: dict) -> logging.LoggerAdapter:
    """Return a logger that adds the request id to every record."""
    return _FieldsAdapter(logger, {"request_id": get_request_id(environ)})


class AccessLogMiddleware:
    """WSGI middleware that logs every request and turns exceptions into 500 responses."""

    def __init__(self, app: Callable, logger: logging.Logger):
        self.app = app
        self.logger = logger

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        start_time = time.monotonic()
        in_path = environ.get("PATH_INFO", "")
        state = {"status": 0}

        def tracking_start_response(status, headers, exc_info=None):
            state["status"] = int(status.split(" ", 1)[0])
            return start_response(status, headers, exc_info)

        try:
            result = self.app(environ, tracking_start_response)
            try:
                body = [bytes(chunk) for chunk in result]
            finally:
                close = getattr(result, "close", None)
                if close is not None:
                    close()
        except Exception as exc:
            self.logger.error(
                "Runtime error (panic)",
                extra={
                    "fields": {
                        "request_id": get_request_id(environ),
                        "recover_info": repr(exc),
                        "debug_stack": traceback.format_exc(),
                    }
                },
            )
            body = [b"Internal Server Error\n"]
            state["status"] = 500
            start_response(
                "500 Internal Server Error",
                [("Content-Type", "text/plain; charset=utf-8")],
                sys.exc_info(),
            )
        latency_ms = f"{(time.monotonic() - start_time) * 1000.0:.3f}"
        fields = {
            "request_id": get_request_id(environ),
            "remote_ip": environ.get("REMOTE_ADDR", ""),
            "proto": environ.get("SERVER_PROTOCOL", ""),
            "method": environ.get("REQUEST_METHOD", ""),
            "user_agent": environ.get("HTTP_USER_AGENT", ""),
            "status": state["status"],
            "latency_ms": latency_ms,
            "bytes_out": sum(len(chunk) for chunk in body),
        }
        path = environ.get("PATH_INFO", "")
        if in_path != path:
            fields["url"] = in_path
            fields["location"] = path
        else:
            fields["url"] = path
        bytes_in = environ.get("CONTENT_LENGTH", "")
        if bytes_in:
            fields["bytes_in"] = bytes_in
        self.logger.info("request", extra={"fields": fields})
        return body