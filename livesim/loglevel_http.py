"""WSGI handlers to read and change the log level."""

from __future__ import annotations

from email import policy
from email.parser import BytesParser
from typing import Callable, Iterable

from livesim.logsetup import log_level, set_log_level

LOG_LEVEL_PATH = "/loglevel"


def _respond(start_response: Callable, status: str, text: str) -> list[bytes]:
    data = text.encode("utf-8")
    start_response(
        status,
        [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(data)))],
    )
    return [data]


def _parse_multipart(environ: dict) -> dict[str, str]:
    ctype = environ.get("CONTENT_TYPE", "")
    if not ctype.startswith("multipart/form-data"):
        raise ValueError("not multipart form data")
    length = environ.get("CONTENT_LENGTH") or ""
    stream = environ["wsgi.input"]
    body = stream.read(int(length)) if length else stream.read()
    msg = BytesParser(policy=policy.default).parsebytes(
        b"Content-Type: " + ctype.encode("latin-1") + b"\r\n\r\n" + body
    )
    if not msg.is_multipart():
        raise ValueError("malformed multipart form data")
    fields: dict[str, str] = {}
    for part in msg.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if name and name not in fields:
            payload = part.get_payload(decode=True) or b""
            fields[name] = payload.decode("utf-8")
    return fields


def log_level_get(environ: dict, start_response: Callable) -> Iterable[bytes]:
    """Return the current log level."""
    return _respond(start_response, "200 OK", log_level() + "\n")


def log_level_set(environ: dict, start_response: Callable) -> Iterable[bytes]:
    """Set the log level from the multipart form field ``level``."""
    current = log_level()
    try:
        fields = _parse_multipart(environ)
    except (ValueError, KeyError):
        return _respond(start_response, "400 Bad Request", "Incorrect form data\n")
    new_level = fields.get("level", "")
    try:
        set_log_level(new_level)
    except ValueError:
        return _respond(start_response, "400 Bad Request", f'Incorrect log level "{new_level}"\n')
    return _respond(start_response, "200 OK", f'"{current}" → "{log_level()}"\n')


def log_level_app(environ: dict, start_response: Callable) -> Iterable[bytes]:
    """Route GET and POST on /loglevel to the handlers."""
    if environ.get("PATH_INFO", "") != LOG_LEVEL_PATH:
        return _respond(start_response, "404 Not Found", "404 page not found\n")
    method = environ.get("REQUEST_METHOD", "GET")
    if method == "GET":
        return log_level_get(environ, start_response)
    if method == "POST":
        return log_level_set(environ, start_response)
    return _respond(start_response, "405 Method Not Allowed", "Method Not Allowed\n")