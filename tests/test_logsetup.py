import io
import logging
from wsgiref.util import setup_testing_defaults

import pytest

from livesim import logsetup


@pytest.mark.parametrize(
    "fmt,level",
    [("text", "DEBUG"), ("json", "INFO"), ("json", "WARN"), ("text", "ERROR")],
)
def test_init_logging_ok(fmt, level):
    logsetup.init_logging(level, fmt)
    assert logsetup.log_level() == level


@pytest.mark.parametrize("fmt,level", [("fish", "DEBUG"), ("text", "FISH")])
def test_init_logging_errors(fmt, level):
    with pytest.raises(ValueError):
        logsetup.init_logging(level, fmt)


def test_set_log_level_case_and_empty():
    logsetup.init_logging("ERROR", "discard")
    logsetup.set_log_level("debug")
    assert logsetup.log_level() == "DEBUG"
    logsetup.set_log_level("")
    assert logsetup.log_level() == "INFO"


def test_json_output(capsys):
    logsetup.init_logging("INFO", "json")
    logsetup.logger.info("hello", extra={"fields": {"a": 1}})
    out = capsys.readouterr().out
    assert '"msg": "hello"' in out
    assert '"a": 1' in out


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _logger(name):
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)
    log.propagate = False
    handler = _ListHandler()
    log.addHandler(handler)
    return log, handler


def _environ(path="/x"):
    env = {}
    setup_testing_defaults(env)
    env["PATH_INFO"] = path
    env["wsgi.input"] = io.BytesIO()
    return env


def test_request_id():
    env = _environ()
    assert logsetup.get_request_id(env) == "-"
    env[logsetup.REQUEST_ID_KEY] = "abc"
    assert logsetup.get_request_id(env) == "abc"
    log, handler = _logger("test.sub")
    logsetup.sub_logger_with_request_id(log, env).info("m")
    assert handler.records[0].fields["request_id"] == "abc"


def test_middleware_logs_request():
    def app(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/plain")])
        return [b"hello"]

    log, handler = _logger("test.access")
    statuses = []
    body = logsetup.AccessLogMiddleware(app, log)(_environ(), lambda s, h, e=None: statuses.append(s))
    assert b"".join(body) == b"hello"
    fields = handler.records[-1].fields
    assert fields["status"] == 200
    assert fields["bytes_out"] == 5
    assert fields["url"] == "/x"


def test_middleware_handles_exception():
    def app(environ, start_response):
        raise RuntimeError("boom")

    log, handler = _logger("test.panic")
    statuses = []
    body = logsetup.AccessLogMiddleware(app, log)(_environ(), lambda s, h, e=None: statuses.append(s))
    assert statuses == ["500 Internal Server Error"]
    assert b"".join(body) == b"Internal Server Error\n"
    assert handler.records[0].getMessage() == "Runtime error (panic)"
    assert handler.records[-1].fields["status"] == 500