import logging
from unittest.mock import Mock

import httpx

from admin_dashboard.utils import is_json_content_type
from admin_dashboard.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)


class BrokenStrException(Exception):
    """An exception that breaks when __str__ is called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        return "BrokenStrException(cannot convert to string)"


def test_format_regular_exception():
    assert format_exception_message(ValueError("bad value")) == "bad value"


def test_format_empty_message_falls_back_to_type_and_request():
    request = httpx.Request("POST", "http://gateway:8080/api/notifications")

    message = format_exception_message(httpx.ReadTimeout("", request=request))

    assert message == "ReadTimeout while requesting POST http://gateway:8080/api/notifications"


def test_format_empty_message_without_request():
    assert format_exception_message(httpx.ConnectError("")) == "ConnectError"


def test_format_broken_str_uses_repr():
    assert format_exception_message(BrokenStrException()) == (
        "BrokenStrException(cannot convert to string)"
    )


def test_format_none():
    assert format_exception_message(None) == "None"


def test_log_includes_prefix_and_stack():
    logger = Mock(spec=logging.Logger)
    error = RuntimeError("upstream exploded")

    log_exception_with_details(logger, "[Proxy]", error)

    level, message = logger.log.call_args.args
    assert level == logging.ERROR
    assert message == "[Proxy] RuntimeError: upstream exploded"
    assert logger.log.call_args.kwargs["exc_info"] is error


def test_log_never_raises_when_logger_fails():
    logger = Mock(spec=logging.Logger)
    logger.log.side_effect = RuntimeError("logging broken")

    log_exception_with_details(logger, "[Proxy]", ValueError("x"))

    assert logger.log.call_count == 2


def test_log_level_respected(caplog):
    logger = logging.getLogger("test.exception_logging")

    with caplog.at_level(logging.WARNING, logger="test.exception_logging"):
        log_exception_with_details(logger, "[Dashboard]", KeyError("k"), level=logging.WARNING)

    assert caplog.records[0].levelno == logging.WARNING
    assert "[Dashboard] KeyError" in caplog.records[0].getMessage()


def test_is_json_content_type():
    assert is_json_content_type("application/json")
    assert is_json_content_type("Application/JSON; charset=utf-8")
    assert not is_json_content_type("text/plain")
    assert not is_json_content_type("")
    assert not is_json_content_type(None)
