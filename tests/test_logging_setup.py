from __future__ import annotations

import logging

import pytest

from app import _RedactingFormatter, _configure_logging, _level


@pytest.fixture
def library_loggers():
    names = ["telethon", "apscheduler"]
    yield names
    for name in names:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_redacting_formatter_masks_secrets() -> None:
    formatter = _RedactingFormatter(["123:ABC", "", "123:ABCDEF"], fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "token=123:ABCDEF", None, None)
    assert formatter.format(record) == "token=***"


def test_level_names_fall_back_to_default() -> None:
    assert _level("debug") == logging.DEBUG
    assert _level("chatty") == logging.INFO
    assert _level("chatty", logging.WARNING) == logging.WARNING


def test_library_loggers_get_their_own_levels(library_loggers) -> None:
    config = {
        "enabled": True,
        "level": "DEBUG",
        "console": True,
        "loggers": {"telethon": "WARNING", "apscheduler": "ERROR"},
    }
    _configure_logging(config)
    assert logging.getLogger("telethon").level == logging.WARNING
    assert logging.getLogger("apscheduler").level == logging.ERROR


def test_disabled_logging_leaves_loggers_alone(library_loggers) -> None:
    _configure_logging({"enabled": False, "loggers": {"apscheduler": "ERROR"}})
    assert logging.getLogger("apscheduler").level == logging.NOTSET
