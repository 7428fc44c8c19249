import logging

import pytest

from bookshelf.utils.logging import configure_root, env_level, parse_level


@pytest.fixture(autouse=True)
def _restore_levels():
    names = ("", "httpx", "httpcore")
    previous = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in previous.items():
        logging.getLogger(name).setLevel(level)


@pytest.mark.parametrize(
    "text, expected",
    [("debug", logging.DEBUG), (" WARNING ", logging.WARNING), ("15", 15), ("chatty", None), ("", None)],
)
def test_parse_level(text, expected):
    assert parse_level(text) == expected


def test_env_level_overrides_debug_setting():
    level = configure_root(True, environ={"BOOKSHELF_LOG_LEVEL": "error"})

    assert level == logging.ERROR
    assert logging.getLogger().level == logging.ERROR


def test_debug_setting_applies_without_env():
    assert env_level({}) is None
    assert configure_root(True, environ={}) == logging.DEBUG
    assert configure_root(False, environ={}) == logging.INFO


def test_transport_request_logs_are_quieted():
    configure_root(True, environ={})

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
