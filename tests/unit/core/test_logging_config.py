"""Logging setup tests"""

import logging

import pytest

from zdctf.logging_config import OPERATOR_LOGGERS, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    root_level = root.level
    levels = {name: logging.getLogger(name).level for name in OPERATOR_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


@pytest.mark.unit
def test_operator_warnings_survive_quiet_root(restore_logging):
    setup_logging("error")

    assert logging.getLogger().level == logging.ERROR
    for name in OPERATOR_LOGGERS:
        assert logging.getLogger(f"{name}.child").isEnabledFor(logging.WARNING)
    assert not logging.getLogger("zdctf.core.data.database").isEnabledFor(
        logging.WARNING
    )
    # the handler must not filter what the loggers let through
    assert logging.getLogger().handlers[0].level == logging.NOTSET


@pytest.mark.unit
def test_debug_level_reaches_operator_loggers(restore_logging):
    setup_logging("debug")
    assert logging.getLogger("zdctf.ctf.matchers").level == logging.DEBUG


@pytest.mark.unit
def test_repeated_setup_keeps_one_handler(restore_logging):
    setup_logging("info")
    setup_logging("warning")
    assert len(logging.getLogger().handlers) == 1


@pytest.mark.unit
def test_unknown_level_falls_back_to_info(restore_logging):
    setup_logging("chatty")
    assert logging.getLogger().level == logging.INFO
