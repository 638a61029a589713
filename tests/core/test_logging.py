"""
Tests for logging setup.
"""

import logging

import pytest
import structlog

from trackerhub.core.logging import NOISY_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_third_party_loggers_quieted():
    setup_logging("INFO")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("apscheduler").level == logging.WARNING


def test_debug_keeps_third_party_output():
    setup_logging("DEBUG", json_logs=False)

    assert logging.getLogger("httpx").level == logging.DEBUG


def test_service_name_bound():
    setup_logging("INFO")

    assert structlog.contextvars.get_contextvars()["service"] == "trackerhub"
