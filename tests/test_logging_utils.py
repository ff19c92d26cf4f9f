import logging

import pytest

from reach.utils.logging import LOGGER_NAME, configure_logging, get_logger


def test_get_logger_names():
    assert get_logger().name == LOGGER_NAME
    assert get_logger("reach").name == "reach"
    assert get_logger("reach.gui").name == "reach.gui"
    assert get_logger("sources").name == "reach.sources"


def test_configure_logging_installs_one_handler():
    logger = get_logger()
    original_level = logger.level
    try:
        configure_logging("debug")
        count = len(logger.handlers)
        configure_logging(logging.WARNING)

        assert len(logger.handlers) == count
        assert logger.level == logging.WARNING
    finally:
        logger.setLevel(original_level)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")
