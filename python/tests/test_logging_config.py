"""
Tests for logging setup and the logging notifier.
"""

import logging
import logging.handlers

import pytest

from coffeewatch.logging_config import FlushingHandler, setup_logging
from coffeewatch.notifications import ERROR_TAG, LoggingNotifier, format_error


@pytest.fixture
def clean_logger():
    """Remove handlers added to the coffeewatch logger during a test."""
    logger = logging.getLogger("coffeewatch")
    before = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_setup_logging_writes_daily_file(tmp_path, clean_logger):
    logger = setup_logging(log_dir=tmp_path / "logs", level=logging.DEBUG, console=False)

    logger.getChild("pipeline").debug("compiled a.coffee")

    log_files = list((tmp_path / "logs").glob("coffeewatch-*.log"))
    assert len(log_files) == 1
    content = log_files[0].read_text(encoding="utf-8")
    assert "| DEBUG    | coffeewatch.pipeline:" in content
    assert "compiled a.coffee" in content


def test_setup_logging_does_not_duplicate_handlers(tmp_path, clean_logger):
    setup_logging(log_dir=tmp_path, console=False)
    setup_logging(log_dir=tmp_path, console=False)

    file_handlers = [h for h in clean_logger.handlers if isinstance(h, FlushingHandler)]
    assert len(file_handlers) == 1


def test_format_error_is_single_tagged_line():
    message = format_error("[stdin]:1:5: error: unexpected =\nx = = 1\n    ^")

    assert message.startswith(ERROR_TAG + " ")
    assert "\n" not in message
    assert message == "[CoffeeScript] [stdin]:1:5: error: unexpected = x = = 1 ^"


def test_logging_notifier_counts_errors(caplog):
    notifier = LoggingNotifier()

    with caplog.at_level(logging.ERROR, logger="coffeewatch"):
        notifier.show_error(format_error("boom"))
        notifier.show_error(format_error("again"))

    assert notifier.error_count == 2
    assert "[CoffeeScript] boom" in caplog.text
