"""Tests for logger module."""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from mutecord.util import logger as logger_module
from mutecord.util.logger import (
    DATE_FORMAT,
    LOG_BACKUP_COUNT,
    LOG_COLORS,
    LOG_FORMAT,
    LOG_MAX_BYTES,
    NOISY_LOGGERS,
    RESET_COLOR,
    ColorFormatter,
    PromptToolkitHandler,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


def make_record(level, msg="message"):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="test_func",
    )


class TestShouldUseColor:
    @patch("sys.stderr.isatty")
    def test_should_use_color_tty(self, mock_isatty):
        mock_isatty.return_value = True
        assert should_use_color() is True

    @patch("sys.stderr.isatty")
    def test_should_use_color_no_tty(self, mock_isatty):
        mock_isatty.return_value = False
        assert should_use_color() is False

    @patch("sys.stderr.isatty")
    def test_should_use_color_exception(self, mock_isatty):
        """Color is off when the terminal check itself fails."""
        mock_isatty.side_effect = Exception("Error")
        assert should_use_color() is False


class TestColorFormatter:
    def test_wraps_known_levels(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        formatted = formatter.format(make_record(logging.ERROR, "Error message"))

        assert formatted.startswith(LOG_COLORS["ERROR"])
        assert formatted.endswith(RESET_COLOR)
        assert "Error message" in formatted

    def test_unknown_level_is_plain(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        formatted = formatter.format(make_record(5, "Trace message"))

        assert RESET_COLOR not in formatted
        assert "Trace message" in formatted


class TestSetupLogger:
    def test_setup_logger_configures_handlers(self):
        logger = setup_logger("mutecord_test_logger_1")

        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        kinds = {type(handler) for handler in logger.handlers}
        assert PromptToolkitHandler in kinds
        assert RotatingFileHandler in kinds

    def test_file_handler_rotates(self):
        logger = setup_logger("mutecord_test_logger_2")

        file_handler = next(h for h in logger.handlers if isinstance(h, RotatingFileHandler))
        assert file_handler.maxBytes == LOG_MAX_BYTES
        assert file_handler.backupCount == LOG_BACKUP_COUNT

    def test_console_handler_is_info(self):
        logger = setup_logger("mutecord_test_logger_3")

        console_handler = next(h for h in logger.handlers if isinstance(h, PromptToolkitHandler))
        assert console_handler.level == logging.INFO

    def test_setup_logger_returns_existing(self):
        logger1 = setup_logger("mutecord_test_logger_4")
        logger2 = setup_logger("mutecord_test_logger_4")

        assert logger1 is logger2
        assert len(logger1.handlers) == 2

    def test_get_logger_same_name_returns_same(self):
        assert get_logger("mutecord_test_module") is get_logger("mutecord_test_module")


def test_log_filepath_is_shared():
    assert logger_module.get_log_filepath() == logger_module.get_log_filepath()
    assert logger_module.get_log_filepath().parent == logger_module.LOGS_DIR


def test_prompt_toolkit_handler_emits():
    handler = PromptToolkitHandler(logging.Formatter("%(message)s"))

    with patch("mutecord.util.logger.print_formatted_text") as print_mock:
        handler.emit(make_record(logging.INFO, "hello"))

    print_mock.assert_called_once()


def test_noisy_loggers_are_quiet():
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.ERROR


def test_handle_exception_passes_keyboard_interrupt_through():
    with patch("sys.__excepthook__") as default_hook:
        handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)

    default_hook.assert_called_once()


def test_handle_exception_logs_other_errors():
    with patch("mutecord.util.logger.logging.error") as log_error:
        handle_exception(ValueError, ValueError("bad"), None)

    log_error.assert_called_once()
