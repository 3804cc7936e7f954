import logging

from src.utils.logging import StripAnsiFilter, configure_logging


def test_strip_ansi_filter_removes_colour_codes():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "\x1b[32mready\x1b[0m", None, None)
    assert StripAnsiFilter().filter(record) is True
    assert record.msg == "ready"


def test_configure_logging_falls_back_without_config_file(tmp_path):
    configure_logging(config_path=tmp_path / "missing.ini", level="warning")
    assert logging.getLogger().isEnabledFor(logging.WARNING)
