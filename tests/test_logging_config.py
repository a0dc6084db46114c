"""Tests for structured logging setup."""

import logging

from deskcalc_pkg.logging_config import StructuredFormatter, get_logger, setup_logging


def test_setup_logging_replaces_handlers():
    logger = setup_logging("DEBUG")
    setup_logging("DEBUG")
    assert logger.name == "deskcalc"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    setup_logging()


def test_unknown_level_falls_back_to_warning():
    logger = setup_logging("chatty")
    assert logger.level == logging.WARNING


def test_file_handler(tmp_path):
    log_file = tmp_path / "deskcalc.log"
    logger = setup_logging("INFO", str(log_file))
    assert len(logger.handlers) == 2
    get_logger("session").info("hello %s", "there")
    setup_logging()
    assert "[INFO] deskcalc.session: hello there" in log_file.read_text(encoding="utf-8")


def test_get_logger_namespace():
    assert get_logger("evaluator").name == "deskcalc.evaluator"


def test_structured_format():
    record = logging.LogRecord("deskcalc.test", logging.WARNING, __file__, 1, "x=%d", (3,), None)
    line = StructuredFormatter().format(record)
    assert line.endswith("[WARNING] deskcalc.test: x=3")
