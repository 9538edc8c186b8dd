"""
Unit tests for logging setup.
"""

import logging

import pytest

from docscan.utils.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_level_by_name(restore_root_logger):
    setup_logging("debug")
    assert restore_root_logger.level == logging.DEBUG


def test_log_file_written(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "scan.log"
    setup_logging(logging.INFO, log_file=log_file)

    logging.getLogger("docscan.test").info("scan finished")
    for handler in restore_root_logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "scan finished" in content
    assert "docscan.test - INFO" in content
