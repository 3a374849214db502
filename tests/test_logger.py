"""Tests for the shared JSON logger."""

import json
import logging
import sys
import os
import pytest

# Ensure the project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.logger import IdentityCenterLogger, _JsonFormatter


@pytest.fixture()
def restore_logger():
    yield
    IdentityCenterLogger.configure(logging.INFO, None)


class TestJsonFormatter:
    def test_extras_are_merged(self) -> None:
        record = logging.LogRecord(
            name="identity_center", level=logging.INFO, pathname=__file__, lineno=1,
            msg="Stage finished", args=(), exc_info=None,
        )
        record.stage = "principals"
        record.draft_count = 4
        entry = json.loads(_JsonFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["message"] == "Stage finished"
        assert entry["stage"] == "principals"
        assert entry["draft_count"] == 4
        assert "pathname" not in entry


class TestIdentityCenterLogger:
    def test_get_logger_is_shared(self) -> None:
        assert IdentityCenterLogger.get_logger() is IdentityCenterLogger.get_logger(logging.DEBUG)
        assert IdentityCenterLogger.get_logger().name == "identity_center"

    def test_configure_without_directory(self, restore_logger) -> None:
        logger = IdentityCenterLogger.configure(logging.WARNING, None)
        assert logger is IdentityCenterLogger.get_logger()
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_configure_with_directory(self, tmp_path, restore_logger) -> None:
        logger = IdentityCenterLogger.configure(logging.INFO, str(tmp_path / "logs"))
        assert len(logger.handlers) == 2
        logger.info("Render started", extra={"composite": "acme"})
        for handler in logger.handlers:
            handler.flush()
        line = (tmp_path / "logs" / "identity_center.log").read_text(encoding="utf-8").splitlines()[-1]
        assert json.loads(line)["composite"] == "acme"
