"""
Unit tests for utils.logging

Tests JSON and console formatting, context logging and handler setup.
"""

import json
import logging
from unittest.mock import patch

import pytest

from utils.logging import (
    ConsoleFormatter,
    ContextLogger,
    JSONFormatter,
    as_context_logger,
    setup_logging,
    shutdown_logging,
)
from utils.logging.formatters import extract_context


def make_record(msg="Copied rows", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="replication.copier",
        level=level,
        pathname="/app/copier.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestJSONFormatter:
    """Test JSONFormatter class"""

    def test_defaults(self):
        formatter = JSONFormatter()

        assert formatter.include_timestamp is True
        assert formatter.app_name == "pg-replicator"
        assert formatter.hostname is not None

    def test_format_basic_record(self):
        """Test level, logger, message and source location"""
        data = json.loads(JSONFormatter(include_hostname=False).format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "replication.copier"
        assert data["message"] == "Copied rows"
        assert data["app"] == "pg-replicator"
        assert data["source"]["line"] == 42
        assert "timestamp" in data
        assert "hostname" not in data

    def test_extra_context(self):
        """Test extra fields are nested under context"""
        data = json.loads(JSONFormatter().format(make_record(table="users", rows=1000)))
        assert data["context"] == {"table": "users", "rows": 1000}

    def test_exception(self):
        """Test exception info is serialized"""
        try:
            raise ValueError("bad row")
        except ValueError:
            import sys
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad row"

    def test_non_serializable_context(self):
        """Test values json cannot encode are stringified"""
        data = json.loads(JSONFormatter().format(make_record(error=OpaqueValue())))
        assert data["context"]["error"] == "<path>"


class OpaqueValue:
    def __str__(self):
        return "<path>"


class TestConsoleFormatter:
    """Test ConsoleFormatter class"""

    def test_context_suffix(self):
        """Test key=value pairs are appended"""
        formatter = ConsoleFormatter(use_colors=False)
        text = formatter.format(make_record(table="users", rows=3))

        assert "[INFO] replication.copier: Copied rows" in text
        assert text.endswith("[table=users, rows=3]")

    def test_colors_do_not_leak(self):
        """Test colouring does not modify the shared record"""
        with patch("sys.stderr.isatty", return_value=True):
            formatter = ConsoleFormatter(use_colors=True)

        record = make_record()
        text = formatter.format(record)

        assert "\033[32m" in text
        assert record.levelname == "INFO"

    def test_extract_context_skips_reserved(self):
        assert extract_context(make_record()) == {}


class TestContextLogger:
    """Test ContextLogger class"""

    def test_context_added(self, caplog):
        logger = ContextLogger("test.context", run="r1")

        with caplog.at_level(logging.INFO, logger="test.context"):
            logger.info("hello", rows=5)

        record = caplog.records[-1]
        assert record.run == "r1"
        assert record.rows == 5

    def test_bind_leaves_parent(self):
        parent = ContextLogger("test.bind", run="r1")
        child = parent.bind(table="users")

        assert child.get_context() == {"run": "r1", "table": "users"}
        assert parent.get_context() == {"run": "r1"}

    def test_as_context_logger(self):
        existing = ContextLogger("x")
        std = logging.getLogger("y")

        assert as_context_logger(existing, "z") is existing
        assert as_context_logger(std, "z").logger is std
        assert as_context_logger(None, "z").logger.name == "z"


class TestSetupLogging:
    """Test setup_logging"""

    def test_console_handler(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_json_and_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "run.log"

        setup_logging(level="INFO", log_file=str(log_file), json_format=True)
        logging.getLogger("test.file").info("written", extra={"table": "users"})
        shutdown_logging()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["context"] == {"table": "users"}

    def test_repeated_setup_does_not_stack(self, restore_root_logger):
        setup_logging()
        setup_logging()
        assert len(restore_root_logger.handlers) == 1

    def test_noisy_loggers_quieted(self, restore_root_logger):
        setup_logging(level="DEBUG")
        assert logging.getLogger("urllib3").level == logging.WARNING
