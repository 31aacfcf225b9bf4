"""
Tests for structured JSON logging configuration.

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

import io
import json
import logging

import pytest

from crud.core.logging_config import (
    JSONFormatter,
    get_logger,
    log_with_context,
    setup_logging,
)


@pytest.fixture
def json_logger():
    """Logger writing JSON lines into a string buffer."""
    logger = logging.getLogger("test_crud_logger")
    logger.setLevel(logging.DEBUG)
    logger.handlers = []
    logger.propagate = False

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers = []


def read_record(stream: io.StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_basic_message(self, json_logger):
        # Arrange
        logger, stream = json_logger

        # Act
        logger.info("Test message")

        # Assert
        log_data = read_record(stream)
        assert log_data["level"] == "INFO"
        assert log_data["message"] == "Test message"
        assert log_data["logger"] == "test_crud_logger"
        assert "timestamp" in log_data

    def test_extra_fields(self, json_logger):
        logger, stream = json_logger

        logger.info("User created", extra={"user_id": 7, "driver": "sqlite3", "skipped": None})

        log_data = read_record(stream)
        assert log_data["user_id"] == 7
        assert log_data["driver"] == "sqlite3"
        assert "skipped" not in log_data

    def test_exception_info(self, json_logger):
        logger, stream = json_logger

        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("Failed", exc_info=True)

        log_data = read_record(stream)
        assert "ValueError: boom" in log_data["exception"]


class TestLogWithContext:
    """Tests for log_with_context()."""

    def test_context_fields(self, json_logger):
        # Arrange
        logger, stream = json_logger

        # Act
        log_with_context(
            logger,
            "warning",
            "Rendering error fragment",
            request_id="abc-123",
            path="/view/user/x",
            method="GET",
            error_type="InvalidRequestError",
        )

        # Assert
        log_data = read_record(stream)
        assert log_data["level"] == "WARNING"
        assert log_data["request_id"] == "abc-123"
        assert log_data["path"] == "/view/user/x"
        assert log_data["method"] == "GET"
        assert log_data["error_type"] == "InvalidRequestError"
        assert "status_code" not in log_data


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_handler_installed(self):
        setup_logging(level="DEBUG", json_format=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_plain_handler_installed(self):
        setup_logging(level="WARNING", json_format=False)

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_quiets_sqlalchemy(self):
        setup_logging(level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_get_logger(self):
        assert get_logger("crud.test").name == "crud.test"
