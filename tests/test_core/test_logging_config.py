"""
Unit tests for logging configuration
"""
import json
import logging
import uuid
from io import StringIO

import pytest

from apns_transport.core.logging_config import (
    BatchIdFilter,
    CustomJsonFormatter,
    SanitizingFilter,
    clear_batch_id,
    get_batch_id,
    mask_token,
    set_batch_id,
    setup_logging,
)


def make_record(msg="Test message", args=()):
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None
    )


@pytest.fixture
def restore_root_logger():
    """Put the root logger back after setup_logging replaces its handlers."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestBatchIdContext:
    """Test batch ID context variable functionality"""

    def test_set_and_get_batch_id(self):
        batch_id = str(uuid.uuid4())
        token = set_batch_id(batch_id)

        assert get_batch_id() == batch_id

        clear_batch_id(token)
        assert get_batch_id() is None

    def test_filter_adds_batch_id_to_record(self):
        record = make_record()
        token = set_batch_id("batch-1")
        try:
            assert BatchIdFilter().filter(record) is True
        finally:
            clear_batch_id(token)

        assert record.batch_id == "batch-1"

    def test_filter_uses_dash_without_batch(self):
        record = make_record()
        BatchIdFilter().filter(record)

        assert record.batch_id == "-"


class TestSanitizingFilter:
    """Test log injection protection"""

    def test_strips_newlines_from_message(self):
        record = make_record("line one\nFAKE ENTRY\r\nmore")
        SanitizingFilter().filter(record)

        assert record.msg == "line one FAKE ENTRY more"

    def test_strips_newlines_from_args(self):
        record = make_record("reason=%s status=%d", ("Bad\nToken", 400))
        SanitizingFilter().filter(record)

        assert record.getMessage() == "reason=Bad Token status=400"


class TestCustomJsonFormatter:
    """Test JSON output"""

    def test_formats_standard_fields(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
        handler.addFilter(BatchIdFilter())
        logger = logging.getLogger("apns_transport.test_json")
        logger.propagate = False
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

        token = set_batch_id("batch-json")
        try:
            logger.info("APNS dispatch complete", extra={"delivered": 2})
        finally:
            clear_batch_id(token)
            logger.removeHandler(handler)

        entry = json.loads(stream.getvalue())
        assert entry["message"] == "APNS dispatch complete"
        assert entry["level"] == "INFO"
        assert entry["batch_id"] == "batch-json"
        assert entry["delivered"] == 2
        assert "timestamp" in entry


class TestSetupLogging:
    """Test root logger configuration"""

    def test_console_only_without_log_dir(self, restore_root_logger, monkeypatch):
        monkeypatch.setattr("apns_transport.core.logging_config.settings.LOG_DIR", None)

        root = setup_logging(log_level="DEBUG")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_handler_with_log_dir(self, restore_root_logger, tmp_path):
        root = setup_logging(log_level="INFO", log_dir=str(tmp_path))

        assert len(root.handlers) == 2
        assert (tmp_path / "apns.log").exists()


class TestMaskToken:

    def test_long_token_truncated(self):
        assert mask_token("A" * 64) == "A" * 20 + "..."

    def test_short_value_unchanged(self):
        assert mask_token("short") == "short"
