"""Tests for logging configuration, correlation IDs and the operation log helpers."""

import json
import logging

import pytest

from playlistcard.infrastructure.observability.logger_template import (
    log_operation,
    log_slow_operation,
)
from playlistcard.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def _clean_correlation_id():
    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)


def make_record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="playlistcard.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestCorrelationId:
    def test_generated_when_missing(self) -> None:
        correlation_id = set_correlation_id()
        assert len(correlation_id) == 36
        assert get_correlation_id() == correlation_id

    def test_explicit_value_kept(self) -> None:
        assert set_correlation_id("abc-123") == "abc-123"
        assert get_correlation_id() == "abc-123"

    def test_filter_stamps_record(self) -> None:
        set_correlation_id("req-1")
        record = make_record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-1"


class TestFormatters:
    def test_json_formatter_fields(self) -> None:
        set_correlation_id("req-json")
        record = make_record("rendered card")
        CorrelationIdFilter().filter(record)
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "rendered card"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "playlistcard.test"
        assert payload["line"] == 42
        assert payload["correlation_id"] == "req-json"

    def test_compact_formatter_shows_cause_chain(self) -> None:
        try:
            try:
                raise OSError("broken data stream")
            except OSError as e:
                raise RuntimeError("encode failed") from e
        except RuntimeError as e:
            exc_info = (type(e), e, e.__traceback__)

        text = CompactExceptionFormatter().formatException(exc_info)
        lines = text.splitlines()

        assert lines[0] == "╰─► OSError: broken data stream"
        assert "╰─► RuntimeError: encode failed" in lines


class TestConfigureLogging:
    def test_replaces_root_handlers(self) -> None:
        configure_logging(log_level="DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, CompactExceptionFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_mode(self) -> None:
        configure_logging(json_format=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, CustomJsonFormatter)

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging(log_level="chatty")
        assert logging.getLogger().level == logging.INFO


class TestOperationLogging:
    async def test_logs_start_and_completion(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("playlistcard.test.ops")
        with caplog.at_level(logging.INFO, logger="playlistcard.test.ops"):
            async with log_operation(logger, "artwork_load", requested=12):
                pass

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["artwork_load.started", "artwork_load.completed"]
        assert caplog.records[1].requested == 12
        assert caplog.records[1].duration_ms >= 0

    async def test_logs_failure_and_reraises(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("playlistcard.test.ops")
        with caplog.at_level(logging.INFO, logger="playlistcard.test.ops"):
            with pytest.raises(ValueError):
                async with log_operation(logger, "png_encode"):
                    raise ValueError("nope")

        failed = caplog.records[-1]
        assert failed.getMessage() == "png_encode.failed"
        assert failed.error_type == "ValueError"

    def test_slow_operation_only_above_threshold(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("playlistcard.test.ops")
        with caplog.at_level(logging.WARNING, logger="playlistcard.test.ops"):
            log_slow_operation(logger, "png_encode", 100, threshold_ms=500)
            log_slow_operation(logger, "png_encode", 900, threshold_ms=500)

        assert len(caplog.records) == 1
        assert caplog.records[0].operation == "png_encode"
        assert caplog.records[0].duration_ms == 900
