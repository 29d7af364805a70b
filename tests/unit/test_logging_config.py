"""Tests for logging configuration helpers."""

import json
import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from jailfs.bootstrap.logging_setup import (
    CorrelationIdFilter,
    JsonFormatter,
    configure_logging,
    redact_sensitive,
)
from jailfs.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    set_correlation_id,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="jailfs.storage.fs",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="format test",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_stream_handler():
    """Configure stdout handler and validate formatter output."""
    logger = configure_logging("DEBUG", "stdout")

    assert logger.logger.name == "jailfs"
    assert logger.logger.level == logging.DEBUG
    assert len(logger.logger.handlers) == 1

    handler = logger.logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    formatted = handler.formatter.format(
        make_record(correlation_id="test-id-123", component="storage.fs")
    )
    log_data = json.loads(formatted)
    assert log_data["component"] == "storage.fs"
    assert log_data["message"] == "format test"
    assert log_data["correlation_id"] == "test-id-123"


def test_configure_logging_text_format():
    logger = configure_logging("INFO", "stdout", use_json=False)
    formatter = logger.logger.handlers[0].formatter
    record = make_record(correlation_id="abc")
    assert "[abc] jailfs.storage.fs :: format test" in formatter.format(record)


def test_configure_logging_file_destination(tmp_path: Path):
    """Configure file handler and verify writes are persisted."""
    destination = tmp_path / "logs" / "server.log"
    logger = configure_logging("WARNING", destination.as_posix())

    assert logger.logger.level == logging.WARNING
    handler = logger.logger.handlers[0]
    assert handler.baseFilename == destination.as_posix()

    logging.getLogger("jailfs.server").warning("file log test")

    handler.flush()
    assert "file log test" in destination.read_text()


def test_configure_logging_replaces_previous_handlers():
    configure_logging("INFO", "stdout")
    logger = configure_logging("INFO", "stdout")
    assert len(logger.logger.handlers) == 1


def test_configure_logging_emits_event():
    """configure_logging announces itself with a logging_configured event."""
    with patch("jailfs.bootstrap.logging_setup._build_handler") as mock_build:
        mock_handler = MagicMock()
        mock_handler.level = logging.INFO
        mock_build.return_value = mock_handler

        configure_logging("INFO", "stdout")

        record = mock_handler.handle.call_args[0][0]
        assert record.msg == "Logging configured"
        assert getattr(record, "event", None) == "logging_configured"
        assert getattr(record, "destination", None) == "stdout"
        assert getattr(record, "use_json", None) is True


def test_correlation_id_filter_inserts_placeholder_when_missing():
    """Filter should default correlation_id to '-' for bare records."""
    record = make_record()
    assert not hasattr(record, "correlation_id")
    assert CorrelationIdFilter().filter(record)
    assert record.correlation_id == "-"


def test_json_formatter_includes_whitelisted_extras_only():
    formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    record = make_record(
        correlation_id="id",
        component="handlers.static",
        event="file_access_failed",
        path="/srv/www/missing",
        errno=2,
        unlisted="dropped",
    )
    log_data = json.loads(formatter.format(record))
    assert log_data["event"] == "file_access_failed"
    assert log_data["path"] == "/srv/www/missing"
    assert log_data["errno"] == 2
    assert "unlisted" not in log_data


def test_json_formatter_includes_exception():
    formatter = JsonFormatter()
    try:
        raise FileNotFoundError("gone")
    except FileNotFoundError:
        record = make_record(exc_info=sys.exc_info())
    log_data = json.loads(formatter.format(record))
    assert "FileNotFoundError: gone" in log_data["exception"]


@pytest.mark.parametrize(
    ("value", "redacted"),
    [
        ("/srv/www/index.html", False),
        ("/download?token=abc", True),
        ("deadbeef" * 4, True),
        ("", False),
    ],
)
def test_redact_sensitive(value: str, redacted: bool):
    assert (redact_sensitive(value) == "[REDACTED]") is redacted


def test_adapter_stamps_correlation_id_and_component(caplog):
    adapter = CorrelationLoggerAdapter(logging.getLogger("jailfs.transport.worker"), {})
    set_correlation_id("req-1")
    try:
        with caplog.at_level(logging.INFO, logger="jailfs"):
            adapter.info("hello", extra={"event": "greeting"})
    finally:
        clear_correlation_id()
    record = caplog.records[-1]
    assert record.correlation_id == "req-1"
    assert record.component == "transport.worker"
    assert record.event == "greeting"

    with caplog.at_level(logging.INFO, logger="jailfs"):
        adapter.info("again")
    assert caplog.records[-1].correlation_id == "-"
