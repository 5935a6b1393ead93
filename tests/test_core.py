from __future__ import annotations

import logging

import pytest

from vm_storage_adapter.core.logging import StructuredLogFormatter, configure_logging, get_logger, log_failure, log_progress


@pytest.fixture()
def reset_logging_handlers():
    root = logging.getLogger()
    existing_handlers = list(root.handlers)
    existing_level = root.level
    yield
    root.handlers = existing_handlers
    root.setLevel(existing_level)


class _ListHandler(logging.Handler):
    def __init__(self, formatter: logging.Formatter):
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - trivial
        self.records.append(record)


def _collect(logger_name: str, level: str = "INFO"):
    configure_logging(level, force=True)
    root = logging.getLogger()
    collector = _ListHandler(root.handlers[0].formatter)
    root.addHandler(collector)
    return get_logger(logger_name, extra={"server_address": "http://vm:8428"}), collector


def test_structured_formatter_appends_extras():
    formatter = StructuredLogFormatter()
    record = logging.LogRecord(
        name="test.logger",
        level=logging.ERROR,
        pathname=__file__,
        lineno=42,
        msg="prometheus query api returned error",
        args=(),
        exc_info=None,
    )
    record.status_code = 500
    record.query = "up"
    record.series = ("a", "b")

    formatted = formatter.format(record)

    assert "prometheus query api returned error" in formatted
    assert formatted.index("status_code=500") < formatted.index("query=up")
    assert "series=[a, b]" in formatted


def test_configure_logging_installs_structured_formatter():
    root = logging.getLogger()
    existing_handlers = list(root.handlers)
    try:
        configure_logging(force=True)
        assert root.handlers, "expected at least one handler configured"
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, StructuredLogFormatter)
    finally:
        root.handlers = existing_handlers


def test_configure_logging_reads_level_from_environment(monkeypatch, reset_logging_handlers):
    monkeypatch.setenv("VM_ADAPTER_LOG_LEVEL", "debug")

    configure_logging(force=True)

    assert logging.getLogger().level == logging.DEBUG


def test_log_progress_emits_debug_record_with_adapter_extras(reset_logging_handlers):
    logger, collector = _collect("test.progress", level="DEBUG")
    try:
        log_progress(logger, "HTTP response", extra={"status_code": 200, "url": None})
    finally:
        logging.getLogger().removeHandler(collector)

    record = collector.records[0]
    assert record.levelno == logging.DEBUG
    assert getattr(record, "server_address") == "http://vm:8428"
    assert getattr(record, "status_code") == 200
    assert not hasattr(record, "url")
    assert "status_code=200" in collector.format(record)


def test_log_progress_is_silent_at_info(reset_logging_handlers):
    logger, collector = _collect("test.quiet")
    try:
        log_progress(logger, "HTTP request", extra={"method": "GET"})
    finally:
        logging.getLogger().removeHandler(collector)

    assert collector.records == []


def test_configure_logging_keeps_existing_handlers(reset_logging_handlers):
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.handlers = [sentinel]

    configure_logging("DEBUG")

    assert root.handlers == [sentinel]

def test_log_failure_records_error_text(reset_logging_handlers):
    logger, collector = _collect("test.failure")
    try:
        log_failure(logger, "Error converting prometheus value", error=ValueError("bad"), extra={"prometheus_value": "x", "query": None})
    finally:
        logging.getLogger().removeHandler(collector)

    record = collector.records[0]
    assert record.levelno == logging.ERROR
    assert getattr(record, "error") == "bad"
    assert getattr(record, "prometheus_value") == "x"
    assert not hasattr(record, "query")
