"""Tests for JSON and console log formatters."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import pytest

from archive_core.logging.context import clear_log_context, set_log_context
from archive_core.logging.formatters import ConsoleFormatter, JSONFormatter


def _make_record(
    msg="test message",
    level=logging.INFO,
    name="test.logger",
    exc_info=None,
    **extras,
):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_formats_basic_json_with_required_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test.logger"
        assert output["message"] == "test message"
        assert output["ts"].endswith("Z")

    def test_includes_context_fields(self):
        set_log_context(domain="archive_fetch", stage="fetch", worker_id="w-0", trace_id="abc123")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["domain"] == "archive_fetch"
        assert output["stage"] == "fetch"
        assert output["worker_id"] == "w-0"
        assert output["trace_id"] == "abc123"

    def test_extra_field_overrides_context_trace_id(self):
        set_log_context(trace_id="from-context")
        output = json.loads(JSONFormatter().format(_make_record(trace_id="from-extra")))

        assert output["trace_id"] == "from-extra"

    def test_omits_empty_context_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert "domain" not in output
        assert "stage" not in output
        assert "worker_id" not in output

    def test_source_location_only_for_debug_and_errors(self):
        formatter = JSONFormatter()

        assert json.loads(formatter.format(_make_record(level=logging.DEBUG)))["file"] == "test.py:42"
        assert "file" in json.loads(formatter.format(_make_record(level=logging.ERROR)))
        assert "file" not in json.loads(formatter.format(_make_record(level=logging.INFO)))
        assert "file" not in json.loads(formatter.format(_make_record(level=logging.WARNING)))

    def test_extracts_fetch_fields(self):
        record = _make_record(
            bucket="b1",
            key="x/y/z.tar.gz",
            destination_path="/tmp/z.tar.gz",
            bytes_downloaded=12,
            content_type="application/gzip",
            content_encoding="gzip",
            duration_ms=1.5,
        )
        output = json.loads(JSONFormatter().format(record))

        assert output["bucket"] == "b1"
        assert output["key"] == "x/y/z.tar.gz"
        assert output["destination_path"] == "/tmp/z.tar.gz"
        assert output["bytes_downloaded"] == 12
        assert output["content_type"] == "application/gzip"
        assert output["content_encoding"] == "gzip"
        assert output["duration_ms"] == 1.5

    def test_ignores_unknown_extras(self):
        output = json.loads(JSONFormatter().format(_make_record(not_a_field="x")))
        assert "not_a_field" not in output

    def test_ensures_numeric_types(self):
        record = _make_record(bytes_downloaded="12", duration_ms="3.5", status_code="404")
        output = json.loads(JSONFormatter().format(record))

        assert output["bytes_downloaded"] == 12
        assert output["duration_ms"] == 3.5
        assert output["status_code"] == 404

    def test_invalid_numeric_becomes_null(self):
        output = json.loads(JSONFormatter().format(_make_record(blob_size="lots")))
        assert output["blob_size"] is None

    def test_sanitizes_sas_token_in_urls(self):
        record = _make_record(
            download_url="https://acct.blob.core.windows.net/c/k.tgz?sv=2024&sig=SECRET&se=x"
        )
        output = json.loads(JSONFormatter().format(record))

        assert "SECRET" not in output["download_url"]
        assert "sig=[REDACTED]" in output["download_url"]

    def test_serializes_datetime_and_path(self):
        record = _make_record(
            last_modified=datetime(2026, 1, 2, 3, 4, 5),
            destination_path=Path("/tmp/z.tar.gz"),
        )
        output = json.loads(JSONFormatter().format(record))

        assert output["last_modified"] == "2026-01-02T03:04:05"
        assert output["destination_path"] == "/tmp/z.tar.gz"

    def test_includes_exception_block(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _make_record(level=logging.ERROR, exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "boom"
        assert "Traceback" in output["exception"]["stacktrace"]


class TestConsoleFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    @pytest.fixture
    def formatter(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        return formatter

    def test_basic_line(self, formatter):
        line = formatter.format(_make_record())

        assert " - INFO - test message" in line

    def test_includes_domain_and_stage(self, formatter):
        set_log_context(domain="archive_fetch", stage="fetch")
        line = formatter.format(_make_record())

        assert "[archive_fetch]" in line
        assert "[fetch]" in line

    def test_trace_and_bucket_tags(self, formatter):
        set_log_context(trace_id="0123456789abcdef")
        line = formatter.format(_make_record(bucket="b1"))

        assert "[01234567]" in line
        assert "[bucket:b1]" in line

    def test_colors_when_enabled(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True
        line = formatter.format(_make_record(level=logging.ERROR))

        assert ConsoleFormatter.COLORS[logging.ERROR] in line
        assert ConsoleFormatter.RESET in line

    def test_appends_traceback(self, formatter):
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            record = _make_record(level=logging.ERROR, exc_info=sys.exc_info())

        line = formatter.format(record)

        assert "RuntimeError: kaboom" in line
