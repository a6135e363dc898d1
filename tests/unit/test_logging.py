"""Unit tests for structured JSON logging."""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from lmdb_store.logging import LOGGER_NAME, JSONFormatter, get_logger, setup_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="lmdb_store.store",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Store %s",
        args=("opened",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_standard_fields(self) -> None:
        """Output is a JSON object with the standard fields."""
        output = json.loads(JSONFormatter().format(_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "lmdb_store.store"
        assert output["message"] == "Store opened"
        assert len(output["timestamp"]) == len("2025-01-15 10:30")
        assert "extra" not in output

    def test_includes_extra_fields(self) -> None:
        """Fields passed via extra= are grouped under "extra"."""
        output = json.loads(JSONFormatter().format(_record(bucket="blobs", path="/data")))

        assert output["extra"] == {"bucket": "blobs", "path": "/data"}

    def test_non_json_values_are_stringified(self) -> None:
        """Values json cannot encode fall back to str()."""
        output = json.loads(JSONFormatter().format(_record(size=b"raw")))

        assert output["extra"]["size"] == "b'raw'"

    def test_includes_exception(self) -> None:
        """Exception info is rendered as a traceback string."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in output["exception"]


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_invalid_level_raises(self) -> None:
        """Unknown level names are rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("LOUD")

    def test_configures_single_handler(self) -> None:
        """Repeated setup does not stack handlers."""
        setup_logging("INFO")
        logger = setup_logging("debug")

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_child_loggers_write_json(self) -> None:
        """Module loggers inherit the package handler."""
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)

        get_logger("store").info("Store opened", extra={"bucket": "blobs"})

        line = json.loads(stream.getvalue())
        assert line["logger"] == f"{LOGGER_NAME}.store"
        assert line["extra"]["bucket"] == "blobs"

    def test_level_filters_records(self) -> None:
        """Records below the configured level are dropped."""
        stream = io.StringIO()
        setup_logging("WARNING", stream=stream)

        get_logger("store").info("quiet")

        assert stream.getvalue() == ""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("store", "lmdb_store.store"),
            ("lmdb_store.store", "lmdb_store.store"),
            ("lmdb_store", "lmdb_store"),
        ],
    )
    def test_get_logger_namespacing(self, name: str, expected: str) -> None:
        """Names are placed under the package logger exactly once."""
        assert get_logger(name).name == expected
