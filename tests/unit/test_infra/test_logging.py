"""Tests for structured logging: JSON formatting and context injection."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from registration_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)


def _record(msg: str = "Customer registered", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="registration_service.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


class TestJSONFormatter:
    """Test the JSON Lines output."""

    def test_standard_fields(self) -> None:
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "registration_service.test"
        assert data["message"] == "Customer registered"
        assert data["timestamp"].endswith("Z")

    def test_extra_and_static_fields(self) -> None:
        formatter = JSONFormatter(static={"service": "registration-service"})

        data = json.loads(formatter.format(_record(queue="register", depth=3)))

        assert data["service"] == "registration-service"
        assert data["queue"] == "register"
        assert data["depth"] == 3

    def test_exception_on_one_line(self) -> None:
        try:
            msg = "boom"
            raise RuntimeError(msg)
        except RuntimeError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        line = JSONFormatter().format(record)

        assert "\n" not in line
        assert "RuntimeError: boom" in json.loads(line)["exception"]

    def test_unserializable_values_stringified(self) -> None:
        data = json.loads(JSONFormatter().format(_record(payload={1, 2})))
        assert isinstance(data["payload"], str)


class TestLogContext:
    """Test contextvars-based log context."""

    def test_set_get_remove(self) -> None:
        set_log_context(request_id="abc", path="/register")
        remove_from_log_context("path")

        assert get_log_context() == {"request_id": "abc"}

    def test_filter_injects_context(self) -> None:
        set_log_context(request_id="abc")
        record = _record()

        assert ContextInjectingFilter().filter(record) is True
        assert record.request_id == "abc"

    def test_filter_keeps_explicit_extra(self) -> None:
        """Fields passed with ``extra=`` win over the context."""
        set_log_context(request_id="from-context")
        record = _record(request_id="explicit")

        ContextInjectingFilter().filter(record)

        assert record.request_id == "explicit"

    def test_clear(self) -> None:
        set_log_context(request_id="abc")
        clear_log_context()
        assert get_log_context() == {}
