"""Tests for log redaction, request correlation and handler setup."""

from __future__ import annotations

import json
import logging
from io import StringIO
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from notify_gate.core.config import LogSettings
from notify_gate.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    configure_logging,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory stream with the service filters."""

    logger = logging.getLogger("test_notify_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_message_body_and_secrets_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "notification.sent",
        extra={
            "message_body": "Your one-time code is 123456",
            "api_key": "sk-secret-123",
            "category": "status",
        },
    )

    payload = json.loads(stream.getvalue())
    assert payload["message_body"] == "[REDACTED]"
    assert payload["api_key"] == "[REDACTED]"
    assert payload["category"] == "status"
    assert payload["event"] == "notification.sent"
    assert "123456" not in stream.getvalue()


def test_nested_sensitive_fields_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={"headers": {"Authorization": "Bearer abc", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "Bearer abc" not in output
    assert "pytest" in output


def test_request_id_from_context_is_attached(capture):
    logger, stream = capture
    set_request_id("req-42")

    logger.info("admission.allowed", extra={"limit": 3, "remaining": 2})

    payload = json.loads(stream.getvalue())
    assert payload["request_id"] == "req-42"
    assert payload["remaining"] == 2


def test_hash_identifier_is_stable_and_short():
    assert hash_identifier("user 1") == hash_identifier("user 1")
    assert hash_identifier("user 1") != hash_identifier("user 2")
    assert len(hash_identifier("user 1")) == 16


def test_configure_logging_file_output_uses_rotation(tmp_path: Path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(
            LogSettings(output="file", file_path=str(tmp_path / "gate.log"), level="debug")
        )

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RotatingFileHandler)
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_hash_identifier_accepts_lone_surrogates():
    digest = hash_identifier("u\ud800")

    assert len(digest) == 16
    assert digest != hash_identifier("u\udfff")
