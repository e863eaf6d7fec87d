"""Tests for sensitive data filtering and context propagation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from app.core.logging import (
    JsonFormatter,
    RequestContextFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
    set_user_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestContextFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_redacts_passwords_and_tokens():
    logger, stream = _capture("test_redaction")

    logger.info(
        "login_event",
        extra={
            "password": "hunter2",
            "password_new": "hunter3",
            "token": "abc.def",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "hunter2" not in output
    assert "hunter3" not in output
    assert "abc.def" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_redacts_email_addresses_in_nested_payloads():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "account": {"email": "alice@example.com", "name": "Alice"},
            "headers": {"Authorization": "Bearer secret", "user-agent": "pytest"},
        },
    )

    output = stream.getvalue()
    assert "alice@example.com" not in output
    assert "Bearer secret" not in output
    assert "Alice" in output
    assert "pytest" in output


def test_safe_fields_pass_through():
    logger, stream = _capture("test_safe_fields")

    logger.info(
        "list.executed",
        extra={"page_number": 2, "page_size": 10, "sort_field": "name"},
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "list.executed"
    assert record["page_number"] == 2
    assert record["sort_field"] == "name"
    assert "[REDACTED]" not in stream.getvalue()


def test_request_and_user_ids_come_from_context():
    logger, stream = _capture("test_context")
    set_request_id("req-123")
    set_user_id("user-9")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-123"
    assert record["user_id"] == "user-9"


def test_hash_identifier_is_stable_and_short():
    assert hash_identifier("ip:10.0.0.1") == hash_identifier("ip:10.0.0.1")
    assert hash_identifier("ip:10.0.0.1") != hash_identifier("ip:10.0.0.2")
    assert len(hash_identifier("x")) == 16


def test_email_addresses_are_scrubbed_from_messages():
    logger, stream = _capture("test_message_scrub")

    logger.warning("login failed for %s", "bob@example.com", extra={"note": "from carol@example.org"})

    record = json.loads(stream.getvalue())
    assert record["message"] == "login failed for [REDACTED]"
    assert record["note"] == "from [REDACTED]"
