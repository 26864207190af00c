"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest
import structlog

from peqy_action.config import LoggingConfig
from peqy_action.logging import (
    REDACTED,
    bind_pull_request_context,
    get_logger,
    mask_secrets,
    redact,
    register_secret,
    setup_logging,
)


@pytest.fixture
def capture_stream() -> StringIO:
    """Create a StringIO stream for capturing log output."""
    return StringIO()


def _setup(config: LoggingConfig, stream: StringIO) -> None:
    setup_logging(config)
    logging.getLogger().handlers[0].stream = stream


def test_json_output_format(capture_stream: StringIO) -> None:
    """Test that JSON format produces valid JSON output."""
    _setup(LoggingConfig(level="INFO", format="json"), capture_stream)

    get_logger("test.module").info("test_event", key1="value1", key2=42)

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "test_event"
    assert log_entry["key1"] == "value1"
    assert log_entry["key2"] == 42
    assert log_entry["level"] == "info"
    assert log_entry["logger"] == "test.module"
    assert "timestamp" in log_entry


def test_console_output_format(capture_stream: StringIO) -> None:
    """Test that console format produces human-readable output."""
    _setup(LoggingConfig(level="DEBUG", format="console"), capture_stream)

    get_logger("test.module").debug("test_event", status="active")

    output = capture_stream.getvalue()
    assert "test_event" in output
    assert "status" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_level_filtering(capture_stream: StringIO) -> None:
    """Test that events below the configured level are dropped."""
    _setup(LoggingConfig(level="WARNING", format="json"), capture_stream)

    logger = get_logger("test.module")
    logger.info("quiet_event")
    logger.warning("loud_event")

    output = capture_stream.getvalue()
    assert "quiet_event" not in output
    assert "loud_event" in output


def test_registered_secret_is_redacted(capture_stream: StringIO) -> None:
    """Test that a registered secret never reaches rendered output."""
    _setup(LoggingConfig(level="INFO", format="json"), capture_stream)
    register_secret("sk-live-0123456789")

    get_logger("test.module").info(
        "request_sent",
        header="X-API-Key: sk-live-0123456789",
        nested={"keys": ["sk-live-0123456789"]},
    )

    output = capture_stream.getvalue()
    assert "sk-live-0123456789" not in output
    log_entry = json.loads(output.strip())
    assert log_entry["header"] == f"X-API-Key: {REDACTED}"
    assert log_entry["nested"] == {"keys": [REDACTED]}


def test_pull_request_context_binding(capture_stream: StringIO) -> None:
    """Test that bound PR identity appears on later events."""
    _setup(LoggingConfig(level="INFO", format="json"), capture_stream)

    bind_pull_request_context("test-owner", "test-repo", 123)
    get_logger("test.module").info("triggering_review")

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["repository"] == "test-owner/test-repo"
    assert log_entry["pr"] == 123


def test_mask_secrets_passthrough_without_secrets() -> None:
    event_dict = {"event": "x", "value": 1}
    assert mask_secrets(None, "info", event_dict) is event_dict


def test_register_secret_ignores_blank() -> None:
    register_secret("   ")
    assert redact("   ") == "   "


def test_redact_longest_secret_first() -> None:
    register_secret("abc")
    register_secret("abcdef")
    assert redact("key=abcdef") == f"key={REDACTED}"


def test_get_logger_returns_structlog_logger() -> None:
    logger = get_logger("test.module")
    assert hasattr(logger, "info")
    assert isinstance(structlog.get_config()["processors"], list)
