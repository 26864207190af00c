"""Shared pytest fixtures for Peqy Action tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from peqy_action.logging import clear_secrets
from peqy_action.models import RequestConfig, ReviewPayload

API_URL = "https://api.peqy.test/api/v1/checks/trigger"
API_KEY = "test-api-key-at-least-32-characters-long"
HEAD_SHA = "abc123def456789012345678901234567890abcd"


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging state and registered secrets before each test."""
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    clear_secrets()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep replacement that never actually waits."""
    return RecordingSleep()


@pytest.fixture
def request_config() -> RequestConfig:
    """Request configuration with three attempts."""
    return RequestConfig(url=API_URL, api_key=API_KEY, timeout_ms=5000, max_attempts=3)


@pytest.fixture
def review_payload() -> ReviewPayload:
    """Review payload for PR #123 of test-owner/test-repo."""
    return ReviewPayload(owner="test-owner", repo="test-repo", pr=123, sha=HEAD_SHA)


@pytest.fixture
def event_file(tmp_path: Path) -> Path:
    """Pull request event payload written where the runner would put it."""
    path = tmp_path / "event.json"
    path.write_text(
        json.dumps(
            {
                "pull_request": {"number": 123, "head": {"sha": HEAD_SHA}},
                "repository": {"name": "test-repo", "owner": {"login": "test-owner"}},
            }
        )
    )
    return path


@pytest.fixture
def runner_env(tmp_path: Path, event_file: Path) -> dict[str, str]:
    """Runner environment for a pull_request event with valid inputs."""
    return {
        "INPUT_API-KEY": API_KEY,
        "INPUT_API-URL": API_URL,
        "INPUT_TIMEOUT": "30000",
        "INPUT_MAX-RETRIES": "3",
        "INPUT_FAIL-ON-ERROR": "true",
        "GITHUB_EVENT_NAME": "pull_request",
        "GITHUB_EVENT_PATH": str(event_file),
        "GITHUB_REPOSITORY": "test-owner/test-repo",
        "GITHUB_OUTPUT": str(tmp_path / "output.txt"),
    }
