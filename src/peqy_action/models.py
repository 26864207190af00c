"""Data models for the review-trigger request.

``RequestConfig`` and ``ReviewPayload`` are built once per invocation and are
immutable afterwards. ``AttemptOutcome`` is transient and only feeds the
executor's retry decision; ``RequestResult`` is the terminal artifact handed
back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_API_URL = "https://demo.peqy.ai/api/v1/checks/trigger"

SHA_PATTERN = r"^[0-9a-f]{40}$"


class RequestConfig(BaseModel):
    """Validated request settings for one invocation.

    Attributes:
        url: Review-trigger endpoint
        api_key: Secret API key sent in the ``X-API-Key`` header
        timeout_ms: Per-attempt timeout in milliseconds
        max_attempts: Total attempts allowed (initial call + retries)
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(default=DEFAULT_API_URL, min_length=1)
    api_key: SecretStr
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    max_attempts: int = Field(default=3, ge=1, le=5)

    @field_validator("api_key")
    @classmethod
    def validate_api_key_present(cls, v: SecretStr) -> SecretStr:
        """Reject empty or all-whitespace keys."""
        if not v.get_secret_value().strip():
            raise ValueError("API key is invalid or missing")
        return v

    @property
    def timeout_seconds(self) -> float:
        """Per-attempt timeout in seconds, as httpx expects it."""
        return self.timeout_ms / 1000


class ReviewPayload(BaseModel):
    """Pull request identity serialized verbatim as the request body."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    pr: int = Field(gt=0)
    sha: str = Field(pattern=SHA_PATTERN)

    def to_dict(self) -> dict[str, Any]:
        """Convert payload to the wire body ``{owner, repo, pr, sha}``."""
        return {"owner": self.owner, "repo": self.repo, "pr": self.pr, "sha": self.sha}


class OutcomeKind(str, Enum):
    """Classification of a single attempt."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one request/response cycle inside the retry loop."""

    kind: OutcomeKind
    status_code: int | None = None
    body: str | None = None
    error: str | None = None

    @property
    def is_transient(self) -> bool:
        """Whether this outcome is eligible for retry."""
        return self.kind in (OutcomeKind.SERVER_ERROR, OutcomeKind.TRANSPORT_ERROR)


@dataclass(frozen=True)
class RequestResult:
    """Terminal business outcome of the executor.

    Attributes:
        success: True for 2xx, False for a 4xx client rejection
        status_code: HTTP status code of the terminal response
        body: Raw response text, not re-parsed
    """

    success: bool
    status_code: int
    body: str
