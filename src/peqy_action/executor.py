"""Retrying executor for the Peqy review-trigger request.

This module sends the review payload to the Peqy API and decides, per
attempt, whether to stop or retry:

- 2xx: success, returned immediately
- 4xx: client rejection, returned immediately and never retried
- 5xx, timeouts and transport failures: retried with exponential backoff
  until ``max_attempts`` is consumed, then ``ExhaustionError`` is raised

Any other status (1xx, 3xx) is not classified: no outcome is recorded for
that attempt and the loop proceeds to the retry decision as-is. Redirects
are not followed.

Example usage:
    >>> config = RequestConfig(api_key="...", max_attempts=3)
    >>> payload = ReviewPayload(owner="octo", repo="app", pr=7, sha="a" * 40)
    >>> result = await make_api_request(config, payload)
"""

from __future__ import annotations

import asyncio
import json
from contextlib import AbstractContextManager, nullcontext
from typing import Any

import httpx

from peqy_action.backoff import Sleeper, delay_for_attempt, wait_before_retry
from peqy_action.exceptions import ExhaustionError
from peqy_action.logging import get_logger, redact
from peqy_action.models import (
    AttemptOutcome,
    OutcomeKind,
    RequestConfig,
    RequestResult,
    ReviewPayload,
)
from peqy_action.workflow import WorkflowCommands

logger = get_logger(__name__)

USER_AGENT = "peqy-github-action/1.0"


def classify_response(status_code: int, body: str) -> AttemptOutcome | None:
    """Classify an HTTP response into an attempt outcome.

    Args:
        status_code: HTTP status code
        body: Raw response text

    Returns:
        The outcome, or None when the status falls in no category
    """
    if 200 <= status_code < 300:
        return AttemptOutcome(OutcomeKind.SUCCESS, status_code=status_code, body=body)
    if 400 <= status_code < 500:
        return AttemptOutcome(OutcomeKind.CLIENT_ERROR, status_code=status_code, body=body)
    if status_code >= 500:
        return AttemptOutcome(
            OutcomeKind.SERVER_ERROR,
            status_code=status_code,
            body=body,
            error=f"Server error (HTTP {status_code}): {body}",
        )
    return None


class RequestExecutor:
    """Async executor for the review-trigger request.

    Each executor owns its HTTP client and attempt state; separate
    invocations must use separate executors.

    Attributes:
        config: Validated request configuration
    """

    def __init__(
        self,
        config: RequestConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleeper = asyncio.sleep,
        commands: WorkflowCommands | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Validated request configuration
            transport: Optional httpx transport (tests, proxies)
            sleep: Awaitable sleep used between attempts
            commands: Workflow command sink for per-attempt groups and
                retry warnings; None keeps the executor silent on the runner
        """
        self.config = config
        self._transport = transport
        self._sleep = sleep
        self._commands = commands
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> RequestExecutor:
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            transport=self._transport,
            follow_redirects=False,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("RequestExecutor must be used as async context manager")
        return self._client

    def _group(self, title: str) -> AbstractContextManager[None]:
        if self._commands is None:
            return nullcontext()
        return self._commands.group(title)

    def _info(self, message: str) -> None:
        if self._commands is not None:
            self._commands.info(message)

    def _warning(self, message: str) -> None:
        if self._commands is not None:
            self._commands.warning(redact(message))

    def build_headers(self) -> dict[str, str]:
        """Build the fixed request headers, including the API key."""
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.config.api_key.get_secret_value(),
            "User-Agent": USER_AGENT,
        }

    async def attempt(self, payload: ReviewPayload, attempt: int) -> AttemptOutcome | None:
        """Send the request once and classify the result.

        Transport failures, timeouts and unusable URLs are converted into a
        ``TRANSPORT_ERROR`` outcome rather than raised.

        Args:
            payload: Review payload to send
            attempt: 1-based attempt number, for logging

        Returns:
            The attempt outcome, or None for an unclassified status
        """
        client = self._get_client()
        body = payload.to_dict()

        logger.info("api_request_attempt", attempt=attempt, max_attempts=self.config.max_attempts)
        logger.debug("api_request", url=self.config.url, payload=body)
        self._info(f"Attempt {attempt} of {self.config.max_attempts}")
        with self._group("API Request"):
            self._info(f"URL: {self.config.url}")
            self._info(f"Payload: {json.dumps(body, indent=2)}")

        try:
            response = await client.post(self.config.url, json=body, headers=self.build_headers())
        except httpx.InvalidURL as e:
            # Raised while building the request, so it is not a RequestError
            logger.warning("api_request_invalid_url", attempt=attempt, error=str(e))
            return AttemptOutcome(
                OutcomeKind.TRANSPORT_ERROR,
                error=f"{type(e).__name__}: {e}",
            )
        except httpx.TimeoutException as e:
            logger.warning("api_request_timeout", attempt=attempt, error=str(e))
            return AttemptOutcome(
                OutcomeKind.TRANSPORT_ERROR,
                error=f"Request timed out after {self.config.timeout_ms}ms: {type(e).__name__}",
            )
        except httpx.RequestError as e:
            logger.warning("api_request_failed", attempt=attempt, error=str(e))
            return AttemptOutcome(
                OutcomeKind.TRANSPORT_ERROR,
                error=f"{type(e).__name__}: {e}",
            )

        text = response.text
        logger.debug("api_response", status_code=response.status_code, body=text)
        with self._group("API Response"):
            self._info(f"Status: {response.status_code}")
            self._info(f"Body: {redact(text)}")
        return classify_response(response.status_code, text)

    async def execute(self, payload: ReviewPayload) -> RequestResult:
        """Run the attempt loop until a terminal outcome or exhaustion.

        Args:
            payload: Review payload to send

        Returns:
            RequestResult for a 2xx success or a 4xx client rejection

        Raises:
            ExhaustionError: If every attempt ended in a transient failure
                or an unclassified status
        """
        max_attempts = self.config.max_attempts
        last_error: str | None = None

        for attempt in range(1, max_attempts + 1):
            outcome = await self.attempt(payload, attempt)

            if outcome is None:
                logger.warning("api_unclassified_status", attempt=attempt)
            elif outcome.kind is OutcomeKind.SUCCESS:
                logger.info("api_review_triggered", status_code=outcome.status_code, attempt=attempt)
                return RequestResult(True, outcome.status_code, outcome.body or "")
            elif outcome.kind is OutcomeKind.CLIENT_ERROR:
                logger.warning("api_client_error_no_retry", status_code=outcome.status_code)
                self._warning(f"Client error ({outcome.status_code}) - will not retry")
                return RequestResult(False, outcome.status_code, outcome.body or "")
            elif outcome.is_transient:
                last_error = outcome.error
                logger.warning(
                    "api_transient_failure",
                    kind=outcome.kind.value,
                    status_code=outcome.status_code,
                    attempt=attempt,
                )
                if outcome.kind is OutcomeKind.SERVER_ERROR:
                    self._warning(
                        f"Server error ({outcome.status_code}) on attempt {attempt} - will retry"
                    )
                self._warning(f"Request failed on attempt {attempt}: {outcome.error}")
            else:
                raise ValueError(f"Unhandled outcome kind: {outcome.kind}")

            if attempt < max_attempts:
                self._info(f"Waiting {delay_for_attempt(attempt) // 1000} seconds before retry...")
                await wait_before_retry(attempt, self._sleep)

        logger.error("api_attempts_exhausted", max_attempts=max_attempts, error=last_error)
        raise ExhaustionError(max_attempts, last_error)


async def make_api_request(
    config: RequestConfig,
    payload: ReviewPayload,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Sleeper = asyncio.sleep,
    commands: WorkflowCommands | None = None,
) -> RequestResult:
    """Send the review-trigger request with a fresh executor.

    Args:
        config: Validated request configuration
        payload: Review payload to send
        transport: Optional httpx transport
        sleep: Awaitable sleep used between attempts
        commands: Optional workflow command sink for attempt output

    Returns:
        RequestResult for a success or client rejection

    Raises:
        ExhaustionError: If all attempts failed transiently
    """
    async with RequestExecutor(
        config, transport=transport, sleep=sleep, commands=commands
    ) as executor:
        return await executor.execute(payload)
