"""Invocation orchestration for Peqy Action.

One invocation reads inputs and the workflow event, validates them, sends
the review-trigger request and reports the outcome. All runner state is
passed in explicitly; nothing below reads ``os.environ`` directly.

Failure policy:
- Precondition errors (inputs, event context) are always fatal
- Exhaustion of all attempts is always fatal
- A client rejection (4xx) is fatal only when ``fail-on-error`` is true
- Any other exception is reported like a fatal error, so a failed step
  always carries ``success=false``
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Mapping

import httpx

from peqy_action.backoff import Sleeper
from peqy_action.config import ActionInputs, load_inputs
from peqy_action.context import build_review_payload, load_event
from peqy_action.exceptions import ConfigurationError, PeqyActionError
from peqy_action.executor import make_api_request
from peqy_action.logging import (
    bind_pull_request_context,
    clear_secrets,
    get_logger,
    register_secret,
)
from peqy_action.models import RequestConfig
from peqy_action.reporter import report_failure, report_result
from peqy_action.validation import validate_api_key
from peqy_action.workflow import WorkflowCommands

logger = get_logger(__name__)


def validate_inputs(
    inputs: ActionInputs, commands: WorkflowCommands | None = None
) -> RequestConfig:
    """Check input ranges and build the request configuration.

    Checks run in a fixed order and the first failure is reported.

    Args:
        inputs: Loaded action inputs
        commands: Optional workflow command sink for advisory warnings

    Returns:
        Immutable RequestConfig

    Raises:
        ConfigurationError: If the API key, max-retries or timeout is invalid
    """
    warn = commands.warning if commands is not None else None
    if not validate_api_key(inputs.api_key.get_secret_value(), warn=warn):
        raise ConfigurationError("API key is invalid or missing")
    logger.info("input_validated", input="api-key")

    if not 1 <= inputs.max_retries <= 5:
        raise ConfigurationError("max-retries must be between 1 and 5")
    logger.info("input_validated", input="max-retries", value=inputs.max_retries)

    if not 1000 <= inputs.timeout <= 300000:
        raise ConfigurationError("timeout must be between 1000ms (1s) and 300000ms (5min)")
    logger.info("input_validated", input="timeout", value=inputs.timeout)

    return RequestConfig(
        url=inputs.api_url,
        api_key=inputs.api_key,
        timeout_ms=inputs.timeout,
        max_attempts=inputs.max_retries,
    )


async def run_action(
    commands: WorkflowCommands,
    environ: Mapping[str, str],
    overrides: dict[str, Any] | None = None,
    event_path: Path | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> int:
    """Run one invocation of the action.

    Args:
        commands: Workflow command sink for outputs and annotations
        environ: Runner environment holding inputs and event variables
        overrides: Input overrides (e.g. from CLI options)
        event_path: Explicit event payload file
        transport: Optional httpx transport for the API request
        sleep: Awaitable sleep used between attempts

    Returns:
        Process exit code: 0 on success or tolerated failure, 1 otherwise
    """
    # Secrets registered by an earlier invocation in this process are stale
    clear_secrets()

    try:
        inputs = load_inputs(environ, overrides)

        api_key = inputs.api_key.get_secret_value()
        commands.add_mask(api_key)
        register_secret(api_key)

        with commands.group("Validating Inputs"):
            config = validate_inputs(inputs, commands)

        with commands.group("Validating GitHub Context"):
            event = load_event(environ, event_path)
            payload = build_review_payload(event)
            bind_pull_request_context(payload.owner, payload.repo, payload.pr)
            logger.info("pull_request_context_validated", sha=payload.sha)

        logger.info("triggering_review", pr=payload.pr, url=config.url)
        result = await make_api_request(
            config, payload, transport=transport, sleep=sleep, commands=commands
        )

        report_result(result, commands, fail_on_error=inputs.fail_on_error)

    except PeqyActionError as e:
        report_failure(e, commands)
    except Exception as e:
        logger.exception("action_unexpected_error")
        report_failure(e, commands)

    return commands.exit_code
