"""Outcome reporting for the review-trigger request.

Maps the executor's terminal result, or a fatal error, onto the step
outputs ``status-code``, ``response`` and ``success`` and onto workflow
annotations. The human-readable status label is diagnostic only.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass

from peqy_action.exceptions import ApiRequestFailedError
from peqy_action.logging import get_logger, redact
from peqy_action.models import RequestResult
from peqy_action.workflow import WorkflowCommands

logger = get_logger(__name__)

STATUS_LABELS: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    422: "Unprocessable Entity",
}


def status_label(status_code: int) -> str:
    """Return a diagnostic label for a failed status code."""
    return STATUS_LABELS.get(status_code, "Client Error")


@dataclass(frozen=True)
class ReportedOutcome:
    """Normalized, string-encoded view of a RequestResult."""

    status_code: str
    body: str
    success: str

    @classmethod
    def from_result(cls, result: RequestResult) -> ReportedOutcome:
        return cls(
            status_code=str(result.status_code),
            body=result.body,
            success="true" if result.success else "false",
        )

    def as_outputs(self) -> dict[str, str]:
        """Step outputs keyed by their declared names."""
        return {"status-code": self.status_code, "response": self.body, "success": self.success}


def report_result(
    result: RequestResult,
    commands: WorkflowCommands,
    fail_on_error: bool,
) -> ReportedOutcome:
    """Record outputs for a terminal result and report a failure if any.

    Args:
        result: Terminal result from the executor
        commands: Workflow command sink
        fail_on_error: Escalate a failed result to a fatal error

    Returns:
        The reported outcome

    Raises:
        ApiRequestFailedError: If the result failed and ``fail_on_error`` is set;
            outputs are recorded before raising
    """
    outcome = ReportedOutcome.from_result(result)
    for name, value in outcome.as_outputs().items():
        commands.set_output(name, value)

    if result.success:
        logger.info("action_completed", status_code=result.status_code)
        return outcome

    label = status_label(result.status_code)
    with commands.group("Request Failed"):
        commands.error(f"Status: {result.status_code} ({label})")
        commands.error(f"Response: {redact(result.body)}")
        if 400 <= result.status_code < 500:
            commands.error("4xx errors indicate client issues and are not retried")

    logger.error("api_request_rejected", status_code=result.status_code, status_label=label)

    if fail_on_error:
        raise ApiRequestFailedError(result.status_code)

    commands.warning("Continuing despite API failure (fail-on-error is false)")
    return outcome


def report_failure(error: BaseException, commands: WorkflowCommands) -> None:
    """Report a fatal error: fail the step and force ``success=false``.

    Args:
        error: The fatal error
        commands: Workflow command sink
    """
    message = redact(str(error))
    commands.set_failed(message)
    try:
        commands.set_output("success", "false")
    except OSError as e:
        # The step is already failed; the output file itself may be the fault
        logger.error("output_write_failed", output="success", error=str(e))

    with commands.group("Error Details"):
        commands.error(message)
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        commands.debug(redact(stack))

    logger.error("action_failed", error_type=type(error).__name__, error=message)
