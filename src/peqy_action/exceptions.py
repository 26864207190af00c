"""Exception hierarchy for Peqy Action.

Precondition failures are raised before any request is sent and are never
retried. Exhaustion is raised by the executor once every attempt has been
consumed by transient failures.

Client rejections (HTTP 4xx) are not exceptions: they are returned as a
normal ``RequestResult`` and only escalate according to the fail-policy.
"""

from __future__ import annotations


class PeqyActionError(Exception):
    """Base exception for Peqy Action errors."""

    pass


class PreconditionError(PeqyActionError):
    """Raised when the invocation cannot start (bad inputs or context)."""

    pass


class ConfigurationError(PreconditionError):
    """Raised when an action input is missing, malformed or out of range."""

    pass


class EventContextError(PreconditionError):
    """Raised when the workflow event lacks a usable pull request."""

    pass


class ExhaustionError(PeqyActionError):
    """Raised when all attempts were consumed without a terminal outcome.

    Attributes:
        attempts: Number of attempts made
        last_error: Description of the last recorded transient failure, or
            None when the final attempts returned an unclassified status
    """

    def __init__(self, attempts: int, last_error: str | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_error}")


class ApiRequestFailedError(PeqyActionError):
    """Raised when a client rejection must fail the step (fail-on-error).

    Attributes:
        status_code: HTTP status code of the rejection
    """

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"API request failed with status {status_code}")
