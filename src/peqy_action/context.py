"""Pull request context from the workflow event.

The runner describes the triggering event through environment variables:
``GITHUB_EVENT_NAME``, ``GITHUB_EVENT_PATH`` (a JSON file holding the
webhook payload) and ``GITHUB_REPOSITORY`` (``owner/repo``).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from peqy_action.exceptions import EventContextError
from peqy_action.logging import get_logger
from peqy_action.models import ReviewPayload
from peqy_action.validation import validate_sha

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkflowEvent:
    """The event that triggered the workflow run.

    Attributes:
        name: Event name (e.g. ``pull_request``)
        payload: Decoded webhook payload
        owner: Repository owner, empty if unknown
        repo: Repository name, empty if unknown
    """

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    owner: str = ""
    repo: str = ""

    @property
    def pull_request(self) -> dict[str, Any] | None:
        """The pull request object, if the event carries one."""
        pr = self.payload.get("pull_request")
        return pr if pr else None


def load_event(
    environ: Mapping[str, str] | None = None,
    event_path: Path | None = None,
) -> WorkflowEvent:
    """Load the workflow event from the runner environment.

    Args:
        environ: Environment mapping; defaults to ``os.environ``
        event_path: Explicit payload file, overriding ``GITHUB_EVENT_PATH``

    Returns:
        WorkflowEvent instance; an absent payload file yields an empty payload

    Raises:
        EventContextError: If the payload file is not valid JSON
    """
    env = os.environ if environ is None else environ

    if event_path is None and env.get("GITHUB_EVENT_PATH"):
        event_path = Path(env["GITHUB_EVENT_PATH"])

    payload: dict[str, Any] = {}
    if event_path is not None:
        if event_path.exists():
            try:
                payload = json.loads(event_path.read_text(encoding="utf-8")) or {}
            except json.JSONDecodeError as e:
                raise EventContextError(f"Invalid event payload in {event_path}: {e}") from e
        else:
            logger.warning("event_payload_missing", path=str(event_path))

    owner, repo = "", ""
    repository = env.get("GITHUB_REPOSITORY", "")
    if "/" in repository:
        owner, repo = repository.split("/", 1)
    elif isinstance(payload.get("repository"), dict):
        owner = (payload["repository"].get("owner") or {}).get("login") or ""
        repo = payload["repository"].get("name") or ""

    return WorkflowEvent(
        name=env.get("GITHUB_EVENT_NAME", ""),
        payload=payload,
        owner=owner,
        repo=repo,
    )


def build_review_payload(event: WorkflowEvent) -> ReviewPayload:
    """Extract and validate the review payload from a pull request event.

    Args:
        event: Workflow event

    Returns:
        ReviewPayload for the pull request head commit

    Raises:
        EventContextError: If the event has no pull request, a required
            field is missing, or the head SHA is malformed
    """
    pull_request = event.pull_request
    if pull_request is None:
        raise EventContextError(
            "This action must be run in a pull request context. "
            f"Current event: {event.name}"
        )

    pr_number = pull_request.get("number")
    pr_sha = (pull_request.get("head") or {}).get("sha")

    if not pr_number or not pr_sha or not event.owner or not event.repo:
        raise EventContextError("Required GitHub context variables are missing")

    if not validate_sha(pr_sha):
        raise EventContextError(f"Invalid SHA format: {pr_sha}")

    if not isinstance(pr_number, int) or isinstance(pr_number, bool) or pr_number <= 0:
        raise EventContextError(f"Invalid pull request number: {pr_number}")

    return ReviewPayload(owner=event.owner, repo=event.repo, pr=pr_number, sha=pr_sha)
