"""Unit tests for workflow event loading and payload extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from peqy_action.context import WorkflowEvent, build_review_payload, load_event
from peqy_action.exceptions import EventContextError

HEAD_SHA = "abc123def456789012345678901234567890abcd"


def _pr_event(**pull_request) -> WorkflowEvent:
    pr = {"number": 123, "head": {"sha": HEAD_SHA}}
    pr.update(pull_request)
    return WorkflowEvent(
        name="pull_request",
        payload={"pull_request": pr},
        owner="test-owner",
        repo="test-repo",
    )


class TestLoadEvent:
    """Tests for load_event."""

    def test_reads_runner_environment(self, event_file: Path) -> None:
        event = load_event(
            {
                "GITHUB_EVENT_NAME": "pull_request",
                "GITHUB_EVENT_PATH": str(event_file),
                "GITHUB_REPOSITORY": "octo-org/octo-repo",
            }
        )

        assert event.name == "pull_request"
        assert event.owner == "octo-org"
        assert event.repo == "octo-repo"
        assert event.pull_request == {"number": 123, "head": {"sha": HEAD_SHA}}

    def test_repository_falls_back_to_payload(self, event_file: Path) -> None:
        event = load_event({"GITHUB_EVENT_NAME": "pull_request"}, event_path=event_file)
        assert (event.owner, event.repo) == ("test-owner", "test-repo")

    def test_missing_event_file_gives_empty_payload(self, tmp_path: Path) -> None:
        event = load_event(
            {"GITHUB_EVENT_NAME": "push", "GITHUB_EVENT_PATH": str(tmp_path / "nope.json")}
        )
        assert event.payload == {}
        assert event.pull_request is None

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text("{not json")
        with pytest.raises(EventContextError, match="Invalid event payload"):
            load_event({}, event_path=path)


class TestBuildReviewPayload:
    """Tests for build_review_payload."""

    def test_builds_payload(self) -> None:
        payload = build_review_payload(_pr_event())

        assert payload.to_dict() == {
            "owner": "test-owner",
            "repo": "test-repo",
            "pr": 123,
            "sha": HEAD_SHA,
        }

    def test_requires_pull_request_context(self) -> None:
        event = WorkflowEvent(name="push", payload={}, owner="o", repo="r")
        with pytest.raises(EventContextError) as exc_info:
            build_review_payload(event)
        assert str(exc_info.value) == (
            "This action must be run in a pull request context. Current event: push"
        )

    @pytest.mark.parametrize(
        "event",
        [
            _pr_event(number=None),
            _pr_event(head={}),
            _pr_event(head=None),
            WorkflowEvent(
                name="pull_request",
                payload={"pull_request": {"number": 1, "head": {"sha": HEAD_SHA}}},
                owner="",
                repo="test-repo",
            ),
        ],
    )
    def test_missing_fields(self, event: WorkflowEvent) -> None:
        with pytest.raises(EventContextError, match="Required GitHub context variables are missing"):
            build_review_payload(event)

    @pytest.mark.parametrize("sha", ["abc123", HEAD_SHA.upper(), "z" * 40])
    def test_invalid_sha(self, sha: str) -> None:
        with pytest.raises(EventContextError, match=f"Invalid SHA format: {sha}"):
            build_review_payload(_pr_event(head={"sha": sha}))

    @pytest.mark.parametrize("number", [-4, "12", True])
    def test_invalid_pr_number(self, number: object) -> None:
        with pytest.raises(EventContextError, match="Invalid pull request number"):
            build_review_payload(_pr_event(number=number))
