from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from tf_bot.github.event_context import EventContext, EventKind, event_kind_for, load_event_payload


@pytest.mark.parametrize(
    ("event_name", "expected"),
    [
        ("pull_request", EventKind.PULL_REQUEST),
        ("pull_request_target", EventKind.PULL_REQUEST),
        ("push", EventKind.PUSH),
        ("workflow_dispatch", EventKind.WORKFLOW_DISPATCH),
        ("repository_dispatch", EventKind.REPOSITORY_DISPATCH),
        ("schedule", EventKind.SCHEDULE),
        ("issues", EventKind.ISSUE),
        ("issue_comment", EventKind.ISSUE),
        ("release", EventKind.OTHER),
        ("", EventKind.OTHER),
    ],
)
def test_event_kind_mapping(event_name: str, expected: EventKind) -> None:
    assert event_kind_for(event_name) is expected


def test_from_payload_extracts_fields() -> None:
    ctx = EventContext.from_payload(
        "push",
        {
            "ref": "refs/heads/main",
            "head_commit": {"message": "deploy (#8)"},
            "repository": {"default_branch": "main"},
        },
        repository="acme/infra",
        run_id="1234",
    )
    assert ctx.event_kind is EventKind.PUSH
    assert ctx.ref_name == "refs/heads/main"
    assert ctx.branch_name == "main"
    assert ctx.head_commit_message == "deploy (#8)"
    assert ctx.repository_default_branch == "main"
    assert (ctx.repo_owner, ctx.repo_name) == ("acme", "infra")
    assert ctx.run_id == "1234"
    assert ctx.has_pull_request is False
    assert ctx.pull_request_number is None
    assert ctx.issue_number is None


def test_from_payload_treats_malformed_fields_as_absent() -> None:
    ctx = EventContext.from_payload(
        "pull_request",
        {
            "pull_request": {"number": "42"},
            "issue": ["not", "a", "dict"],
            "head_commit": None,
            "ref": 5,
            "repository": "acme/infra",
        },
    )
    assert ctx.has_pull_request is True
    assert ctx.pull_request_number is None
    assert ctx.issue_number is None
    assert ctx.head_commit_message is None
    assert ctx.ref_name is None
    assert ctx.repository_default_branch is None
    assert ctx.branch_name is None


def test_from_payload_falls_back_to_payload_repository() -> None:
    ctx = EventContext.from_payload(
        "push",
        {"repository": {"name": "infra", "owner": {"login": "acme"}}},
    )
    assert (ctx.repo_owner, ctx.repo_name) == ("acme", "infra")


def test_context_is_immutable() -> None:
    ctx = EventContext.from_payload("push", {}, repository="acme/infra")
    with pytest.raises(ValidationError):
        ctx.ref_name = "refs/heads/main"  # type: ignore[misc]


def test_from_env_reads_event_file(tmp_path: Path) -> None:
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"pull_request": {"number": 11}}), encoding="utf-8")
    ctx = EventContext.from_env(
        {
            "GITHUB_EVENT_NAME": "pull_request",
            "GITHUB_EVENT_PATH": str(event_path),
            "GITHUB_REPOSITORY": "acme/infra",
            "GITHUB_RUN_ID": "99",
            "GITHUB_SERVER_URL": "https://ghe.example.com/",
        }
    )
    assert ctx.pull_request_number == 11
    assert ctx.run_id == "99"
    assert ctx.server_url == "https://ghe.example.com"


def test_load_event_payload_tolerates_missing_or_invalid_files(tmp_path: Path) -> None:
    assert load_event_payload(None) == {}
    assert load_event_payload(str(tmp_path / "missing.json")) == {}
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert load_event_payload(str(broken)) == {}
