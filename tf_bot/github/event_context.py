"""Read-only snapshot of the workflow trigger event."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    PULL_REQUEST = "pull_request"
    PUSH = "push"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    REPOSITORY_DISPATCH = "repository_dispatch"
    SCHEDULE = "schedule"
    ISSUE = "issue"
    OTHER = "other"


_EVENT_NAME_TO_KIND: dict[str, EventKind] = {
    "pull_request": EventKind.PULL_REQUEST,
    "pull_request_target": EventKind.PULL_REQUEST,
    "push": EventKind.PUSH,
    "workflow_dispatch": EventKind.WORKFLOW_DISPATCH,
    "repository_dispatch": EventKind.REPOSITORY_DISPATCH,
    "schedule": EventKind.SCHEDULE,
    "issues": EventKind.ISSUE,
    "issue_comment": EventKind.ISSUE,
}


def event_kind_for(event_name: str) -> EventKind:
    return _EVENT_NAME_TO_KIND.get(event_name.strip().lower(), EventKind.OTHER)


class EventContext(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    event_kind: EventKind
    event_name: str = ""
    has_pull_request: bool = False
    pull_request_number: int | None = Field(default=None, ge=1)
    issue_number: int | None = Field(default=None, ge=1)
    head_commit_message: str | None = None
    ref_name: str | None = None
    repository_default_branch: str | None = None
    repo_owner: str = ""
    repo_name: str = ""
    run_id: str = ""
    server_url: str = "https://github.com"

    @property
    def branch_name(self) -> str | None:
        """Final path segment of the ref, e.g. ``main`` for ``refs/heads/main``."""

        if not self.ref_name:
            return None
        return self.ref_name.rsplit("/", 1)[-1]

    @classmethod
    def from_payload(
        cls,
        event_name: str,
        payload: Mapping[str, Any] | None,
        *,
        repository: str = "",
        run_id: str = "",
        server_url: str = "https://github.com",
    ) -> "EventContext":
        body = payload if isinstance(payload, Mapping) else {}
        owner, _, name = repository.partition("/")
        if not owner or not name:
            owner, name = _repository_from_payload(body)

        head_commit = _as_mapping(body.get("head_commit"))
        message = head_commit.get("message")
        ref = body.get("ref")
        default_branch = _as_mapping(body.get("repository")).get("default_branch")

        return cls(
            event_kind=event_kind_for(event_name),
            event_name=event_name,
            has_pull_request=isinstance(body.get("pull_request"), Mapping),
            pull_request_number=_number_of(body.get("pull_request")),
            issue_number=_number_of(body.get("issue")),
            head_commit_message=message if isinstance(message, str) else None,
            ref_name=ref if isinstance(ref, str) and ref else None,
            repository_default_branch=(
                default_branch if isinstance(default_branch, str) and default_branch else None
            ),
            repo_owner=owner,
            repo_name=name,
            run_id=str(run_id),
            server_url=server_url.rstrip("/") or "https://github.com",
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EventContext":
        env_map = os.environ if env is None else env
        event_name = (env_map.get("GITHUB_EVENT_NAME") or "").strip()
        payload = load_event_payload(env_map.get("GITHUB_EVENT_PATH"))
        logger.debug("Event Name: %s", event_name)
        logger.debug("Event payload: %s", json.dumps(payload, sort_keys=True))
        return cls.from_payload(
            event_name,
            payload,
            repository=(env_map.get("GITHUB_REPOSITORY") or "").strip(),
            run_id=(env_map.get("GITHUB_RUN_ID") or "").strip(),
            server_url=(env_map.get("GITHUB_SERVER_URL") or "https://github.com").strip(),
        )


def load_event_payload(event_path: str | None) -> dict[str, Any]:
    if not event_path:
        return {}
    path = Path(event_path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read event payload at %s: %s", path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _number_of(value: Any) -> int | None:
    number = _as_mapping(value).get("number")
    if isinstance(number, bool) or not isinstance(number, int) or number < 1:
        return None
    return number


def _repository_from_payload(payload: Mapping[str, Any]) -> tuple[str, str]:
    repository = _as_mapping(payload.get("repository"))
    owner = _as_mapping(repository.get("owner")).get("login")
    name = repository.get("name")
    return (
        owner if isinstance(owner, str) else "",
        name if isinstance(name, str) else "",
    )
