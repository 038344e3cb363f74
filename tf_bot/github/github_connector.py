"""Comment publisher contract, errors and factory helpers."""

from __future__ import annotations

import os
from typing import Any, Mapping, Protocol

from tf_bot.github.github_auth import GitHubAuth, load_github_auth_from_env

REVIEW_EVENT_COMMENT = "COMMENT"


class CommentPublishError(RuntimeError):
    def __init__(
        self, message: str, reason_code: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.reason_code = reason_code
        self.status_code = status_code


class CommentPublisher(Protocol):
    """Publisher contract for posting terraform output back to GitHub."""

    def create_issue_comment(
        self, owner: str, repo: str, issue_number: int, body: str
    ) -> dict[str, Any]: ...

    def create_pull_request_review(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        body: str,
        event: str = REVIEW_EVENT_COMMENT,
    ) -> dict[str, Any]: ...


def build_publisher_from_env(
    env: Mapping[str, str] | None = None,
    auth: GitHubAuth | None = None,
) -> CommentPublisher:
    env_map = os.environ if env is None else env
    connector_type = (env_map.get("TF_BOT_GITHUB_CONNECTOR") or "api").strip().lower()

    if connector_type == "in_memory":
        from tf_bot.github.github_connector_inmemory import InMemoryCommentPublisher

        return InMemoryCommentPublisher()

    from tf_bot.github.github_connector_api import GitHubAPIPublisher

    return GitHubAPIPublisher(
        auth=auth or load_github_auth_from_env(env_map),
        base_url=(env_map.get("GITHUB_API_URL") or "https://api.github.com").strip(),
    )


__all__ = [
    "REVIEW_EVENT_COMMENT",
    "CommentPublishError",
    "CommentPublisher",
    "GitHubAuth",
    "build_publisher_from_env",
]
