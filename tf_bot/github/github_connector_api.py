"""GitHub REST API comment publisher."""

from __future__ import annotations

import logging
from typing import Any

import requests

from tf_bot.github.github_auth import GitHubAuth
from tf_bot.github.github_connector import REVIEW_EVENT_COMMENT, CommentPublishError

logger = logging.getLogger(__name__)


class GitHubAPIPublisher:
    def __init__(
        self,
        auth: GitHubAuth | None = None,
        base_url: str = "https://api.github.com",
        session: requests.Session | None = None,
        timeout_s: float = 15,
    ) -> None:
        self.auth = auth or GitHubAuth(token=None)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def create_issue_comment(
        self, owner: str, repo: str, issue_number: int, body: str
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            json={"body": body},
        )

    def create_pull_request_review(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        body: str,
        event: str = REVIEW_EVENT_COMMENT,
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pull_number}/reviews",
            json={"body": body, "event": event},
        )

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.auth.token:
            headers["Authorization"] = f"Bearer {self.auth.token}"

        logger.debug("%s %s", method, path)
        try:
            response = self.session.request(
                method=method,
                url=f"{self.base_url}{path}",
                headers=headers,
                json=json,
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise CommentPublishError(
                f"GitHub API request failed: {exc}", reason_code="github_unreachable"
            ) from exc

        if response.status_code >= 400:
            raise CommentPublishError(
                f"GitHub API returned {response.status_code}: {_error_message(response)}",
                reason_code=_reason_code_for_status(response.status_code),
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict):
        return str(payload.get("message", ""))
    return ""


def _reason_code_for_status(status: int) -> str:
    if status in {401, 403}:
        return "github_forbidden"
    if status == 404:
        return "github_not_found"
    if status == 422:
        return "github_unprocessable"
    return f"github_{status}"
