"""In-memory comment publisher for dry runs and deterministic tests."""

from __future__ import annotations

from typing import Any

from tf_bot.github.github_connector import REVIEW_EVENT_COMMENT, CommentPublishError


class InMemoryCommentPublisher:
    """Records comments instead of posting them."""

    def __init__(self, fail_with: str = "") -> None:
        self.fail_with = fail_with
        self.comments: list[dict[str, Any]] = []
        self.reviews: list[dict[str, Any]] = []

    def _check_failure(self) -> None:
        if self.fail_with:
            raise CommentPublishError("Simulated publish failure", reason_code=self.fail_with)

    def create_issue_comment(
        self, owner: str, repo: str, issue_number: int, body: str
    ) -> dict[str, Any]:
        self._check_failure()
        comment = {
            "id": len(self.comments) + 1,
            "repo": f"{owner}/{repo}",
            "issue_number": issue_number,
            "body": body,
        }
        self.comments.append(comment)
        return comment

    def create_pull_request_review(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        body: str,
        event: str = REVIEW_EVENT_COMMENT,
    ) -> dict[str, Any]:
        self._check_failure()
        review = {
            "id": len(self.reviews) + 1,
            "repo": f"{owner}/{repo}",
            "pull_number": pull_number,
            "body": body,
            "event": event,
        }
        self.reviews.append(review)
        return review
