"""Comment formatting and publishing for plan and apply output."""

from __future__ import annotations

import logging
from enum import Enum

from tf_bot.github.event_context import EventContext
from tf_bot.github.github_connector import (
    REVIEW_EVENT_COMMENT,
    CommentPublishError,
    CommentPublisher,
)
from tf_bot.orchestration.pipeline import PlanOutcome

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 65535
# Fixed margin for the fence and newline characters around the truncated body.
TRUNCATION_MARGIN = 16
CODE_FENCE = "```"


class CommentKind(str, Enum):
    PLAN = "plan"
    APPLY = "apply"


def run_url(owner: str, repo: str, run_id: str, server_url: str = "https://github.com") -> str:
    return f"{server_url.rstrip('/')}/{owner}/{repo}/actions/run/{run_id}"


def truncation_warning(
    owner: str, repo: str, run_id: str, server_url: str = "https://github.com"
) -> str:
    return (
        "Output is too long and was truncated. "
        f"You can read full log at {run_url(owner, repo, run_id, server_url)}"
    )


def format_comment(
    prefix: str,
    body: str,
    owner: str,
    repo: str,
    run_id: str,
    server_url: str = "https://github.com",
) -> str:
    message = f"{prefix}\n{CODE_FENCE}{body}{CODE_FENCE}"
    if len(message) < MAX_COMMENT_LENGTH:
        return message

    warning = truncation_warning(owner, repo, run_id, server_url)
    # An oversized prefix is cut as well so the comment always fits.
    prefix = prefix[: max(0, MAX_COMMENT_LENGTH - len(warning) - TRUNCATION_MARGIN)]
    keep = MAX_COMMENT_LENGTH - len(prefix) - len(warning) - TRUNCATION_MARGIN
    logger.info("Comment exceeds %s characters, keeping first %s", MAX_COMMENT_LENGTH, keep)
    return f"{warning}\n{prefix}\n{CODE_FENCE}{body[:keep]}{CODE_FENCE}"


def _titled(comment_prefix: str, title: str) -> str:
    return " ".join(part for part in (comment_prefix.strip(), title) if part)


def plan_comment_prefix(comment_prefix: str, outcome: PlanOutcome, will_apply: bool) -> str:
    title = "Terraform Plan"
    if outcome is PlanOutcome.DRIFT:
        title = f"{title} (drift detected)"
    elif outcome is PlanOutcome.FAILURE:
        title = f"{title} (failed)"
    heading = _titled(comment_prefix, title)
    if outcome is PlanOutcome.SUCCESS and will_apply:
        return f"{heading}\nThis plan will be applied."
    return f"{heading}\nThis plan will not be applied."


def apply_comment_prefix(comment_prefix: str) -> str:
    return _titled(comment_prefix, "Terraform Apply")


def publish_comment(
    publisher: CommentPublisher,
    ctx: EventContext,
    issue_number: int | None,
    body: str,
    kind: CommentKind,
) -> bool:
    """Post ``body`` to the correlated thread; ``False`` signals a publish failure.

    Having no issue or pull request to comment on is not a failure.
    """

    if issue_number is None:
        logger.debug("No correlated issue, skipping %s comment", kind.value)
        return True

    logger.debug("owner: %s", ctx.repo_owner)
    logger.debug("repo: %s", ctx.repo_name)
    try:
        if kind is CommentKind.APPLY:
            publisher.create_pull_request_review(
                ctx.repo_owner,
                ctx.repo_name,
                issue_number,
                body,
                event=REVIEW_EVENT_COMMENT,
            )
        else:
            publisher.create_issue_comment(ctx.repo_owner, ctx.repo_name, issue_number, body)
    except CommentPublishError as exc:
        logger.error("Failed to add %s comment to #%s: %s", kind.value, issue_number, exc)
        return False

    logger.debug("Message Added")
    return True
